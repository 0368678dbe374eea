"""
HistoryStoreLib - Artifact history storage and export

This module handles the bounded, quota-aware persistence of generated
artifacts and their batch export.
"""

from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact, new_artifact_timestamp
from TD_Libs.HistoryStoreLib.storage_medium import (
    StorageMedium,
    InMemoryMedium,
    JsonFileMedium,
    get_default_medium,
    reset_default_medium,
)
from TD_Libs.HistoryStoreLib.history_store import (
    BoundedHistoryStore,
    CommittedHistory,
    PersistOutcome,
    PersistStatus,
)
from TD_Libs.HistoryStoreLib.history_export import build_gallery_archive, gallery_archive_name

__all__ = [
    "GeneratedArtifact",
    "new_artifact_timestamp",
    "StorageMedium",
    "InMemoryMedium",
    "JsonFileMedium",
    "get_default_medium",
    "reset_default_medium",
    "BoundedHistoryStore",
    "CommittedHistory",
    "PersistOutcome",
    "PersistStatus",
    "build_gallery_archive",
    "gallery_archive_name",
]
