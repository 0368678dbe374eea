"""
StudioStateLib - Studio state, reducer and controller

This module holds the immutable studio state, the actions that change it
and the controller that runs the pipeline and history store on its behalf.
"""

from TD_Libs.StudioStateLib.app_state import (
    AppState,
    GenerationCompleted,
    HistoryCommitted,
    HistoryCleared,
    RestoreArtifact,
    SetPrompt,
    SetSelectionMode,
    ToggleSelection,
    SelectAll,
    SetAdjustments,
    ResetAdjustments,
    SetTransform,
    SetWatermark,
    SetShowWatermark,
    SetError,
    reduce,
    active_watermark,
)
from TD_Libs.StudioStateLib.studio_controller import StudioController

__all__ = [
    "AppState",
    "GenerationCompleted",
    "HistoryCommitted",
    "HistoryCleared",
    "RestoreArtifact",
    "SetPrompt",
    "SetSelectionMode",
    "ToggleSelection",
    "SelectAll",
    "SetAdjustments",
    "ResetAdjustments",
    "SetTransform",
    "SetWatermark",
    "SetShowWatermark",
    "SetError",
    "reduce",
    "active_watermark",
    "StudioController",
]
