"""
Effect boundary between the studio state and the pipeline/history store.

The controller owns the current AppState. Methods run the pipeline or the
history store and then dispatch the resulting actions through reduce().
"""

import logging
from typing import Any, Optional, Tuple

from TD_Libs.exceptions import ImageDecodeError
from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact, new_artifact_timestamp
from TD_Libs.HistoryStoreLib.history_export import build_gallery_archive, gallery_archive_name
from TD_Libs.HistoryStoreLib.history_store import (
    BoundedHistoryStore,
    CommittedHistory,
    PersistOutcome,
)
from TD_Libs.ImageEditingLib.drawing_surface import SurfaceFactory
from TD_Libs.ImageEditingLib.image_editing_ops import apply_image_filters, prepare_download
from TD_Libs.StudioStateLib.app_state import (
    AppState,
    GenerationCompleted,
    HistoryCleared,
    HistoryCommitted,
    SetError,
    SetSelectionMode,
    active_watermark,
    reduce,
)

logger = logging.getLogger(__name__)

_ARTIFACT_TAGS = ("lighting", "camera", "mood", "seed", "model")


class StudioController:
    """
    Runs studio actions that have side effects.

    Args:
        store: History store (default: a store on the process-wide medium)
        surface_factory: Drawing surface factory passed to the pipeline
        state: Initial state (default: empty state with the store's history)
    """

    def __init__(
        self,
        store: Optional[BoundedHistoryStore] = None,
        surface_factory: Optional[SurfaceFactory] = None,
        state: Optional[AppState] = None,
    ) -> None:
        self.store = store if store is not None else BoundedHistoryStore()
        self.surface_factory = surface_factory
        self._state = state if state is not None else AppState(history=self.store.items)

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: object) -> AppState:
        self._state = reduce(self._state, action)
        return self._state

    def _commit(self, artifact: GeneratedArtifact) -> CommittedHistory:
        committed = self.store.add(artifact)
        self.dispatch(GenerationCompleted(artifact))
        self.dispatch(HistoryCommitted(committed))
        if not committed.outcome.is_complete:
            logger.info(f"History for {artifact.created_at_ms} committed as {committed.outcome.status.value}")
        return committed

    def record_generation(
        self,
        image_data: bytes,
        mime_type: str,
        prompt: Optional[str] = None,
        jitter: bool = False,
        **tags: Any,
    ) -> GeneratedArtifact:
        """
        Record a finished generation as a new artifact.

        Generation settings come from the current state. Batch callers pass
        jitter=True so artifacts created in the same millisecond get
        distinct timestamps.

        Args:
            image_data: Encoded image returned by the generation service
            mime_type: Its MIME type
            prompt: Prompt override (default: the state's prompt)
            jitter: Add a random 0-999 ms offset to the timestamp
            **tags: lighting, camera, mood, seed, model

        Returns:
            The new artifact
        """
        unknown = set(tags) - set(_ARTIFACT_TAGS)
        if unknown:
            raise TypeError(f"Unknown artifact tags: {', '.join(sorted(unknown))}")

        state = self._state
        artifact = GeneratedArtifact(
            image_data=image_data,
            mime_type=mime_type,
            prompt=state.prompt if prompt is None else prompt,
            created_at_ms=new_artifact_timestamp(jitter),
            aspect_ratio=state.aspect_ratio,
            resolution=state.resolution,
            style_preset=state.style_preset,
            watermark_effect=state.watermark.effect,
            watermark_opacity=state.watermark.opacity_percent,
            watermark_position=state.watermark.position,
            watermark_size=state.watermark.size,
            **tags,
        )
        self._commit(artifact)
        return artifact

    def record_failure(self, message: str) -> AppState:
        """Record a failed generation or edit for display."""
        return self.dispatch(SetError(message))

    def save_edit(self) -> Optional[GeneratedArtifact]:
        """
        Apply the pending adjustments and transform to the current artifact.

        The edit is stored as a new artifact; the original stays in history.

        Returns:
            The new artifact, or None when nothing is loaded

        Raises:
            ImageDecodeError: If the current artifact's bytes cannot be decoded
        """
        state = self._state
        if state.current is None:
            return None

        try:
            data = apply_image_filters(
                state.current.image_data,
                state.current.mime_type,
                state.adjustments,
                state.transform,
                surface_factory=self.surface_factory,
            )
        except ImageDecodeError as exc:
            self.dispatch(SetError(str(exc)))
            raise

        artifact = state.current.derive(data)
        self._commit(artifact)
        return artifact

    def download_current(self) -> Optional[Tuple[str, bytes]]:
        """Filename and bytes for downloading the current artifact, watermarked if enabled."""
        if self._state.current is None:
            return None
        return prepare_download(
            self._state.current,
            active_watermark(self._state),
            self.surface_factory,
        )

    def delete_selected(self) -> Optional[CommittedHistory]:
        """Delete the selected artifacts and leave selection mode."""
        if not self._state.selected_ids:
            return None
        committed = self.store.remove(self._state.selected_ids)
        self.dispatch(HistoryCommitted(committed))
        self.dispatch(SetSelectionMode(False))
        return committed

    def clear_history(self) -> PersistOutcome:
        outcome = self.store.clear()
        self.dispatch(HistoryCleared(outcome))
        return outcome

    def export_selected(self, now_ms: Optional[int] = None) -> Optional[Tuple[str, bytes]]:
        """Archive name and ZIP bytes of the selected artifacts, or None if none match."""
        archive = build_gallery_archive(self._state.history, self._state.selected_ids)
        if archive is None:
            return None
        return gallery_archive_name(now_ms), archive
