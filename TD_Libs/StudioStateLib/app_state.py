"""
Immutable studio state and its reducer.

Every user action is a small frozen dataclass. reduce(state, action)
returns a new AppState and never touches the pipeline or the history
store; those side effects live in StudioController.

Classes:
    AppState: Everything the studio view renders
    GenerationCompleted, HistoryCommitted, HistoryCleared, RestoreArtifact,
    SetPrompt, SetSelectionMode, ToggleSelection, SelectAll, SetAdjustments,
    ResetAdjustments, SetTransform, SetWatermark, SetShowWatermark, SetError:
    Actions

Functions:
    reduce: Apply one action to a state
    active_watermark: Watermark to apply on download, if any
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, Optional, Tuple, Type

from TD_Libs.constants import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_RESOLUTION,
    DEFAULT_STYLE_PRESET,
    DEFAULT_WATERMARK_TEXT,
)
from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact
from TD_Libs.HistoryStoreLib.history_store import CommittedHistory, PersistOutcome
from TD_Libs.ImageEditingLib.image_models import (
    AdjustmentParameters,
    TransformParameters,
    WatermarkSpec,
)


@dataclass(frozen=True)
class AppState:
    """Snapshot of the studio.

    Attributes:
        history: Newest-first artifacts as last committed by the store
        current: Artifact shown in the editor
        prompt, aspect_ratio, resolution, style_preset: Generation settings
        adjustments, transform: Pending edit of the current artifact
        watermark: Watermark settings
        show_watermark: Whether downloads get the watermark
        selection_mode: History grid is in multi-select mode
        selected_ids: Timestamps of selected artifacts
        error: Message of the last failed action
        last_outcome: Persistence outcome of the last history mutation
    """
    history: Tuple[GeneratedArtifact, ...] = ()
    current: Optional[GeneratedArtifact] = None
    prompt: str = ""
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    resolution: str = DEFAULT_RESOLUTION
    style_preset: str = DEFAULT_STYLE_PRESET
    adjustments: AdjustmentParameters = field(default_factory=AdjustmentParameters)
    transform: TransformParameters = field(default_factory=TransformParameters)
    watermark: WatermarkSpec = field(default_factory=lambda: WatermarkSpec(text=DEFAULT_WATERMARK_TEXT))
    show_watermark: bool = False
    selection_mode: bool = False
    selected_ids: FrozenSet[int] = frozenset()
    error: Optional[str] = None
    last_outcome: Optional[PersistOutcome] = None

    @property
    def history_ids(self) -> Tuple[int, ...]:
        return tuple(item.created_at_ms for item in self.history)

    @property
    def has_pending_edit(self) -> bool:
        return not (self.adjustments.is_identity() and self.transform.is_identity())


@dataclass(frozen=True)
class GenerationCompleted:
    artifact: GeneratedArtifact


@dataclass(frozen=True)
class HistoryCommitted:
    committed: CommittedHistory


@dataclass(frozen=True)
class HistoryCleared:
    outcome: PersistOutcome


@dataclass(frozen=True)
class RestoreArtifact:
    artifact: GeneratedArtifact


@dataclass(frozen=True)
class SetPrompt:
    prompt: str


@dataclass(frozen=True)
class SetSelectionMode:
    enabled: bool


@dataclass(frozen=True)
class ToggleSelection:
    created_at_ms: int


@dataclass(frozen=True)
class SelectAll:
    pass


@dataclass(frozen=True)
class SetAdjustments:
    adjustments: AdjustmentParameters


@dataclass(frozen=True)
class ResetAdjustments:
    pass


@dataclass(frozen=True)
class SetTransform:
    transform: TransformParameters


@dataclass(frozen=True)
class SetWatermark:
    watermark: WatermarkSpec


@dataclass(frozen=True)
class SetShowWatermark:
    enabled: bool


@dataclass(frozen=True)
class SetError:
    message: Optional[str]


def _generation_completed(state: AppState, action: GenerationCompleted) -> AppState:
    return replace(
        state,
        current=action.artifact,
        adjustments=AdjustmentParameters(),
        transform=TransformParameters(),
        error=None,
    )


def _history_committed(state: AppState, action: HistoryCommitted) -> AppState:
    items = tuple(action.committed.items)
    surviving = frozenset(item.created_at_ms for item in items)
    return replace(
        state,
        history=items,
        selected_ids=state.selected_ids & surviving,
        last_outcome=action.committed.outcome,
    )


def _history_cleared(state: AppState, action: HistoryCleared) -> AppState:
    return replace(
        state,
        history=(),
        selection_mode=False,
        selected_ids=frozenset(),
        last_outcome=action.outcome,
    )


def _restore_artifact(state: AppState, action: RestoreArtifact) -> AppState:
    if state.selection_mode:
        return state

    settings = action.artifact.restore_settings()
    try:
        watermark = replace(
            state.watermark,
            effect=settings["watermark_effect"],
            opacity_percent=settings["watermark_opacity"],
            position=settings["watermark_position"],
            size=settings["watermark_size"],
        )
    except ValueError:
        # Records written by other versions may carry unknown watermark names
        watermark = state.watermark
    return replace(
        state,
        current=action.artifact,
        prompt=settings["prompt"],
        aspect_ratio=settings["aspect_ratio"],
        resolution=settings["resolution"],
        style_preset=settings["style_preset"],
        watermark=watermark,
        adjustments=AdjustmentParameters(),
        transform=TransformParameters(),
        error=None,
    )


def _set_prompt(state: AppState, action: SetPrompt) -> AppState:
    return replace(state, prompt=action.prompt)


def _set_selection_mode(state: AppState, action: SetSelectionMode) -> AppState:
    if action.enabled:
        return replace(state, selection_mode=True)
    return replace(state, selection_mode=False, selected_ids=frozenset())


def _toggle_selection(state: AppState, action: ToggleSelection) -> AppState:
    if action.created_at_ms not in state.history_ids:
        return state
    return replace(state, selected_ids=state.selected_ids ^ {action.created_at_ms})


def _select_all(state: AppState, action: SelectAll) -> AppState:
    every_id = frozenset(state.history_ids)
    if every_id and state.selected_ids == every_id:
        return replace(state, selected_ids=frozenset())
    return replace(state, selected_ids=every_id)


def _set_adjustments(state: AppState, action: SetAdjustments) -> AppState:
    return replace(state, adjustments=action.adjustments.clamped())


def _reset_adjustments(state: AppState, action: ResetAdjustments) -> AppState:
    return replace(state, adjustments=AdjustmentParameters(), transform=TransformParameters())


def _set_transform(state: AppState, action: SetTransform) -> AppState:
    return replace(state, transform=action.transform)


def _set_watermark(state: AppState, action: SetWatermark) -> AppState:
    return replace(state, watermark=action.watermark)


def _set_show_watermark(state: AppState, action: SetShowWatermark) -> AppState:
    return replace(state, show_watermark=bool(action.enabled))


def _set_error(state: AppState, action: SetError) -> AppState:
    return replace(state, error=action.message)


_REDUCERS: Dict[Type, Callable[[AppState, object], AppState]] = {
    GenerationCompleted: _generation_completed,
    HistoryCommitted: _history_committed,
    HistoryCleared: _history_cleared,
    RestoreArtifact: _restore_artifact,
    SetPrompt: _set_prompt,
    SetSelectionMode: _set_selection_mode,
    ToggleSelection: _toggle_selection,
    SelectAll: _select_all,
    SetAdjustments: _set_adjustments,
    ResetAdjustments: _reset_adjustments,
    SetTransform: _set_transform,
    SetWatermark: _set_watermark,
    SetShowWatermark: _set_show_watermark,
    SetError: _set_error,
}


def reduce(state: AppState, action: object) -> AppState:
    """
    Apply an action to a state.

    Args:
        state: Current state
        action: One of the action dataclasses in this module

    Returns:
        The next state (the same object when the action changes nothing)

    Raises:
        TypeError: If the action type is not known
    """
    handler = _REDUCERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    return handler(state, action)


def active_watermark(state: AppState) -> Optional[WatermarkSpec]:
    """The watermark downloads should carry, or None."""
    if not state.show_watermark or state.watermark.is_blank:
        return None
    return state.watermark
