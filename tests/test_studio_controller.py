"""
Tests for StudioController.

Tests the effect boundary end to end: recording generations, saving
edits, downloads, batch delete/export and clearing history.
"""

import io
import json
import zipfile

import pytest
from PIL import Image

from TD_Libs.constants import HISTORY_STORAGE_KEY, MIME_PNG
from TD_Libs.exceptions import ImageDecodeError
from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact
from TD_Libs.HistoryStoreLib.history_store import BoundedHistoryStore, PersistStatus
from TD_Libs.HistoryStoreLib.storage_medium import InMemoryMedium
from TD_Libs.ImageEditingLib.image_models import (
    AdjustmentParameters,
    TransformParameters,
    WatermarkSpec,
)
from TD_Libs.StudioStateLib.app_state import (
    AppState,
    SetAdjustments,
    SetPrompt,
    SetSelectionMode,
    SetShowWatermark,
    SetTransform,
    SetWatermark,
    ToggleSelection,
)
from TD_Libs.StudioStateLib.studio_controller import StudioController


@pytest.fixture
def controller(fake_clock):
    return StudioController(BoundedHistoryStore(InMemoryMedium()))


def _size(data):
    return Image.open(io.BytesIO(data)).size


class TestRecordGeneration:
    """Tests for record_generation."""

    def test_records_into_state_and_store(self, controller, png_bytes):
        controller.dispatch(SetPrompt("a lighthouse"))

        artifact = controller.record_generation(png_bytes(), MIME_PNG, seed=9, model="imagen-4")

        state = controller.state
        assert state.current is artifact
        assert state.history == (artifact,)
        assert state.last_outcome.status == PersistStatus.PERSISTED
        assert artifact.prompt == "a lighthouse"
        assert artifact.seed == 9
        assert controller.store.items == (artifact,)

    def test_carries_generation_settings(self, controller, png_bytes):
        controller.dispatch(SetWatermark(WatermarkSpec(text="x", effect="glow", position="center")))

        artifact = controller.record_generation(png_bytes(), MIME_PNG, prompt="override")

        assert artifact.prompt == "override"
        assert artifact.aspect_ratio == "1:1"
        assert artifact.resolution == "hd"
        assert artifact.watermark_effect == "glow"
        assert artifact.watermark_position == "center"

    def test_history_bounded(self, controller, png_bytes):
        for _ in range(8):
            controller.record_generation(png_bytes(), MIME_PNG)

        assert len(controller.state.history) == 5
        assert controller.state.history[0] is controller.state.current

    def test_unknown_tag_raises(self, controller, png_bytes):
        with pytest.raises(TypeError):
            controller.record_generation(png_bytes(), MIME_PNG, colour="red")

    def test_degraded_outcome_visible_in_state(self, fake_clock, png_bytes, item_count_medium):
        medium = item_count_medium(1)
        controller = StudioController(BoundedHistoryStore(medium))

        controller.record_generation(png_bytes(), MIME_PNG)
        controller.record_generation(png_bytes(), MIME_PNG)

        assert controller.state.last_outcome.status == PersistStatus.DEGRADED
        assert len(controller.state.history) == 2
        assert len(json.loads(medium.get_item(HISTORY_STORAGE_KEY))) == 1

    def test_initial_state_loads_history(self, make_artifact):
        store = BoundedHistoryStore(InMemoryMedium())
        store.add(make_artifact(1))

        controller = StudioController(store)

        assert controller.state.history_ids == (1,)

    def test_record_failure(self, controller):
        controller.record_failure("service unavailable")

        assert controller.state.error == "service unavailable"


class TestSaveEdit:
    """Tests for save_edit."""

    def test_nothing_loaded(self, controller):
        assert controller.save_edit() is None

    def test_edit_creates_new_artifact(self, controller, png_bytes):
        original = controller.record_generation(png_bytes(size=(40, 20)), MIME_PNG)
        controller.dispatch(SetAdjustments(AdjustmentParameters(brightness=140)))
        controller.dispatch(SetTransform(TransformParameters(rotation_degrees=90)))

        edited = controller.save_edit()

        assert edited.created_at_ms != original.created_at_ms
        assert _size(edited.image_data) == (20, 40)
        assert controller.state.history_ids == (edited.created_at_ms, original.created_at_ms)
        assert controller.state.current is edited
        assert not controller.state.has_pending_edit

    def test_decode_failure_recorded_and_raised(self, fake_clock):
        broken = GeneratedArtifact(b"not an image", MIME_PNG, "p", 1)
        controller = StudioController(
            BoundedHistoryStore(InMemoryMedium()),
            state=AppState(current=broken, adjustments=AdjustmentParameters(sepia_amount=10)),
        )

        with pytest.raises(ImageDecodeError):
            controller.save_edit()
        assert controller.state.error
        assert controller.store.items == ()


class TestDownload:
    """Tests for download_current."""

    def test_nothing_loaded(self, controller):
        assert controller.download_current() is None

    def test_plain_download(self, controller, png_bytes):
        artifact = controller.record_generation(png_bytes(), MIME_PNG)

        filename, data = controller.download_current()

        assert filename == f"tdanimator-{artifact.created_at_ms}.png"
        assert data == artifact.image_data

    def test_watermarked_download(self, controller, png_bytes):
        artifact = controller.record_generation(png_bytes(size=(200, 100)), MIME_PNG)
        controller.dispatch(SetShowWatermark(True))

        _, data = controller.download_current()

        assert data != artifact.image_data
        assert _size(data) == (200, 100)
        assert controller.store.items[0].image_data == artifact.image_data


class TestBatchOperations:
    """Tests for delete_selected, export_selected and clear_history."""

    @pytest.fixture
    def filled(self, controller, png_bytes):
        artifacts = [controller.record_generation(png_bytes(), MIME_PNG) for _ in range(3)]
        controller.dispatch(SetSelectionMode(True))
        return controller, artifacts

    def test_delete_selected(self, filled):
        controller, artifacts = filled
        controller.dispatch(ToggleSelection(artifacts[0].created_at_ms))
        controller.dispatch(ToggleSelection(artifacts[2].created_at_ms))

        committed = controller.delete_selected()

        assert committed.timestamps == (artifacts[1].created_at_ms,)
        assert controller.state.history_ids == (artifacts[1].created_at_ms,)
        assert not controller.state.selection_mode
        assert controller.state.selected_ids == frozenset()

    def test_delete_with_empty_selection(self, filled):
        controller, _ = filled

        assert controller.delete_selected() is None
        assert len(controller.state.history) == 3

    def test_export_selected(self, filled):
        controller, artifacts = filled
        controller.dispatch(ToggleSelection(artifacts[1].created_at_ms))

        name, data = controller.export_selected(now_ms=123)

        assert name == "tdanimator-gallery-123.zip"
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == [
                f"tdanimator-collection/tdanimator-{artifacts[1].created_at_ms}.png"
            ]

    def test_export_nothing_selected(self, filled):
        controller, _ = filled

        assert controller.export_selected() is None

    def test_clear_history(self, filled):
        controller, _ = filled

        outcome = controller.clear_history()

        assert outcome.status == PersistStatus.PERSISTED
        assert controller.state.history == ()
        assert controller.store.items == ()
        assert controller.state.current is not None
