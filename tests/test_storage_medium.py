"""
Unit tests for storage media.

Tests the in-memory quota medium, the JSON file medium and the
process-wide default medium.
"""

import pytest

from TD_Libs.constants import DEFAULT_STORAGE_QUOTA_CHARS
from TD_Libs.exceptions import QuotaExceededError
from TD_Libs.HistoryStoreLib.storage_medium import (
    InMemoryMedium,
    JsonFileMedium,
    get_default_medium,
    reset_default_medium,
)


class TestInMemoryMedium:
    """Tests for InMemoryMedium."""

    def test_set_and_get(self):
        medium = InMemoryMedium()
        medium.set_item("key", "value")

        assert medium.get_item("key") == "value"

    def test_missing_key_is_none(self):
        assert InMemoryMedium().get_item("nothing") is None

    def test_usage_counts_keys_and_values(self):
        medium = InMemoryMedium()
        medium.set_item("ab", "cde")

        assert medium.usage() == 5

    def test_quota_rejects_large_value(self):
        medium = InMemoryMedium(quota_chars=10)

        with pytest.raises(QuotaExceededError) as info:
            medium.set_item("key", "x" * 8)

        assert info.value.required == 11
        assert info.value.quota == 10
        assert medium.get_item("key") is None

    def test_overwrite_does_not_count_old_value(self):
        medium = InMemoryMedium(quota_chars=10)
        medium.set_item("k", "x" * 9)

        medium.set_item("k", "y" * 9)

        assert medium.get_item("k") == "y" * 9

    def test_other_keys_count_toward_quota(self):
        medium = InMemoryMedium(quota_chars=10)
        medium.set_item("a", "1234")

        with pytest.raises(QuotaExceededError):
            medium.set_item("b", "123456")

    def test_remove_missing_key_ignored(self):
        medium = InMemoryMedium()

        medium.remove_item("missing")

        assert medium.usage() == 0

    def test_unlimited_quota(self):
        medium = InMemoryMedium(quota_chars=None)
        medium.set_item("big", "x" * 100_000)

        assert len(medium.get_item("big")) == 100_000


class TestJsonFileMedium:
    """Tests for JsonFileMedium."""

    def test_creates_directory(self, tmp_path):
        JsonFileMedium(tmp_path / "store")

        assert (tmp_path / "store").is_dir()

    def test_set_and_get(self, tmp_path):
        medium = JsonFileMedium(tmp_path)
        medium.set_item("history", "[1, 2]")

        assert medium.get_item("history") == "[1, 2]"
        assert (tmp_path / "history.json").exists()

    def test_missing_key_is_none(self, tmp_path):
        assert JsonFileMedium(tmp_path).get_item("history") is None

    def test_key_sanitized(self, tmp_path):
        medium = JsonFileMedium(tmp_path)

        assert medium.path_for("my history/../x").name == "my_history____x.json"

    def test_unusable_key_raises(self, tmp_path):
        with pytest.raises(ValueError):
            JsonFileMedium(tmp_path).path_for("///")

    def test_quota_in_bytes(self, tmp_path):
        medium = JsonFileMedium(tmp_path, quota_bytes=8)
        medium.set_item("a", "1234")

        with pytest.raises(QuotaExceededError):
            medium.set_item("b", "123456")
        assert medium.get_item("b") is None

    def test_overwrite_within_quota(self, tmp_path):
        medium = JsonFileMedium(tmp_path, quota_bytes=8)
        medium.set_item("a", "12345678")

        medium.set_item("a", "87654321")

        assert medium.get_item("a") == "87654321"

    def test_remove(self, tmp_path):
        medium = JsonFileMedium(tmp_path)
        medium.set_item("history", "[]")

        medium.remove_item("history")
        medium.remove_item("history")

        assert medium.get_item("history") is None

    def test_no_temp_files_left(self, tmp_path):
        medium = JsonFileMedium(tmp_path)
        medium.set_item("history", "[]")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["history.json"]


class TestDefaultMedium:
    """Tests for the process-wide medium."""

    def setup_method(self):
        reset_default_medium()

    def teardown_method(self):
        reset_default_medium()

    def test_created_lazily_once(self):
        first = get_default_medium()

        assert get_default_medium() is first
        assert isinstance(first, InMemoryMedium)
        assert first.quota_chars == DEFAULT_STORAGE_QUOTA_CHARS

    def test_reset_creates_new_medium(self):
        first = get_default_medium()
        reset_default_medium()

        assert get_default_medium() is not first
