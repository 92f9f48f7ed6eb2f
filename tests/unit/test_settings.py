"""
Unit tests for timeline settings: schema validation, the settings manager
and the JSON preferences repository.
"""
import json

import pytest
from unittest.mock import MagicMock

from steptimeline import constants
from steptimeline.settings import (
    FieldValidator,
    JsonPreferencesRepository,
    TimelineSettings,
    TimelineSettingsManager,
    ValidationResult,
)
from steptimeline.utils.message import Log


@pytest.fixture(autouse=True)
def restore_log_level():
    level = Log.get_logger().level
    yield
    Log.set_level(level)


class TestTimelineSettings:
    """Tests for the settings schema."""

    def test_defaults_mirror_constants(self):
        settings = TimelineSettings()
        assert settings.viewport_density == constants.VIEWPORT_DENSITY
        assert settings.pan_pixels_per_day == constants.PAN_PIXELS_PER_DAY
        assert settings.min_zoom == constants.MIN_ZOOM
        assert settings.max_zoom == constants.MAX_ZOOM
        assert settings.default_zoom == constants.DEFAULT_ZOOM
        assert settings.min_item_width == constants.MIN_ITEM_WIDTH
        assert settings.rollback_on_failure is False
        assert settings.is_valid()

    def test_non_positive_values_rejected(self):
        result = TimelineSettings(zoom_step=0, viewport_density=-1).validate()
        assert not result.valid
        assert len(result.errors) == 2

    def test_default_zoom_must_lie_within_bounds(self):
        result = TimelineSettings(default_zoom=5.0).validate()
        assert not result.valid
        assert "default_zoom" in result.errors[0]

    def test_log_level_choices(self):
        assert not TimelineSettings(log_level="VERBOSE").is_valid()

    def test_from_dict_ignores_unknown_and_fills_missing(self):
        settings = TimelineSettings.from_dict({"max_zoom": 6.0, "obsolete": True})
        assert settings.max_zoom == 6.0
        assert settings.min_zoom == constants.MIN_ZOOM

    def test_round_trip_dict(self):
        settings = TimelineSettings(item_height=32, rollback_on_failure=True)
        assert TimelineSettings.from_dict(settings.to_dict()) == settings


class TestFieldValidator:
    """Tests for individual validation rules."""

    def test_range(self):
        validator = FieldValidator(min_value=0, max_value=10)
        assert validator.validate(5, "x").valid
        assert not validator.validate(11, "x").valid

    def test_none_rejected_by_default(self):
        assert not FieldValidator().validate(None, "x").valid
        assert FieldValidator(allow_none=True).validate(None, "x").valid

    def test_custom(self):
        validator = FieldValidator(custom=lambda v, name: None if v % 2 == 0 else f"{name}: odd")
        assert validator.validate(4, "x").valid
        assert validator.validate(3, "x").errors == ["x: odd"]

    def test_rules_are_numeric_choice_and_custom_only(self):
        with pytest.raises(TypeError):
            FieldValidator(pattern=r"^\d+$")

    def test_merge(self):
        result = ValidationResult()
        other = ValidationResult()
        other.add_error("bad")
        result.merge(other)
        assert not result
        assert result.errors == ["bad"]


class TestTimelineSettingsManager:
    """Tests for the manager's load/save/validate behaviour."""

    def test_in_memory_without_repository(self, qapp):
        manager = TimelineSettingsManager()
        assert manager.is_loaded()
        assert manager.settings == TimelineSettings()

    def test_loads_stored_values(self, qapp):
        repo = MagicMock()
        repo.get.return_value = {"max_zoom": 6.0, "rollback_on_failure": True}

        manager = TimelineSettingsManager(repo)

        repo.get.assert_called_once_with("timeline.settings", {})
        assert manager.settings.max_zoom == 6.0
        assert manager.rollback_on_failure is True

    def test_invalid_stored_values_fall_back_to_defaults(self, qapp):
        repo = MagicMock()
        repo.get.return_value = {"zoom_step": -1}

        manager = TimelineSettingsManager(repo)

        assert manager.settings.zoom_step == constants.ZOOM_STEP

    def test_set_validated_rejects_and_keeps_old_value(self, qapp):
        manager = TimelineSettingsManager()
        failed = MagicMock()
        manager.validation_failed.connect(failed)

        result = manager.set_validated("min_zoom", 2.0)

        assert not result.valid
        assert manager.settings.min_zoom == constants.MIN_ZOOM
        failed.assert_called_once()

    def test_set_validated_saves_after_debounce(self, qapp):
        repo = MagicMock()
        repo.get.return_value = {}
        manager = TimelineSettingsManager(repo)
        changed = []
        manager.settings_changed.connect(changed.append)

        assert manager.set_validated("max_zoom", 8.0)

        assert changed == ["max_zoom"]
        assert manager.has_pending_save()
        repo.set.assert_not_called()

        manager.force_save()

        repo.set.assert_called_once()
        key, data = repo.set.call_args[0]
        assert key == "timeline.settings"
        assert data["max_zoom"] == 8.0
        assert not manager.has_pending_save()

    def test_unknown_key(self, qapp):
        result = TimelineSettingsManager().set_validated("nope", 1)
        assert not result.valid

    def test_settings_snapshot_is_a_copy(self, qapp):
        manager = TimelineSettingsManager()
        snapshot = manager.settings
        snapshot.max_zoom = 99
        assert manager.settings.max_zoom == constants.MAX_ZOOM

    def test_log_level_applied(self, qapp):
        import logging
        manager = TimelineSettingsManager()
        manager.log_level = "debug"
        assert manager.log_level == "DEBUG"
        assert Log.get_logger().level == logging.DEBUG


class TestJsonPreferencesRepository:
    """Tests for the JSON file repository."""

    def test_missing_file_starts_empty(self, tmp_path):
        repo = JsonPreferencesRepository(tmp_path / "prefs.json")
        assert repo.get("timeline.settings", {}) == {}

    def test_set_persists_to_disk(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        JsonPreferencesRepository(path).set("timeline.settings", {"max_zoom": 5.0})

        assert json.loads(path.read_text(encoding="utf-8")) == {"timeline.settings": {"max_zoom": 5.0}}
        assert JsonPreferencesRepository(path).get("timeline.settings") == {"max_zoom": 5.0}

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonPreferencesRepository(path).get_all() == {}

    def test_manager_round_trip(self, qapp, tmp_path):
        path = tmp_path / "prefs.json"
        manager = TimelineSettingsManager(JsonPreferencesRepository(path))
        manager.set_validated("item_height", 32)
        manager.force_save()

        reloaded = TimelineSettingsManager(JsonPreferencesRepository(path))
        assert reloaded.settings.item_height == 32
