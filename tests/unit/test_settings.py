"""
Tests for the settings validation framework and TimelineSettingsManager.
"""
from dataclasses import dataclass

import pytest

from timeline_diagram.settings.base_settings import (
    BaseSettings,
    BaseSettingsManager,
    FieldValidator,
    ValidationResult,
    validated_field,
)
from timeline_diagram.settings.timeline_settings import TimelineSettings, TimelineSettingsManager
from timeline_diagram.timing.units import BaseTimeUnit


@pytest.fixture
def qapp():
    """Ensure a Qt application exists for signals."""
    from PyQt6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class InMemoryPreferences:
    def __init__(self, data=None):
        self.data = dict(data or {})
        self.writes = 0

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value):
        self.writes += 1
        self.data[key] = value


class FailingPreferences(InMemoryPreferences):
    def set(self, key, value):
        raise OSError("disk full")


class TestValidationResult:

    def test_warning_keeps_valid(self):
        result = ValidationResult()
        result.add_warning("careful")
        assert result
        assert result.warnings == ["careful"]

    def test_merge_invalid(self):
        result = ValidationResult()
        other = ValidationResult()
        other.add_error("bad")
        result.merge(other)
        assert not result
        assert result.errors == ["bad"]


class TestFieldValidator:

    def test_range(self):
        validator = FieldValidator(min_value=0, max_value=10)
        assert validator.validate(5, "v").valid
        assert not validator.validate(-1, "v").valid
        assert not validator.validate(11, "v").valid

    def test_choices(self):
        validator = FieldValidator(choices=[BaseTimeUnit.SECONDS, "ms"])
        assert validator.validate("s", "unit").valid
        assert validator.validate(BaseTimeUnit.MILLISECONDS, "unit").valid
        assert not validator.validate("weeks", "unit").valid

    def test_none_handling(self):
        assert FieldValidator().validate(None, "v").valid
        assert not FieldValidator(allow_none=False).validate(None, "v").valid

    def test_advisory_only_warns(self):
        validator = FieldValidator(advisory=lambda value, name: f"{name} is odd" if value % 2 else None)
        result = validator.validate(3, "count")
        assert result.valid
        assert result.warnings == ["count is odd"]


class TestBaseSettings:

    @dataclass
    class Sample(BaseSettings):
        volume: int = validated_field(50, min_value=0, max_value=100)
        name: str = "default"

    def test_from_dict_ignores_unknown_and_fills_missing(self):
        settings = self.Sample.from_dict({'volume': 70, 'retired_field': True})
        assert settings.volume == 70
        assert settings.name == "default"

    def test_validate_field(self):
        settings = self.Sample(volume=150)
        assert not settings.validate_field('volume').valid
        assert settings.validate_field('name').valid
        with pytest.raises(AttributeError):
            settings.validate_field('missing')


class TestTimelineSettings:

    def test_defaults(self):
        settings = TimelineSettings()
        assert settings.compression_threshold == 500
        assert settings.base_unit is BaseTimeUnit.MILLISECONDS
        assert settings.trailing_space == 1000
        assert settings.ruler_min_spacing_px == 60
        assert settings.ruler_max_ticks == 360
        assert settings.is_valid()

    def test_non_positive_threshold_is_a_warning(self):
        result = TimelineSettings(compression_threshold=0).validate()
        assert result.valid
        assert any("compresses every idle span" in warning for warning in result.warnings)

    def test_non_finite_threshold_is_an_error(self):
        assert not TimelineSettings(compression_threshold=float('nan')).is_valid()

    def test_inverted_zoom_limits(self):
        assert not TimelineSettings(min_pixels_per_ms=10, max_pixels_per_ms=1).is_valid()

    def test_unknown_base_unit(self):
        assert not TimelineSettings(base_time_unit="weeks").is_valid()


class TestTimelineSettingsManager:

    def test_requires_namespace(self, qapp):
        class Nameless(BaseSettingsManager):
            SETTINGS_CLASS = TimelineSettings

        with pytest.raises(ValueError):
            Nameless()

    def test_loads_stored_settings(self, qapp):
        store = InMemoryPreferences({'timeline.settings': {'compression_threshold': 750, 'base_time_unit': 's'}})
        manager = TimelineSettingsManager(store)
        assert manager.is_loaded()
        assert manager.compression_threshold == 750
        assert manager.base_time_unit is BaseTimeUnit.SECONDS

    def test_invalid_stored_settings_fall_back_to_defaults(self, qapp):
        store = InMemoryPreferences({'timeline.settings': {'trailing_space': -5}})
        manager = TimelineSettingsManager(store)
        assert manager.trailing_space == 1000

    def test_setter_saves_synchronously_and_signals(self, qapp):
        store = InMemoryPreferences()
        manager = TimelineSettingsManager(store)
        changed = []
        manager.settings_changed.connect(changed.append)

        manager.compression_threshold = 900
        assert changed == ['compression_threshold']
        assert store.data['timeline.settings']['compression_threshold'] == 900

    def test_unchanged_value_does_not_save(self, qapp):
        store = InMemoryPreferences()
        manager = TimelineSettingsManager(store)
        manager.compression_threshold = 500
        assert store.writes == 0

    def test_invalid_value_is_reverted(self, qapp):
        manager = TimelineSettingsManager()
        failures = []
        manager.validation_failed.connect(failures.append)

        manager.trailing_space = -1
        assert manager.trailing_space == 1000
        assert len(failures) == 1
        assert not failures[0].valid

    def test_base_unit_accepts_enum(self, qapp):
        manager = TimelineSettingsManager()
        manager.base_time_unit = BaseTimeUnit.HOURS
        assert manager.get('base_time_unit') == "h"

    def test_set_validated_unknown_key(self, qapp):
        result = TimelineSettingsManager().set_validated('nope', 1)
        assert not result.valid

    def test_save_failure_is_signalled(self, qapp):
        manager = TimelineSettingsManager(FailingPreferences())
        errors = []
        manager.settings_save_failed.connect(errors.append)
        manager.compression_threshold = 800
        assert manager.compression_threshold == 800
        assert errors == ["disk full"]

    def test_reset_to_defaults(self, qapp):
        manager = TimelineSettingsManager()
        manager.compression_threshold = 800
        manager.reset_to_defaults()
        assert manager.compression_threshold == 500
