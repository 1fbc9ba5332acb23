"""
Timeline Settings

Single source of truth for diagram timing configuration: compression
threshold, base time unit, trailing space and the display limits the
mapper and ruler read.

Settings are:
- Per-editor (not per-diagram; per-diagram state lives in the session)
- Persisted through an optional preferences store
- Type-safe via dataclass schema

Usage:
    settings = TimelineSettingsManager(preferences_store)
    threshold = settings.compression_threshold
    settings.compression_threshold = 750  # persists, emits settings_changed
    settings.settings_changed.connect(my_handler)
"""
from dataclasses import dataclass
from typing import Any, Optional

from ..constants import (
    ALIGNMENT_SNAP_THRESHOLD_PX,
    DEFAULT_COMPRESSION_THRESHOLD,
    DEFAULT_TIME_FORMAT_THRESHOLD,
    DEFAULT_TRAILING_SPACE,
    MAX_PIXELS_PER_MS,
    MIN_BOX_WIDTH_PX,
    MIN_PIXELS_PER_MS,
    RULER_MAX_TICKS,
    RULER_MIN_SPACING_PX,
)
from ..interfaces import PreferencesStoreInterface
from ..timing.units import BaseTimeUnit
from ..types import is_finite_number
from .base_settings import BaseSettings, BaseSettingsManager, validated_field


def _finite(value: Any, field_name: str) -> Optional[str]:
    if not is_finite_number(value):
        return f"{field_name}: Must be a finite number, got {value!r}"
    return None


def _threshold_advisory(value: Any, field_name: str) -> Optional[str]:
    if is_finite_number(value) and value <= 0:
        return f"{field_name}: {value} compresses every idle span, however small"
    return None


# =============================================================================
# Settings Schema (Dataclass)
# =============================================================================

@dataclass
class TimelineSettings(BaseSettings):
    """
    Timing settings schema.

    All fields have defaults so older stored data keeps loading.
    """

    # Compression
    compression_threshold: float = validated_field(
        DEFAULT_COMPRESSION_THRESHOLD, custom=_finite, advisory=_threshold_advisory, allow_none=False)

    # Units
    base_time_unit: str = validated_field(
        BaseTimeUnit.MILLISECONDS.value, choices=[unit.value for unit in BaseTimeUnit], allow_none=False)

    # Extents
    trailing_space: float = validated_field(DEFAULT_TRAILING_SPACE, min_value=0, custom=_finite)
    time_format_threshold: float = validated_field(DEFAULT_TIME_FORMAT_THRESHOLD, min_value=0, custom=_finite)

    # Zoom limits (pixels per millisecond)
    min_pixels_per_ms: float = validated_field(MIN_PIXELS_PER_MS, min_value=1e-9, custom=_finite)
    max_pixels_per_ms: float = validated_field(MAX_PIXELS_PER_MS, min_value=1e-9, custom=_finite)

    # Ruler
    ruler_min_spacing_px: float = validated_field(RULER_MIN_SPACING_PX, min_value=1)
    ruler_max_ticks: int = validated_field(RULER_MAX_TICKS, min_value=2)

    # Interaction / rendering
    min_box_width_px: float = validated_field(MIN_BOX_WIDTH_PX, min_value=0)
    alignment_snap_px: float = validated_field(ALIGNMENT_SNAP_THRESHOLD_PX, min_value=0)

    def validate(self):
        result = super().validate()
        if (is_finite_number(self.min_pixels_per_ms) and is_finite_number(self.max_pixels_per_ms)
                and self.min_pixels_per_ms > self.max_pixels_per_ms):
            result.add_error(
                f"min_pixels_per_ms: {self.min_pixels_per_ms} exceeds max_pixels_per_ms {self.max_pixels_per_ms}"
            )
        return result

    @property
    def base_unit(self) -> BaseTimeUnit:
        return BaseTimeUnit.from_name(self.base_time_unit)


# =============================================================================
# Settings Manager
# =============================================================================

class TimelineSettingsManager(BaseSettingsManager):
    """
    Manager for timing settings.

    Signals (inherited):
        settings_changed(str): Emitted when a setting changes (setting name)
        settings_loaded(): Emitted when settings are loaded from storage
    """

    NAMESPACE = "timeline"
    SETTINGS_CLASS = TimelineSettings

    def __init__(self, preferences_store: Optional[PreferencesStoreInterface] = None, parent=None):
        super().__init__(preferences_store, parent)

    # =========================================================================
    # Public API - Property Access (Type-Safe)
    # =========================================================================

    @property
    def compression_threshold(self) -> float:
        return self._settings.compression_threshold

    @compression_threshold.setter
    def compression_threshold(self, value: float):
        self.set_validated('compression_threshold', value)

    @property
    def base_time_unit(self) -> BaseTimeUnit:
        return self._settings.base_unit

    @base_time_unit.setter
    def base_time_unit(self, value):
        if isinstance(value, BaseTimeUnit):
            value = value.value
        self.set_validated('base_time_unit', value)

    @property
    def trailing_space(self) -> float:
        return self._settings.trailing_space

    @trailing_space.setter
    def trailing_space(self, value: float):
        self.set_validated('trailing_space', value)

    @property
    def time_format_threshold(self) -> float:
        return self._settings.time_format_threshold

    @time_format_threshold.setter
    def time_format_threshold(self, value: float):
        self.set_validated('time_format_threshold', value)

    @property
    def min_pixels_per_ms(self) -> float:
        return self._settings.min_pixels_per_ms

    @property
    def max_pixels_per_ms(self) -> float:
        return self._settings.max_pixels_per_ms

    @property
    def ruler_min_spacing_px(self) -> float:
        return self._settings.ruler_min_spacing_px

    @property
    def ruler_max_ticks(self) -> int:
        return self._settings.ruler_max_ticks

    @property
    def min_box_width_px(self) -> float:
        return self._settings.min_box_width_px

    @property
    def alignment_snap_px(self) -> float:
        return self._settings.alignment_snap_px

    @alignment_snap_px.setter
    def alignment_snap_px(self, value: float):
        self.set_validated('alignment_snap_px', value)
