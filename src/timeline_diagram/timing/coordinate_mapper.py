"""
Coordinate Mapper

Bidirectional conversion between time (actual or visual) and pixels,
parameterized by a zoom scale and the granularity of the active base
time unit. Owns zoom clamping and the fit-to-view toggle.

Design:
- The compression engine is injected; the mapper never reaches into
  session state
- scale is pixels per granularity unit, granularity comes from the
  base unit table
- Every scale write goes through one clamp to [min_scale, max_scale]
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from ..compression.engine import CompressionEngine
from ..constants import (
    DEFAULT_TRAILING_SPACE,
    FIT_MARGIN_FACTOR,
    MAX_PIXELS_PER_MS,
    MIN_BOX_WIDTH_PX,
    MIN_PIXELS_PER_MS,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)
from ..types import ViewState, finite_or_default, is_finite_number
from ..utils.message import Log
from .time_converter import TimeConverter
from .units import BaseTimeUnit


@dataclass
class CoordinateState:
    """
    Zoom state of an editor session.

    Attributes:
        scale: Pixels per granularity unit
        granularity: Milliseconds per granularity unit
        min_scale: Lower zoom bound (pixels per granularity unit)
        max_scale: Upper zoom bound (pixels per granularity unit)
    """
    scale: float
    granularity: float
    min_scale: float
    max_scale: float

    @property
    def pixels_per_ms(self) -> float:
        return self.scale / self.granularity


class CoordinateMapper:
    """
    Time <-> pixel conversion shared by every consumer of a diagram session.
    """

    def __init__(
        self,
        compression_engine: CompressionEngine,
        base_unit: BaseTimeUnit = BaseTimeUnit.MILLISECONDS,
        scale: Optional[float] = None,
        min_pixels_per_ms: float = MIN_PIXELS_PER_MS,
        max_pixels_per_ms: float = MAX_PIXELS_PER_MS,
        trailing_space: float = DEFAULT_TRAILING_SPACE,
        min_box_width: float = MIN_BOX_WIDTH_PX
    ):
        """
        Initialize the mapper.

        Args:
            compression_engine: Engine providing visual offsets and inverse mapping
            base_unit: Active base time unit (determines granularity)
            scale: Initial pixels per granularity unit (None = unit default)
            min_pixels_per_ms: Zoom-out bound expressed per millisecond
            max_pixels_per_ms: Zoom-in bound expressed per millisecond
            trailing_space: Extra visual time after the last interval (ms)
            min_box_width: Minimum rendered interval width (px)
        """
        self.compression = compression_engine
        self.trailing_space = max(0.0, finite_or_default(trailing_space, DEFAULT_TRAILING_SPACE, "trailing space"))
        self.min_box_width = min_box_width
        self._min_pixels_per_ms = min_pixels_per_ms
        self._max_pixels_per_ms = max_pixels_per_ms

        self._base_unit = base_unit
        granularity = base_unit.granularity
        self._state = CoordinateState(
            scale=base_unit.spec.default_scale,
            granularity=granularity,
            min_scale=min_pixels_per_ms * granularity,
            max_scale=max_pixels_per_ms * granularity,
        )
        if scale is not None:
            self._state.scale = self._clamp_scale(scale)

        self._fit_mode_active = False
        self._prior_scale: Optional[float] = None
        self._prior_scroll_offset: Optional[float] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> CoordinateState:
        return self._state

    @property
    def scale(self) -> float:
        return self._state.scale

    @property
    def granularity(self) -> float:
        return self._state.granularity

    @property
    def base_unit(self) -> BaseTimeUnit:
        return self._base_unit

    @property
    def default_scale(self) -> float:
        return self._base_unit.spec.default_scale

    @property
    def fit_mode_active(self) -> bool:
        return self._fit_mode_active

    def set_base_unit(self, base_unit: BaseTimeUnit) -> None:
        """
        Switch the base time unit, keeping the on-screen pixels per millisecond.
        """
        if base_unit == self._base_unit:
            return
        pixels_per_ms = self._state.pixels_per_ms
        granularity = base_unit.granularity
        self._base_unit = base_unit
        self._state.granularity = granularity
        self._state.min_scale = self._min_pixels_per_ms * granularity
        self._state.max_scale = self._max_pixels_per_ms * granularity
        self._state.scale = self._clamp_scale(pixels_per_ms * granularity)
        Log.debug(f"CoordinateMapper: Base unit {base_unit.value}, granularity {granularity:g}ms")

    def _clamp_scale(self, scale: Any) -> float:
        scale = finite_or_default(scale, self.default_scale, "scale")
        return max(self._state.min_scale, min(self._state.max_scale, scale))

    def set_scale(self, scale: float) -> float:
        """Set the zoom scale (clamped) and return the applied value."""
        self._state.scale = self._clamp_scale(scale)
        return self._state.scale

    # =========================================================================
    # Conversion
    # =========================================================================

    def ms_to_pixels(self, ms: float) -> float:
        """Convert a (visual) time to pixels."""
        return (ms / self._state.granularity) * self._state.scale

    def pixels_to_ms(self, px: float) -> float:
        """Convert pixels to a (visual) time."""
        return (px / self._state.scale) * self._state.granularity

    def actual_to_pixels(self, actual_time: float) -> float:
        """Pixel position of an actual time, after compression."""
        return self.ms_to_pixels(self.compression.get_visual_time(actual_time))

    def pixels_to_actual(self, px: float) -> float:
        """Actual time under a pixel position, undoing compression."""
        return self.compression.compressed_to_actual(self.pixels_to_ms(px))

    def interval_geometry(self, interval: Any) -> Tuple[float, float]:
        """
        Rendered (left, width) of an interval in pixels.

        Width never drops below min_box_width.
        """
        _, duration = self.compression.sanitize(interval)
        left = self.ms_to_pixels(self.compression.get_visual_offset(interval))
        width = max(self.ms_to_pixels(duration), self.min_box_width)
        return left, width

    # =========================================================================
    # Extents
    # =========================================================================

    def visual_end_time(self) -> float:
        """
        End time fit-to-view has to show.

        Compressed duration plus trailing space when compression is enabled,
        the raw total duration otherwise.
        """
        if self.compression.enabled:
            return self.compression.get_compressed_duration() + self.trailing_space
        return self.compression.get_total_duration()

    def content_end_time(self) -> float:
        """Scrollable extent in visual time: displayed duration plus trailing space."""
        if self.compression.enabled:
            duration = self.compression.get_compressed_duration()
        else:
            duration = self.compression.get_total_duration()
        return duration + self.trailing_space

    def content_width(self) -> float:
        return self.ms_to_pixels(self.content_end_time())

    # =========================================================================
    # Zoom
    # =========================================================================

    def zoom(self, factor: float, scroll_offset: float = 0.0, viewport_width: float = 0.0) -> float:
        """
        Multiply the scale by factor, keeping the viewport centre time in place.

        Manual zoom leaves fit mode.

        Returns:
            New scroll offset in pixels (never negative)
        """
        if not is_finite_number(factor) or factor <= 0:
            Log.warning(f"CoordinateMapper: Ignored invalid zoom factor {factor!r}")
            return max(0.0, scroll_offset)

        center_time = self.pixels_to_ms(scroll_offset + viewport_width / 2)
        self.set_scale(self._state.scale * factor)
        self._fit_mode_active = False
        self._prior_scale = None
        self._prior_scroll_offset = None

        Log.debug(f"CoordinateMapper: Zoom x{factor:g} -> scale {self._state.scale:g}")
        return max(0.0, self.ms_to_pixels(center_time) - viewport_width / 2)

    def zoom_in(self, factor: float = ZOOM_IN_FACTOR, scroll_offset: float = 0.0, viewport_width: float = 0.0) -> float:
        return self.zoom(factor, scroll_offset, viewport_width)

    def zoom_out(self, factor: float = ZOOM_OUT_FACTOR, scroll_offset: float = 0.0, viewport_width: float = 0.0) -> float:
        return self.zoom(factor, scroll_offset, viewport_width)

    def compute_fit_scale(self, available_width: float) -> Optional[float]:
        """
        Scale that fits the visual end time into available_width with margin.

        Returns:
            Clamped scale, or None when there is nothing to fit
        """
        end_time = self.visual_end_time()
        if end_time <= 0 or not is_finite_number(available_width) or available_width <= 0:
            return None
        end_in_units = end_time / self._state.granularity
        return self._clamp_scale(available_width / (end_in_units * FIT_MARGIN_FACTOR))

    def fit_to_view(self, available_width: float, scroll_offset: float = 0.0) -> float:
        """
        Toggle fit-to-view.

        The first call stores the manual scale and scroll offset and fits;
        the second restores them exactly.

        Returns:
            Scroll offset to apply
        """
        if self._fit_mode_active:
            restored_scroll = self._prior_scroll_offset or 0.0
            self.set_scale(self._prior_scale if self._prior_scale is not None else self.default_scale)
            self._fit_mode_active = False
            self._prior_scale = None
            self._prior_scroll_offset = None
            Log.debug(f"CoordinateMapper: Fit off, restored scale {self._state.scale:g}")
            return restored_scroll

        fit_scale = self.compute_fit_scale(available_width)
        if fit_scale is None:
            Log.debug("CoordinateMapper: Nothing to fit")
            return scroll_offset

        self._prior_scale = self._state.scale
        self._prior_scroll_offset = scroll_offset
        self._state.scale = fit_scale
        self._fit_mode_active = True
        Log.debug(f"CoordinateMapper: Fit on, scale {fit_scale:g}")
        return 0.0

    # =========================================================================
    # Persistence
    # =========================================================================

    def get_view_state(self) -> ViewState:
        return ViewState(
            scale=self._state.scale,
            fit_mode_active=self._fit_mode_active,
            prior_scale=self._prior_scale,
            prior_scroll_offset=self._prior_scroll_offset,
        )

    def restore_view_state(self, view_state: Union[ViewState, Dict[str, Any], None]) -> ViewState:
        """
        Restore a persisted view state, clamping or replacing invalid values.

        Accepts a ViewState or its dict form (camelCase keys).
        """
        if view_state is None:
            return self.get_view_state()
        if isinstance(view_state, ViewState):
            view_state = view_state.to_dict()

        self._state.scale = self._restore_scale(view_state.get('scale'), "scale")
        self._fit_mode_active = bool(view_state.get('fitModeActive', False))

        prior_scale = view_state.get('priorScale')
        self._prior_scale = self._restore_scale(prior_scale, "prior scale") if prior_scale is not None else None

        prior_scroll = view_state.get('priorScrollOffset')
        if prior_scroll is None:
            self._prior_scroll_offset = None
        else:
            self._prior_scroll_offset = max(0.0, finite_or_default(prior_scroll, 0.0, "prior scroll offset"))

        if not self._fit_mode_active:
            self._prior_scale = None
            self._prior_scroll_offset = None

        Log.debug(f"CoordinateMapper: Restored scale {self._state.scale:g} (fit={self._fit_mode_active})")
        return self.get_view_state()

    def _restore_scale(self, value: Any, name: str) -> float:
        scale = self._clamp_scale(value)
        if is_finite_number(value) and scale != value:
            Log.warning(f"CoordinateMapper: Clamped restored {name} {value} to {scale}")
        return scale

    def format_zoom_level(self) -> str:
        return TimeConverter.format_zoom_level(self._state.scale, self.default_scale)
