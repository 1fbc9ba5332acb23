"""
Ruler Interval Selector

Picks a human-friendly tick spacing for the ruler from the current
scale and the visual end time, and classifies ticks as major or minor.

Design:
- Candidates are a fixed ascending list (sub-millisecond to multi-year)
  plus multiples of the base unit, its granularity and the display threshold
- Selection: smallest candidate with tick count <= max and pixel spacing
  >= min; else smallest with an acceptable count; else end / (max - 1)
- Major interval aligns to the first unit boundary (the base unit or a
  larger unit) that is an exact multiple of the tick interval, otherwise
  every 5th tick
- Ticks are generated by integer index (i * interval), never by repeated
  addition
"""

from typing import List, Optional

from ..constants import (
    DEFAULT_MIN_TIMELINE_MS,
    DEFAULT_TIME_FORMAT_THRESHOLD,
    MAJOR_TICK_MULTIPLIER,
    MAX_MAJOR_TICK_RATIO,
    RULER_INTERVALS_MS,
    RULER_MAX_TICKS,
    RULER_MIN_SPACING_PX,
    THRESHOLD_INTERVAL_MULTIPLES,
    TICK_EPSILON,
    UNIT_INTERVAL_MULTIPLES,
)
from ..types import BreakMarker, RulerTick, finite_or_default
from ..utils.message import Log
from .coordinate_mapper import CoordinateMapper
from .time_converter import TimeConverter
from .units import unit_and_parents, unit_ms


class RulerIntervalSelector:
    """
    Chooses ruler tick spacing and builds ruler ticks for a coordinate mapper.
    """

    def __init__(
        self,
        mapper: CoordinateMapper,
        min_spacing_px: float = RULER_MIN_SPACING_PX,
        max_ticks: int = RULER_MAX_TICKS,
        display_threshold: float = DEFAULT_TIME_FORMAT_THRESHOLD
    ):
        """
        Initialize the selector.

        Args:
            mapper: Coordinate mapper providing scale and granularity
            min_spacing_px: Minimum acceptable pixel distance between ticks
            max_ticks: Maximum number of ticks on the ruler
            display_threshold: Duration at which labels switch from ms to seconds
        """
        self.mapper = mapper
        self.min_spacing_px = min_spacing_px
        self.max_ticks = max(2, int(max_ticks))
        self.display_threshold = display_threshold

    # =========================================================================
    # Candidates
    # =========================================================================

    def get_candidates(self) -> List[float]:
        """Ascending, de-duplicated candidate intervals in ms."""
        base_unit = self.mapper.base_unit
        candidates = set(float(value) for value in RULER_INTERVALS_MS)

        for step in (base_unit.unit_ms, base_unit.granularity):
            candidates.update(step * multiple for multiple in UNIT_INTERVAL_MULTIPLES)

        if self.display_threshold and self.display_threshold > 0:
            candidates.update(self.display_threshold * multiple for multiple in THRESHOLD_INTERVAL_MULTIPLES)

        return sorted(candidates)

    # =========================================================================
    # Selection
    # =========================================================================

    def tick_count(self, end_time: float, interval: float) -> int:
        """Number of ticks from 0 to end_time inclusive."""
        if end_time <= 0:
            return 1
        return int(end_time // interval) + 1

    def select_interval(self, end_time: float, scale: Optional[float] = None) -> float:
        """
        Pick the tick interval for a ruler ending at end_time.

        Args:
            end_time: Visual end time in ms
            scale: Scale to evaluate (defaults to the mapper's current scale)

        Returns:
            Tick interval in ms
        """
        end_time = max(0.0, finite_or_default(end_time, 0.0, "ruler end time"))
        scale = self.mapper.scale if scale is None else finite_or_default(scale, self.mapper.scale, "ruler scale")
        granularity = self.mapper.granularity
        candidates = self.get_candidates()

        for interval in candidates:
            spacing = (interval / granularity) * scale
            if self.tick_count(end_time, interval) <= self.max_ticks and spacing >= self.min_spacing_px:
                return interval

        for interval in candidates:
            if self.tick_count(end_time, interval) <= self.max_ticks:
                Log.debug(f"RulerIntervalSelector: No candidate clears {self.min_spacing_px}px, using {interval:g}ms")
                return interval

        fallback = end_time / (self.max_ticks - 1)
        Log.debug(f"RulerIntervalSelector: Synthesized interval {fallback:g}ms")
        return fallback

    def get_major_interval(self, interval: float) -> float:
        """
        Coarser interval used to mark major ticks.
        """
        for unit in unit_and_parents(self.mapper.base_unit.spec.unit):
            boundary = unit_ms(unit)
            ratio = boundary / interval
            if 1 < ratio <= MAX_MAJOR_TICK_RATIO and abs(ratio - round(ratio)) < TICK_EPSILON:
                return boundary
        return interval * MAJOR_TICK_MULTIPLIER

    @staticmethod
    def is_major(time: float, major_interval: float) -> bool:
        """True when time is (within epsilon) a multiple of major_interval."""
        if major_interval <= 0:
            return False
        ratio = time / major_interval
        return abs(ratio - round(ratio)) < TICK_EPSILON

    # =========================================================================
    # Ticks
    # =========================================================================

    def display_end_time(self) -> float:
        """Ruler extent: displayed duration (at least the minimum timeline) plus trailing space."""
        compression = self.mapper.compression
        if compression.enabled:
            duration = compression.get_compressed_duration()
        else:
            duration = compression.get_total_duration()
        return max(duration, DEFAULT_MIN_TIMELINE_MS) + self.mapper.trailing_space

    def build_ticks(self, end_time: Optional[float] = None) -> List[RulerTick]:
        """
        Ruler ticks at visual positions, labelled with actual times.

        Args:
            end_time: Visual end time (defaults to display_end_time())
        """
        if end_time is None:
            end_time = self.display_end_time()
        interval = self.select_interval(end_time)
        major_interval = self.get_major_interval(interval)
        compression = self.mapper.compression

        count = min(self.tick_count(end_time, interval), self.max_ticks)
        ticks = []
        for i in range(count):
            visual_time = i * interval
            actual_time = compression.compressed_to_actual(visual_time)
            ticks.append(RulerTick(
                visual_time=visual_time,
                actual_time=actual_time,
                x=self.mapper.ms_to_pixels(visual_time),
                is_major=self.is_major(visual_time, major_interval),
                label=TimeConverter.format_duration(actual_time, self.display_threshold),
            ))
        return ticks

    def build_break_markers(self) -> List[BreakMarker]:
        """Break markers for compressed gaps (empty when compression is off)."""
        return self.mapper.compression.get_break_markers()

    def break_marker_label(self, marker: BreakMarker) -> str:
        """Tooltip text for a break marker, e.g. 'Gap: 4.9s (100ms → 5s)'."""
        fmt = TimeConverter.format_duration
        return (
            f"Gap: {fmt(marker.actual_size, self.display_threshold)} "
            f"({fmt(marker.actual_start, self.display_threshold)} → "
            f"{fmt(marker.actual_end, self.display_threshold)})"
        )
