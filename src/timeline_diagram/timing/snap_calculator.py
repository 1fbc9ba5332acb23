"""
Snap Calculator

Snaps raw times to multiples of the active step: the base unit
granularity, or its finer precision step while a precision modifier is
held. Rounding direction follows caller intent.

Design:
- Integer-based indexing (line index * step) for exact alignment
- Creation rounds, right-edge resize floors, left-edge resize clamps
  against the fixed right edge
- Returns milliseconds (internal format), never negative
"""

from enum import Enum, auto
import math
from typing import Optional, Tuple

from ..constants import MIN_CREATE_DURATION_MS, MIN_RESIZE_DURATION_MS
from ..types import finite_or_default
from .units import BaseTimeUnit


class SnapMode(Enum):
    """Rounding direction used when snapping."""
    ROUND = auto()
    FLOOR = auto()
    CEIL = auto()


_ROUNDING = {
    SnapMode.ROUND: round,
    SnapMode.FLOOR: math.floor,
    SnapMode.CEIL: math.ceil,
}


class SnapCalculator:
    """
    Calculates snapped times for interval creation, moves and resizes.
    """

    def __init__(self, base_unit: BaseTimeUnit = BaseTimeUnit.MILLISECONDS):
        """
        Initialize snap calculator.

        Args:
            base_unit: Base time unit providing the granularity and precision step
        """
        self.base_unit = base_unit
        self.snap_enabled = True

    def get_step(self, precise: bool = False) -> float:
        """Active snap step in milliseconds."""
        if precise:
            return self.base_unit.precision_step
        return self.base_unit.granularity

    def snap_time(
        self,
        time: float,
        mode: SnapMode = SnapMode.ROUND,
        precise: bool = False,
        explicit_step: Optional[float] = None
    ) -> float:
        """
        Snap time to the nearest multiple of the step.

        Args:
            time: Raw time in ms
            mode: Rounding direction
            precise: Use the finer precision step
            explicit_step: Snap to this step instead of the unit step

        Returns:
            Snapped time in ms (>= 0)
        """
        time = finite_or_default(time, 0.0, "snap time")
        if not self.snap_enabled:
            return max(0.0, time)

        step = explicit_step if explicit_step is not None and explicit_step > 0 else self.get_step(precise)
        line_idx = _ROUNDING[mode](time / step)
        return max(0.0, line_idx * step)

    def min_duration_on_grid(self, min_duration: float, precise: bool = False) -> float:
        """
        Round a minimum duration up to a whole number of steps.

        Minimums already on the grid are returned unchanged.
        """
        if not self.snap_enabled:
            return min_duration
        step = self.get_step(precise)
        steps = min_duration / step
        if abs(steps - round(steps)) < 1e-9:
            return min_duration
        return math.ceil(steps) * step

    def snap_create(
        self,
        raw_start: float,
        raw_end: float,
        precise: bool = False,
        min_duration: float = MIN_CREATE_DURATION_MS
    ) -> Tuple[float, float]:
        """
        Snap a newly drawn interval; either drag direction is accepted.

        Returns:
            (start, duration) with duration >= min_duration
        """
        left, right = sorted((raw_start, raw_end))
        start = self.snap_time(left, SnapMode.ROUND, precise)
        end = self.snap_time(right, SnapMode.ROUND, precise)
        return start, max(end - start, self.min_duration_on_grid(min_duration, precise))

    def snap_resize_right(
        self,
        start: float,
        raw_end: float,
        precise: bool = False,
        min_duration: float = MIN_RESIZE_DURATION_MS
    ) -> float:
        """
        New duration for a right-edge resize.

        The end is floored so the edge never overshoots the pointer.
        """
        end = self.snap_time(raw_end, SnapMode.FLOOR, precise)
        return max(self.min_duration_on_grid(min_duration, precise), end - start)

    def snap_resize_left(
        self,
        raw_start: float,
        fixed_end: float,
        precise: bool = False,
        min_duration: float = MIN_RESIZE_DURATION_MS
    ) -> Tuple[float, float]:
        """
        New (start, duration) for a left-edge resize against a fixed right edge.
        """
        min_duration = self.min_duration_on_grid(min_duration, precise)
        start = self.snap_time(raw_start, SnapMode.ROUND, precise)
        start = max(0.0, min(start, fixed_end - min_duration))
        return start, fixed_end - start
