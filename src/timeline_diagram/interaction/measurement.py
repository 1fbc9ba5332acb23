"""
Measurement Tool

Measures the actual time between two canvas x positions. Both endpoints
are mapped back through the inverse compression mapping, so a
measurement across a compressed gap reports the real elapsed time, not
the on-screen distance.

Endpoints snap to interval edges (alignment lines) within a pixel
threshold. A measurement can be pinned and persisted as {startX, endX}.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import ALIGNMENT_SNAP_THRESHOLD_PX, DEFAULT_TIME_FORMAT_THRESHOLD
from ..interfaces import IntervalSourceInterface
from ..timing.coordinate_mapper import CoordinateMapper
from ..timing.time_converter import TimeConverter
from ..types import finite_or_default, is_finite_number
from ..utils.message import Log


@dataclass(frozen=True)
class SnapPoint:
    """An interval edge: pixel position and the actual time it marks."""
    x: float
    time: float


@dataclass(frozen=True)
class MeasurePoint:
    x: float
    snapped: bool = False


@dataclass(frozen=True)
class MeasurementReading:
    """Result of a measurement, always in actual time."""
    start_x: float
    end_x: float
    actual_start: float
    actual_end: float
    duration: float
    label: str


class MeasurementTool:
    """
    Measurement state for one diagram view.

    x values are lane-relative canvas pixels (scroll already applied).
    """

    def __init__(
        self,
        source: IntervalSourceInterface,
        mapper: CoordinateMapper,
        snap_threshold_px: float = ALIGNMENT_SNAP_THRESHOLD_PX,
        display_threshold: float = DEFAULT_TIME_FORMAT_THRESHOLD
    ):
        self._source = source
        self._mapper = mapper
        self.snap_threshold_px = snap_threshold_px
        self.display_threshold = display_threshold

        self.tool_active = False
        self.is_measuring = False
        self.pinned = False
        self._start: Optional[MeasurePoint] = None
        self._end: Optional[MeasurePoint] = None

    @property
    def start_point(self) -> Optional[MeasurePoint]:
        return self._start

    @property
    def end_point(self) -> Optional[MeasurePoint]:
        return self._end

    def toggle_tool(self) -> bool:
        """Toggle measurement mode; leaving it closes any measurement."""
        self.tool_active = not self.tool_active
        if not self.tool_active:
            self.close()
        return self.tool_active

    # =========================================================================
    # Alignment snapping
    # =========================================================================

    def get_snap_points(self) -> List[SnapPoint]:
        """Start and end edge of every interval, at their drawn positions."""
        compression = self._mapper.compression
        points = []
        for interval in self._source.get_intervals():
            start, duration = compression.sanitize(interval)
            visual_start = compression.get_visual_offset(interval)
            points.append(SnapPoint(self._mapper.ms_to_pixels(visual_start), start))
            points.append(SnapPoint(self._mapper.ms_to_pixels(visual_start + duration), start + duration))
        return points

    def snap_to_alignment_line(self, x: float) -> Optional[SnapPoint]:
        """Closest interval edge strictly within the snap threshold, or None."""
        closest = None
        closest_dist = self.snap_threshold_px
        for point in self.get_snap_points():
            dist = abs(point.x - x)
            if dist < closest_dist:
                closest_dist = dist
                closest = point
        return closest

    def _measure_point(self, x: float) -> MeasurePoint:
        x = finite_or_default(x, 0.0, "measurement x")
        snap = self.snap_to_alignment_line(x)
        if snap is not None:
            return MeasurePoint(snap.x, snapped=True)
        return MeasurePoint(x)

    # =========================================================================
    # Measuring
    # =========================================================================

    def start(self, x: float) -> MeasurementReading:
        point = self._measure_point(x)
        self.is_measuring = True
        self._start = point
        self._end = point
        return self.reading()

    def update(self, x: float) -> Optional[MeasurementReading]:
        if not self.is_measuring:
            return None
        self._end = self._measure_point(x)
        return self.reading()

    def end(self) -> Optional[MeasurementReading]:
        """Finish dragging; the measurement stays readable until closed."""
        if not self.is_measuring:
            return None
        self.is_measuring = False
        return self.reading()

    def toggle_pin(self) -> bool:
        self.pinned = not self.pinned
        return self.pinned

    def close(self) -> None:
        self.is_measuring = False
        self.pinned = False
        self._start = None
        self._end = None

    def reading(self) -> Optional[MeasurementReading]:
        """
        Current measurement in actual time.

        Returns:
            MeasurementReading, or None when nothing is measured
        """
        if self._start is None or self._end is None:
            return None

        left = min(self._start.x, self._end.x)
        right = max(self._start.x, self._end.x)
        actual_start = self._mapper.pixels_to_actual(max(0.0, left))
        actual_end = self._mapper.pixels_to_actual(max(0.0, right))
        duration = actual_end - actual_start

        return MeasurementReading(
            start_x=self._start.x,
            end_x=self._end.x,
            actual_start=actual_start,
            actual_end=actual_end,
            duration=duration,
            label=TimeConverter.format_duration(round(duration), self.display_threshold),
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_dict(self) -> Optional[Dict[str, float]]:
        """Pinned measurement as {startX, endX}; None when nothing is pinned."""
        if not self.pinned or self._start is None or self._end is None:
            return None
        return {'startX': self._start.x, 'endX': self._end.x}

    def restore(self, data: Optional[Dict[str, Any]]) -> Optional[MeasurementReading]:
        """Restore a pinned measurement saved by to_dict()."""
        self.close()
        if not data:
            return None

        start_x = data.get('startX')
        end_x = data.get('endX')
        if not (is_finite_number(start_x) and is_finite_number(end_x)):
            Log.warning(f"MeasurementTool: Ignored invalid pinned measurement {data!r}")
            return None

        self._start = MeasurePoint(float(start_x))
        self._end = MeasurePoint(float(end_x))
        self.pinned = True
        return self.reading()
