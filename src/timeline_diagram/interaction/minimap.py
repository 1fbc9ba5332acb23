"""
Minimap

Overview strip geometry: every interval drawn at its visual offset on a
fixed time scale, compressed gap indicators, the viewport indicator, and
the scroll offsets produced by clicking or dragging on the strip.

The minimap time scale is independent of the editor zoom:
    time_scale = available_width / (displayed duration + trailing space)
Scroll offsets are editor pixels, clamped to [0, max_scroll].
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from ..constants import MINIMAP_MIN_ITEM_PX, MINIMAP_PADDING_PX
from ..interfaces import IntervalSourceInterface
from ..timing.coordinate_mapper import CoordinateMapper


@dataclass(frozen=True)
class MinimapRect:
    """A rectangle in minimap pixels. key is the interval id (None for gaps)."""
    x: float
    y: float
    width: float
    height: float
    key: Any = None


class Minimap:
    """
    Geometry and navigation for a diagram minimap of a given size.
    """

    def __init__(
        self,
        source: IntervalSourceInterface,
        mapper: CoordinateMapper,
        padding: float = MINIMAP_PADDING_PX,
        min_item_px: float = MINIMAP_MIN_ITEM_PX
    ):
        self._source = source
        self._mapper = mapper
        self.padding = padding
        self.min_item_px = min_item_px

        self.is_dragging = False
        self._drag_start_x = 0.0
        self._drag_start_scroll = 0.0

    # =========================================================================
    # Scale
    # =========================================================================

    def timeline_duration(self) -> float:
        """Displayed duration plus trailing space (visual ms)."""
        compression = self._mapper.compression
        if compression.enabled:
            duration = compression.get_compressed_duration()
        else:
            duration = compression.get_total_duration() or 1.0
        return duration + self._mapper.trailing_space

    def available_width(self, width: float) -> float:
        return max(0.0, width - self.padding * 2)

    def time_scale(self, width: float) -> float:
        """Minimap pixels per visual millisecond."""
        duration = self.timeline_duration()
        if duration <= 0:
            return 0.0
        return self.available_width(width) / duration

    # =========================================================================
    # Drawing geometry
    # =========================================================================

    def item_rects(self, width: float, height: float, lane_ids: Optional[Sequence[Any]] = None) -> List[MinimapRect]:
        """
        One rectangle per interval, lanes stacked top to bottom.

        Args:
            width: Minimap width in pixels
            height: Minimap height in pixels
            lane_ids: Lane order (defaults to first appearance among intervals)
        """
        intervals = list(self._source.get_intervals())
        if lane_ids is None:
            lane_ids = list(dict.fromkeys(getattr(interval, 'lane_id', None) for interval in intervals))
        if not intervals or not lane_ids:
            return []

        lane_index = {lane_id: index for index, lane_id in enumerate(lane_ids)}
        lane_height = max(self.min_item_px, (height - self.padding * 2) // len(lane_ids))
        scale = self.time_scale(width)
        compression = self._mapper.compression

        rects = []
        for interval in intervals:
            index = lane_index.get(getattr(interval, 'lane_id', None))
            if index is None:
                continue
            _, duration = compression.sanitize(interval)
            rects.append(MinimapRect(
                x=self.padding + compression.get_visual_offset(interval) * scale,
                y=self.padding + index * lane_height,
                width=max(self.min_item_px, duration * scale),
                height=max(self.min_item_px, lane_height - 1),
                key=interval.id,
            ))
        return rects

    def gap_rects(self, width: float, height: float) -> List[MinimapRect]:
        """Full-height compressed gap indicators (empty when compression is off)."""
        scale = self.time_scale(width)
        return [
            MinimapRect(
                x=self.padding + gap.compressed_start * scale,
                y=0.0,
                width=gap.compressed_size * scale,
                height=height,
            )
            for gap in self._mapper.compression.get_compressed_gaps()
        ]

    def viewport_rect(self, width: float, scroll_offset: float, visible_width: float) -> Tuple[float, float]:
        """(left, width) of the viewport indicator in minimap pixels."""
        scale = self.time_scale(width)
        visible_start = self._mapper.pixels_to_ms(scroll_offset)
        visible_end = self._mapper.pixels_to_ms(scroll_offset + visible_width)
        left = self.padding + visible_start * scale
        return max(0.0, left), min((visible_end - visible_start) * scale, self.available_width(width))

    # =========================================================================
    # Navigation
    # =========================================================================

    def max_scroll(self, visible_width: float) -> float:
        return max(0.0, self._mapper.ms_to_pixels(self.timeline_duration()) - visible_width)

    def _clamp_scroll(self, scroll: float, visible_width: float) -> float:
        return max(0.0, min(scroll, self.max_scroll(visible_width)))

    def scroll_for_click(self, click_x: float, width: float, visible_width: float) -> float:
        """Scroll offset that centres the clicked time in the editor viewport."""
        scale = self.time_scale(width)
        if scale <= 0:
            return 0.0
        target_time = (click_x - self.padding) / scale
        target_scroll = self._mapper.ms_to_pixels(target_time) - visible_width / 2
        return self._clamp_scroll(target_scroll, visible_width)

    def press(self, click_x: float, width: float, scroll_offset: float, visible_width: float) -> Optional[float]:
        """
        Pointer press on the minimap.

        Inside the viewport indicator a drag starts and None is returned;
        elsewhere the view jumps and the new scroll offset is returned.
        """
        left, indicator_width = self.viewport_rect(width, scroll_offset, visible_width)
        if left <= click_x <= left + indicator_width:
            self.is_dragging = True
            self._drag_start_x = click_x
            self._drag_start_scroll = scroll_offset
            return None
        return self.scroll_for_click(click_x, width, visible_width)

    def drag_to(self, x: float, width: float, visible_width: float) -> Optional[float]:
        """Scroll offset for a viewport drag to minimap x (None when not dragging)."""
        if not self.is_dragging:
            return None
        available = self.available_width(width)
        if available <= 0:
            return self._drag_start_scroll
        ratio = self._mapper.ms_to_pixels(self.timeline_duration()) / available
        new_scroll = self._drag_start_scroll + (x - self._drag_start_x) * ratio
        return self._clamp_scroll(new_scroll, visible_width)

    def release(self) -> None:
        self.is_dragging = False
