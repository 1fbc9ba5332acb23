"""
Compression Engine

Per-diagram owner of the compression map: collapses idle spans shared by
all lanes and maps between actual time and visual (compressed) time.

Lifecycle:
- The map is a pure function of (intervals, threshold, enabled flag)
- It is built lazily on first read after invalidate()
- Every mutation site (interval add / move / resize / remove, threshold
  or enabled-flag change) must call invalidate() before the next read
- Disabled compression is an identity mapping and builds nothing

Usage:
    engine = CompressionEngine(diagram, threshold=500)
    engine.set_enabled(True)
    x = engine.get_visual_offset(box)
    t = engine.compressed_to_actual(x)
"""

from typing import Any, List, Optional, Set, Tuple

import numpy as np

from ..constants import COMPRESSED_GAP_SIZE, DEFAULT_COMPRESSION_THRESHOLD
from ..interfaces import IntervalSourceInterface
from ..types import (
    BreakMarker,
    CompressedGap,
    CompressionMap,
    MIN_INTERVAL_DURATION,
    finite_or_default,
    sanitize_interval,
)
from ..utils.message import Log
from .gap_detector import cumulative_compression, detect_gaps


class CompressionEngine:
    """
    Gap compression and actual <-> visual time mapping for one diagram session.

    Consumers (renderer, drag handler, minimap, measurement, exporters)
    share one engine by reference; none of them mutate intervals through it.
    """

    def __init__(
        self,
        interval_source: IntervalSourceInterface,
        threshold: float = DEFAULT_COMPRESSION_THRESHOLD,
        enabled: bool = False,
        compressed_gap_size: float = COMPRESSED_GAP_SIZE,
        min_duration: float = MIN_INTERVAL_DURATION
    ):
        """
        Initialize the engine.

        Args:
            interval_source: Diagram model supplying the intervals
            threshold: Minimum gap size worth compressing (ms)
            enabled: Initial compression state
            compressed_gap_size: Visual size a compressed gap keeps (0 = seam)
            min_duration: Duration substituted for invalid interval durations
        """
        self._source = interval_source
        self._threshold = DEFAULT_COMPRESSION_THRESHOLD
        self._enabled = bool(enabled)
        self._compressed_gap_size = max(0.0, finite_or_default(
            compressed_gap_size, COMPRESSED_GAP_SIZE, "compressed gap size"))
        self._min_duration = max(MIN_INTERVAL_DURATION, finite_or_default(
            min_duration, MIN_INTERVAL_DURATION, "minimum duration"))
        self._map: Optional[CompressionMap] = None
        self._reported_ids: Set[Any] = set()
        self.set_threshold(threshold)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def compressed_gap_size(self) -> float:
        return self._compressed_gap_size

    @property
    def min_duration(self) -> float:
        return self._min_duration

    @min_duration.setter
    def min_duration(self, value: float) -> None:
        """Duration substituted for invalid ones (one granularity unit)."""
        self._min_duration = max(MIN_INTERVAL_DURATION, finite_or_default(
            value, MIN_INTERVAL_DURATION, "minimum duration"))
        self.invalidate()

    def set_enabled(self, enabled: bool) -> None:
        """Set compression on or off (used when loading diagrams and by the toggle)."""
        self._enabled = bool(enabled)
        self.invalidate()

    def toggle(self) -> bool:
        """Flip compression and return the new state."""
        self.set_enabled(not self._enabled)
        return self._enabled

    def set_threshold(self, threshold: float) -> None:
        """
        Set the minimum compressible gap size.

        Zero or negative thresholds are accepted and compress every idle span.
        """
        threshold = finite_or_default(threshold, DEFAULT_COMPRESSION_THRESHOLD, "compression threshold")
        if threshold <= 0:
            Log.warning(
                f"CompressionEngine: Threshold {threshold} compresses every idle span, "
                f"however small"
            )
        self._threshold = threshold
        self.invalidate()

    def invalidate(self) -> None:
        """Drop the cached map; the next read rebuilds it."""
        self._map = None
        self._reported_ids.clear()

    def sanitize(self, interval: Any) -> Tuple[float, float]:
        """
        Read (start_offset, duration) of an interval.

        Invalid geometry is reported once per interval until the next
        invalidate(), not on every read.
        """
        interval_id = getattr(interval, 'id', None)
        warn = interval_id not in self._reported_ids
        if warn:
            self._reported_ids.add(interval_id)
        return sanitize_interval(interval, self._min_duration, warn)

    @property
    def is_cached(self) -> bool:
        return self._map is not None

    # =========================================================================
    # Map construction
    # =========================================================================

    def get_compression_map(self) -> Optional[CompressionMap]:
        """
        Get the memoized compression map, building it if invalidated.

        Returns:
            The map, or None when compression is disabled
        """
        if not self._enabled:
            return None
        if self._map is None:
            self._map = self._build_map()
        return self._map

    def _build_map(self) -> CompressionMap:
        intervals = list(self._source.get_intervals())
        if not intervals:
            return CompressionMap()

        geometry = np.array(
            [self.sanitize(interval) for interval in intervals],
            dtype=float,
        )
        starts = geometry[:, 0]
        ends = starts + geometry[:, 1]

        gaps = detect_gaps(starts, ends, self._threshold, self._compressed_gap_size)
        cumulative = cumulative_compression(gaps)

        # An interval is shifted by every gap that ends at or before its start
        gap_ends = np.array([gap.end for gap in gaps], dtype=float)
        preceding = np.searchsorted(gap_ends, starts, side='right')
        visual_starts = starts - cumulative[preceding]

        offsets = {
            interval.id: float(visual)
            for interval, visual in zip(intervals, visual_starts)
        }
        compression_map = CompressionMap(
            offsets_by_interval_id=offsets,
            gaps=gaps,
            total_compression=float(cumulative[-1]),
            total_duration=float(ends.max()),
        )

        Log.debug(
            f"CompressionEngine: Rebuilt map ({len(intervals)} intervals, "
            f"{len(gaps)} gaps, total compression {compression_map.total_compression:g}ms)"
        )
        return compression_map

    # =========================================================================
    # Durations
    # =========================================================================

    def get_total_duration(self) -> float:
        """Actual end of the last interval (0 when there are none)."""
        compression_map = self.get_compression_map()
        if compression_map is not None:
            return compression_map.total_duration

        ends = [sum(self.sanitize(interval))
                for interval in self._source.get_intervals()]
        return max(ends) if ends else 0.0

    def get_compressed_duration(self) -> float:
        """
        Visual duration after compression.

        Identity (actual total duration) when disabled or nothing qualifies.
        """
        compression_map = self.get_compression_map()
        if compression_map is None or compression_map.is_empty:
            return self.get_total_duration()
        return compression_map.total_duration - compression_map.total_compression

    # =========================================================================
    # Forward mapping (actual -> visual)
    # =========================================================================

    def get_visual_offset(self, interval: Any) -> float:
        """
        Visual start offset of an interval.

        Identity when disabled; intervals unknown to the map fall back to
        their actual offset.
        """
        start, _ = self.sanitize(interval)
        compression_map = self.get_compression_map()
        if compression_map is None:
            return start
        return compression_map.offsets_by_interval_id.get(getattr(interval, 'id', None), start)

    def get_visual_time(self, actual_time: float) -> float:
        """
        Map any actual time to visual time.

        Times inside a compressed gap land on the gap's compressed span,
        proportionally (a single seam when the compressed size is zero).
        """
        actual_time = finite_or_default(actual_time, 0.0, "actual time")
        compression_map = self.get_compression_map()
        if compression_map is None or compression_map.is_empty:
            return actual_time

        compression_before = 0.0
        for gap in compression_map.gaps:
            if actual_time <= gap.start:
                break
            if actual_time < gap.end:
                progress = (actual_time - gap.start) / gap.size
                return gap.start - compression_before + progress * gap.compressed_size
            compression_before += gap.compression
        return actual_time - compression_before

    # =========================================================================
    # Inverse mapping (visual -> actual)
    # =========================================================================

    def compressed_to_actual(self, compressed_time: float) -> float:
        """
        Convert a visual (compressed) time back to actual time.

        Exact inverse of get_visual_offset() for every interval start. A seam
        hit resolves to the end of the gap, where the next interval starts.
        """
        compressed_time = finite_or_default(compressed_time, 0.0, "compressed time")
        compression_map = self.get_compression_map()
        if compression_map is None or compression_map.is_empty:
            return compressed_time

        compression_before = 0.0
        for gap in compression_map.gaps:
            compressed_start = gap.start - compression_before
            compressed_end = compressed_start + gap.compressed_size

            if compressed_time < compressed_start:
                break
            if compressed_time < compressed_end:
                # Inside the kept part of the gap: interpolate across the original span
                progress = (compressed_time - compressed_start) / gap.compressed_size
                return gap.start + progress * gap.size
            compression_before += gap.compression

        return compressed_time + compression_before

    # =========================================================================
    # Gap views
    # =========================================================================

    def get_compressed_gaps(self) -> List[CompressedGap]:
        """Gaps in compressed coordinates, for drawing break indicators."""
        compression_map = self.get_compression_map()
        if compression_map is None:
            return []

        result = []
        compression_before = 0.0
        for gap in compression_map.gaps:
            compressed_start = gap.start - compression_before
            result.append(CompressedGap(
                compressed_start=compressed_start,
                compressed_end=compressed_start + gap.compressed_size,
                original_start=gap.start,
                original_end=gap.end,
                compressed_size=gap.compressed_size,
                original_size=gap.size,
            ))
            compression_before += gap.compression
        return result

    def get_break_markers(self) -> List[BreakMarker]:
        """Ruler break markers, one per compressed gap."""
        return [
            BreakMarker(
                compressed_start=gap.compressed_start,
                compressed_end=gap.compressed_end,
                actual_start=gap.original_start,
                actual_end=gap.original_end,
                compression=gap.original_size - gap.compressed_size,
            )
            for gap in self.get_compressed_gaps()
        ]
