"""
Gap Detector

Sweep-line pass over every interval (lane boundaries ignored) that finds
the maximal spans during which no interval is active, keeping only the
spans larger than the compression threshold.

Design:
- One start and one end event per interval
- Events ordered by time, start before end at equal times, so touching
  intervals never produce a false gap
- Active count swept with a cumulative sum; a gap closes on every
  0 -> 1 transition
- The idle span before the first interval is measured from time zero
"""

from typing import List, Sequence

import numpy as np

from ..types import Gap

START_EVENT = 0
END_EVENT = 1


def detect_gaps(
    starts: Sequence[float],
    ends: Sequence[float],
    threshold: float,
    compressed_size: float = 0.0,
    origin: float = 0.0
) -> List[Gap]:
    """
    Find idle spans shared by all lanes.

    Args:
        starts: Actual start offsets, one per interval
        ends: Actual end offsets (start + duration), same order as starts
        threshold: Minimum size a span must exceed to be compressible.
                   Zero or negative compresses every idle span.
        compressed_size: Visual size each detected gap keeps
        origin: Time the sweep starts from (initial "count dropped to 0" time)

    Returns:
        Gaps ordered by start, non-overlapping, each with size > threshold
    """
    starts = np.asarray(starts, dtype=float)
    ends = np.asarray(ends, dtype=float)
    if starts.size == 0:
        return []

    times = np.concatenate((starts, ends))
    kinds = np.concatenate((
        np.full(starts.size, START_EVENT),
        np.full(ends.size, END_EVENT),
    ))
    deltas = np.where(kinds == START_EVENT, 1, -1)

    # lexsort keys: last key is primary (time), then kind (start first)
    order = np.lexsort((kinds, times))
    sorted_times = times[order]
    sorted_deltas = deltas[order]

    active_after = np.cumsum(sorted_deltas)
    active_before = active_after - sorted_deltas

    opens = (sorted_deltas == 1) & (active_before == 0)
    closes = (sorted_deltas == -1) & (active_after == 0)

    open_times = sorted_times[opens]
    # Every open pairs with the zero-time that preceded it
    zero_times = np.concatenate(([origin], sorted_times[closes]))[:open_times.size]

    sizes = open_times - zero_times
    keep = (sizes > 0) & (sizes > threshold)

    return [
        Gap(start=float(gap_start), end=float(gap_end), compressed_size=float(compressed_size))
        for gap_start, gap_end in zip(zero_times[keep], open_times[keep])
    ]


def cumulative_compression(gaps: Sequence[Gap]) -> np.ndarray:
    """
    Compression accumulated before each gap boundary.

    Returns an array of len(gaps) + 1 where element k is the total
    compression of the first k gaps.
    """
    amounts = np.fromiter((gap.compression for gap in gaps), dtype=float, count=len(gaps))
    return np.concatenate(([0.0], np.cumsum(amounts)))
