"""
Timeline Data Types
====================

Data contracts shared by the compression engine, the coordinate mapper
and every consumer that positions things in time.

Actual time is what the diagram stores; visual time is what gets drawn
after gap compression. Both are milliseconds.
"""

import math
from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .utils.message import Log

# Minimum interval duration in actual time
MIN_INTERVAL_DURATION = 1.0


# =============================================================================
# Numeric sanitising
# =============================================================================

def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def finite_or_default(value: Any, default: float, name: str = "value", warn: bool = True) -> float:
    """
    Return value as float, or default when it is missing or non-finite.

    Substitutions are logged (unless warn is False), never raised.
    """
    if is_finite_number(value):
        return float(value)
    if warn:
        Log.warning(f"Sanitize: Replaced non-finite {name} {value!r} with {default}")
    return float(default)


# =============================================================================
# Intervals
# =============================================================================

@dataclass
class Interval:
    """
    A lane-scoped box: actual start offset and duration.

    Owned by the diagram model; read-only to the compression engine.

    Attributes:
        id: Unique identifier
        lane_id: Lane the interval belongs to
        start_offset: Actual start time in ms
        duration: Actual duration in ms (>= MIN_INTERVAL_DURATION)
        label: Optional display label (pass-through)
    """
    id: Any
    lane_id: Any
    start_offset: float
    duration: float = MIN_INTERVAL_DURATION
    label: str = ""

    @property
    def end_offset(self) -> float:
        return self.start_offset + self.duration


def sanitize_interval(
    interval: Any,
    min_duration: float = MIN_INTERVAL_DURATION,
    warn: bool = True
) -> Tuple[float, float]:
    """
    Read (start_offset, duration) from any interval-like object.

    Missing or non-finite start offsets become 0. Missing, non-finite or
    non-positive durations become min_duration. Pass warn=False on hot
    read paths that have already reported the interval.
    """
    start = getattr(interval, 'start_offset', None)
    duration = getattr(interval, 'duration', None)
    interval_id = getattr(interval, 'id', None)

    start = finite_or_default(start, 0.0, f"start_offset of interval {interval_id!r}", warn)
    if is_finite_number(duration) and duration > 0:
        duration = float(duration)
    else:
        if warn:
            Log.warning(
                f"Sanitize: Replaced invalid duration {duration!r} of interval "
                f"{interval_id!r} with {min_duration}"
            )
        duration = float(min_duration)
    return start, duration


# =============================================================================
# Compression results
# =============================================================================

@dataclass(frozen=True)
class Gap:
    """
    A maximal span with no active interval in any lane, larger than the threshold.

    compressed_size is the visual width the gap keeps after compression.
    """
    start: float
    end: float
    compressed_size: float = 0.0

    @property
    def size(self) -> float:
        return self.end - self.start

    @property
    def compression(self) -> float:
        """Amount of visual time removed by compressing this gap."""
        return self.size - self.compressed_size


@dataclass(frozen=True)
class CompressedGap:
    """A gap expressed in both visual (compressed) and actual coordinates."""
    compressed_start: float
    compressed_end: float
    original_start: float
    original_end: float
    compressed_size: float
    original_size: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'compressedStart': self.compressed_start,
            'compressedEnd': self.compressed_end,
            'originalStart': self.original_start,
            'originalEnd': self.original_end,
            'compressedSize': self.compressed_size,
            'originalSize': self.original_size,
        }


@dataclass(frozen=True)
class BreakMarker:
    """Ruler break marker drawn at a compressed gap."""
    compressed_start: float
    compressed_end: float
    actual_start: float
    actual_end: float
    compression: float

    @property
    def actual_size(self) -> float:
        return self.actual_end - self.actual_start


@dataclass
class CompressionMap:
    """
    Memoized result of gap detection for one interval set.

    offsets_by_interval_id maps interval id -> visual start offset.
    """
    offsets_by_interval_id: Dict[Any, float] = field(default_factory=dict)
    gaps: List[Gap] = field(default_factory=list)
    total_compression: float = 0.0
    total_duration: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.gaps


# =============================================================================
# View state
# =============================================================================

@dataclass
class ViewState:
    """
    Persisted zoom state of a diagram view.

    prior_scale / prior_scroll_offset hold the manual view to restore
    when fit-to-view is toggled off.
    """
    scale: float
    fit_mode_active: bool = False
    prior_scale: Optional[float] = None
    prior_scroll_offset: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scale': self.scale,
            'fitModeActive': self.fit_mode_active,
            'priorScale': self.prior_scale,
            'priorScrollOffset': self.prior_scroll_offset,
        }


@dataclass(frozen=True)
class RulerTick:
    """A ruler mark: drawn at visual_time, labelled with actual_time."""
    visual_time: float
    actual_time: float
    x: float
    is_major: bool
    label: str


# =============================================================================
# Interaction
# =============================================================================

class DragState(Enum):
    """State machine for drag operations."""
    IDLE = auto()
    PENDING = auto()      # Pointer down, waiting for movement threshold
    DRAGGING = auto()     # Active drag in progress
    COMMITTING = auto()   # Releasing, about to commit changes


class EditHandle(Enum):
    """Which part of an interval is being edited."""
    NONE = auto()
    MOVE = auto()
    RESIZE_LEFT = auto()
    RESIZE_RIGHT = auto()
    CREATE = auto()


@dataclass(frozen=True)
class IntervalEditResult:
    """
    Before/after geometry of a committed move or resize, for undo support.
    """
    interval_id: Any
    old_start: float
    new_start: float
    old_duration: float
    new_duration: float

    @property
    def start_changed(self) -> bool:
        return self.old_start != self.new_start

    @property
    def duration_changed(self) -> bool:
        return self.old_duration != self.new_duration
