"""
Movement Controller
====================

Handles interval move, resize and create drags against a diagram model.

Every pointer position goes pixel -> visual time -> actual time (through
the inverse compression mapping) -> snapped, clamped value before it is
written back to the interval source. Each write is followed by
invalidate() on the compression engine so the next geometry read sees it.

The controller uses a state machine to manage drag operations.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from ..compression.engine import CompressionEngine
from ..constants import (
    CREATE_DRAG_THRESHOLD_PX,
    DRAG_THRESHOLD_PX,
    MIN_CREATE_DURATION_MS,
    MIN_RESIZE_DURATION_MS,
)
from ..interfaces import MutableIntervalSourceInterface
from ..timing.coordinate_mapper import CoordinateMapper
from ..timing.snap_calculator import SnapCalculator, SnapMode
from ..types import DragState, EditHandle, IntervalEditResult, finite_or_default
from ..utils.message import Log


@dataclass
class DragContext:
    """Geometry captured when a drag begins."""
    start_x: float
    interval_id: Any = None
    lane_id: Any = None
    grab_offset_x: float = 0.0
    original_start: float = 0.0
    original_duration: float = 0.0
    preview_start: float = 0.0
    preview_duration: float = 0.0
    current_x: float = 0.0


class MovementController(QObject):
    """
    Controls interval move / resize / create operations.

    State Machine:
        IDLE -> (begin_*) -> PENDING -> (threshold) -> DRAGGING -> (commit) -> IDLE
                               |                                      |
                               v                                      v
                        (commit w/o move)                       (emit signals)
                               |                                      |
                               v                                      v
                             IDLE                                   IDLE

    Signals:
        edits_completed(list): IntervalEditResult list when a move/resize is committed
        interval_created(object): The interval added by a create drag
        drag_started(): Emitted when the threshold is crossed
        drag_ended(): Emitted after commit
        drag_cancelled(): Emitted after cancel
    """

    edits_completed = pyqtSignal(list)
    interval_created = pyqtSignal(object)
    drag_started = pyqtSignal()
    drag_ended = pyqtSignal()
    drag_cancelled = pyqtSignal()

    def __init__(
        self,
        source: MutableIntervalSourceInterface,
        compression: CompressionEngine,
        mapper: CoordinateMapper,
        snap_calculator: SnapCalculator,
        parent=None
    ):
        super().__init__(parent)

        self._source = source
        self._compression = compression
        self._mapper = mapper
        self._snap = snap_calculator

        self._state = DragState.IDLE
        self._edit_handle = EditHandle.NONE
        self._context: Optional[DragContext] = None

        self.locked = False

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def edit_handle(self) -> EditHandle:
        return self._edit_handle

    @property
    def is_dragging(self) -> bool:
        return self._state in (DragState.PENDING, DragState.DRAGGING)

    # =========================================================================
    # Pointer conversion
    # =========================================================================

    def pointer_to_actual(self, x: float) -> float:
        """Actual time under a lane-relative pointer x (negative x clamps to 0)."""
        x = finite_or_default(x, 0.0, "pointer x")
        return self._mapper.pixels_to_actual(max(0.0, x))

    # =========================================================================
    # Public API
    # =========================================================================

    def begin_move(self, interval: Any, x: float) -> bool:
        """
        Begin moving an interval grabbed at lane-relative pointer x.

        Returns:
            True if the drag started
        """
        if not self._can_begin():
            return False

        start, duration = self._compression.sanitize(interval)
        left, _ = self._mapper.interval_geometry(interval)
        self._begin(EditHandle.MOVE, DragContext(
            start_x=x,
            interval_id=interval.id,
            lane_id=getattr(interval, 'lane_id', None),
            grab_offset_x=x - left,
            original_start=start,
            original_duration=duration,
            preview_start=start,
            preview_duration=duration,
            current_x=x,
        ))
        return True

    def begin_resize(self, interval: Any, x: float, handle: EditHandle) -> bool:
        """
        Begin resizing an interval from its LEFT or RIGHT edge.
        """
        if handle not in (EditHandle.RESIZE_LEFT, EditHandle.RESIZE_RIGHT):
            return False
        if not self._can_begin():
            return False

        start, duration = self._compression.sanitize(interval)
        self._begin(handle, DragContext(
            start_x=x,
            interval_id=interval.id,
            lane_id=getattr(interval, 'lane_id', None),
            original_start=start,
            original_duration=duration,
            preview_start=start,
            preview_duration=duration,
            current_x=x,
        ))
        return True

    def begin_create(self, lane_id: Any, x: float) -> bool:
        """
        Begin drawing a new interval in a lane.
        """
        if not self._can_begin():
            return False

        self._begin(EditHandle.CREATE, DragContext(start_x=x, lane_id=lane_id, current_x=x))
        return True

    def update_drag(self, x: float, precise: bool = False) -> None:
        """
        Update the drag with a new lane-relative pointer x.

        Args:
            x: Pointer position in pixels
            precise: Snap to the finer precision step
        """
        if self._state not in (DragState.PENDING, DragState.DRAGGING) or self._context is None:
            return

        context = self._context
        context.current_x = x

        if self._state == DragState.PENDING:
            threshold = CREATE_DRAG_THRESHOLD_PX if self._edit_handle == EditHandle.CREATE else DRAG_THRESHOLD_PX
            if abs(x - context.start_x) < threshold:
                return
            self._state = DragState.DRAGGING
            self.drag_started.emit()
            Log.debug(f"MovementController: {self._edit_handle.name} threshold exceeded, DRAGGING")

        if self._edit_handle == EditHandle.MOVE:
            self._update_move(x, precise)
        elif self._edit_handle in (EditHandle.RESIZE_LEFT, EditHandle.RESIZE_RIGHT):
            self._update_resize(x, precise)

    def create_preview(self) -> Optional[Tuple[float, float]]:
        """
        (left, width) in pixels of the interval being drawn, either direction.
        """
        if self._edit_handle != EditHandle.CREATE or self._context is None:
            return None
        left = min(self._context.start_x, self._context.current_x)
        return left, abs(self._context.current_x - self._context.start_x)

    def commit_drag(self, precise: bool = False) -> Any:
        """
        Commit the current drag.

        Returns:
            IntervalEditResult for a changed move/resize, the new interval
            for a create, or None when nothing changed
        """
        if self._state == DragState.IDLE or self._context is None:
            return None

        was_dragging = self._state == DragState.DRAGGING
        self._state = DragState.COMMITTING

        result = None
        if self._edit_handle == EditHandle.CREATE:
            if abs(self._context.current_x - self._context.start_x) > CREATE_DRAG_THRESHOLD_PX:
                result = self._commit_create(precise)
        elif was_dragging:
            result = self._commit_edit()

        self.drag_ended.emit()
        self._cleanup()
        return result

    def cancel_drag(self) -> None:
        """
        Cancel the current drag, restoring the original geometry.
        """
        if self._state == DragState.IDLE or self._context is None:
            return

        Log.debug("MovementController: cancelling drag")
        context = self._context
        if self._edit_handle != EditHandle.CREATE and (
                context.preview_start != context.original_start
                or context.preview_duration != context.original_duration):
            self._write(context.original_start, context.original_duration)

        self.drag_cancelled.emit()
        self._cleanup()

    # =========================================================================
    # Internal - Updates
    # =========================================================================

    def _update_move(self, x: float, precise: bool) -> None:
        context = self._context
        actual = self.pointer_to_actual(x - context.grab_offset_x)
        new_start = self._snap.snap_time(actual, SnapMode.ROUND, precise)
        if new_start != context.preview_start:
            context.preview_start = new_start
            self._write(new_start, context.preview_duration)

    def _update_resize(self, x: float, precise: bool) -> None:
        context = self._context
        pointer_ms = self.pointer_to_actual(x)

        if self._edit_handle == EditHandle.RESIZE_RIGHT:
            new_start = context.original_start
            new_duration = self._snap.snap_resize_right(
                context.original_start, pointer_ms, precise, MIN_RESIZE_DURATION_MS)
        else:
            fixed_end = context.original_start + context.original_duration
            new_start, new_duration = self._snap.snap_resize_left(
                pointer_ms, fixed_end, precise, MIN_RESIZE_DURATION_MS)

        if (new_start, new_duration) != (context.preview_start, context.preview_duration):
            context.preview_start = new_start
            context.preview_duration = new_duration
            self._write(new_start, new_duration)

    def _write(self, start: float, duration: float) -> None:
        self._source.update_interval(self._context.interval_id, start_offset=start, duration=duration)
        self._compression.invalidate()

    # =========================================================================
    # Internal - Commits
    # =========================================================================

    def _commit_edit(self) -> Optional[IntervalEditResult]:
        context = self._context
        result = IntervalEditResult(
            interval_id=context.interval_id,
            old_start=context.original_start,
            new_start=context.preview_start,
            old_duration=context.original_duration,
            new_duration=context.preview_duration,
        )
        if not (result.start_changed or result.duration_changed):
            return None

        self._compression.invalidate()
        Log.info(f"MovementController: committed {self._edit_handle.name.lower()} of {context.interval_id}")
        self.edits_completed.emit([result])
        return result

    def _commit_create(self, precise: bool) -> Any:
        context = self._context
        start_ms = self.pointer_to_actual(min(context.start_x, context.current_x))
        end_ms = self.pointer_to_actual(max(context.start_x, context.current_x))
        start, duration = self._snap.snap_create(start_ms, end_ms, precise, MIN_CREATE_DURATION_MS)

        interval = self._source.add_interval(context.lane_id, start, duration)
        self._compression.invalidate()
        Log.info(f"MovementController: created interval in lane {context.lane_id} at {start:g}ms ({duration:g}ms)")
        self.interval_created.emit(interval)
        return interval

    # =========================================================================
    # Internal - State
    # =========================================================================

    def _can_begin(self) -> bool:
        if self.locked:
            Log.debug("MovementController: diagram locked, ignoring drag")
            return False
        if self._state != DragState.IDLE:
            Log.warning("MovementController: begin called while not IDLE")
            return False
        return True

    def _begin(self, handle: EditHandle, context: DragContext) -> None:
        self._state = DragState.PENDING
        self._edit_handle = handle
        self._context = context
        Log.debug(f"MovementController: begin {handle.name}")

    def _cleanup(self) -> None:
        self._state = DragState.IDLE
        self._edit_handle = EditHandle.NONE
        self._context = None
