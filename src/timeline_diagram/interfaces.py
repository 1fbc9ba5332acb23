"""
Timeline Interfaces

Protocol definitions for the collaborators around the mapping engine.
The diagram model, the persistence layer and the preferences store are
external; the engine and its consumers only talk to them through these.
"""

from typing import Any, Iterable, Optional, Protocol, runtime_checkable


@runtime_checkable
class IntervalLike(Protocol):
    """Anything with an id, a lane id, an actual start offset and a duration."""
    id: Any
    lane_id: Any
    start_offset: float
    duration: float


@runtime_checkable
class IntervalSourceInterface(Protocol):
    """
    Protocol for interval providers (the diagram model).

    Implement this to feed boxes from any data model to the compression engine.
    """

    def get_intervals(self) -> Iterable[IntervalLike]:
        """
        Get all intervals across all lanes.

        Returns:
            Iterable of interval-like objects (order does not matter)
        """
        ...


@runtime_checkable
class MutableIntervalSourceInterface(IntervalSourceInterface, Protocol):
    """
    Interval provider that accepts geometry edits from interaction handlers.
    """

    def update_interval(
        self,
        interval_id: Any,
        start_offset: Optional[float] = None,
        duration: Optional[float] = None
    ) -> None:
        """
        Write new actual geometry for an interval.

        Args:
            interval_id: Interval to update
            start_offset: New start in ms (None = unchanged)
            duration: New duration in ms (None = unchanged)
        """
        ...

    def add_interval(self, lane_id: Any, start_offset: float, duration: float) -> IntervalLike:
        """Create an interval in a lane and return it."""
        ...


@runtime_checkable
class PreferencesStoreInterface(Protocol):
    """
    Key/value store used by settings managers for persistence.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...
