"""
Time Units

Enumerated time units and base-unit configurations with exhaustive
lookup tables. Every unit has a size, a label and its parent / sub-unit;
every base unit has a display unit, a granularity unit and a precision
unit. Nothing is computed ad hoc from strings.

Granularity is the time one step of zoom scale represents: the scale is
measured in pixels per granularity unit.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional


class TimeUnit(Enum):
    """Time units, smallest first."""
    MICROSECONDS = auto()
    MILLISECONDS = auto()
    SECONDS = auto()
    MINUTES = auto()
    HOURS = auto()
    DAYS = auto()


@dataclass(frozen=True)
class UnitSpec:
    """Size, label and neighbours of a time unit."""
    ms: float
    label: str
    parent: Optional[TimeUnit]
    sub_unit: Optional[TimeUnit]


UNIT_TABLE: Dict[TimeUnit, UnitSpec] = {
    TimeUnit.MICROSECONDS: UnitSpec(0.001, "μs", TimeUnit.MILLISECONDS, None),
    TimeUnit.MILLISECONDS: UnitSpec(1.0, "ms", TimeUnit.SECONDS, TimeUnit.MICROSECONDS),
    TimeUnit.SECONDS: UnitSpec(1000.0, "s", TimeUnit.MINUTES, TimeUnit.MILLISECONDS),
    TimeUnit.MINUTES: UnitSpec(60000.0, "m", TimeUnit.HOURS, TimeUnit.SECONDS),
    TimeUnit.HOURS: UnitSpec(3600000.0, "h", TimeUnit.DAYS, TimeUnit.MINUTES),
    TimeUnit.DAYS: UnitSpec(86400000.0, "d", None, TimeUnit.HOURS),
}


def unit_ms(unit: TimeUnit) -> float:
    """Size of a unit in milliseconds."""
    return UNIT_TABLE[unit].ms


def unit_and_parents(unit: TimeUnit) -> List[TimeUnit]:
    """The unit followed by every larger unit, ascending."""
    chain = []
    current: Optional[TimeUnit] = unit
    while current is not None:
        chain.append(current)
        current = UNIT_TABLE[current].parent
    return chain


class BaseTimeUnit(Enum):
    """
    Configured base time unit of a diagram.

    The value is the name stored in settings ("ms", "s", ...).
    """
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"
    DAYS = "d"

    @classmethod
    def from_name(cls, name: str) -> 'BaseTimeUnit':
        """
        Look up a base unit by its settings name.

        Raises:
            ValueError: If the name is not a known base unit
        """
        for member in cls:
            if member.value == name or member.name == str(name).upper():
                return member
        raise ValueError(f"Unknown base time unit: {name!r}")

    @property
    def spec(self) -> 'BaseUnitSpec':
        return BASE_UNIT_TABLE[self]

    @property
    def granularity(self) -> float:
        """Milliseconds represented by one unit of zoom scale."""
        return unit_ms(self.spec.granularity_unit)

    @property
    def precision_step(self) -> float:
        """Finer snapping step used while a precision modifier is held."""
        return unit_ms(self.spec.precision_unit)

    @property
    def unit_ms(self) -> float:
        return unit_ms(self.spec.unit)


@dataclass(frozen=True)
class BaseUnitSpec:
    """
    Display unit, scale granularity and precision sub-step of a base unit.

    default_scale is pixels per granularity unit at 100% zoom.
    """
    unit: TimeUnit
    granularity_unit: TimeUnit
    precision_unit: TimeUnit
    default_scale: float


BASE_UNIT_TABLE: Dict[BaseTimeUnit, BaseUnitSpec] = {
    BaseTimeUnit.MILLISECONDS: BaseUnitSpec(
        TimeUnit.MILLISECONDS, TimeUnit.MILLISECONDS, TimeUnit.MICROSECONDS, 0.15),
    BaseTimeUnit.SECONDS: BaseUnitSpec(
        TimeUnit.SECONDS, TimeUnit.MILLISECONDS, TimeUnit.MICROSECONDS, 0.15),
    BaseTimeUnit.MINUTES: BaseUnitSpec(
        TimeUnit.MINUTES, TimeUnit.SECONDS, TimeUnit.MILLISECONDS, 2.0),
    BaseTimeUnit.HOURS: BaseUnitSpec(
        TimeUnit.HOURS, TimeUnit.MINUTES, TimeUnit.SECONDS, 2.0),
    BaseTimeUnit.DAYS: BaseUnitSpec(
        TimeUnit.DAYS, TimeUnit.HOURS, TimeUnit.MINUTES, 4.0),
}
