"""
Timing

Time units, time <-> pixel conversion, snapping and ruler spacing.

Modules:
- units: Enumerated time units and base-unit lookup tables
- time_converter: Duration and zoom-level labels
- coordinate_mapper: Scale, zoom, fit-to-view and time <-> pixel conversion
- snap_calculator: Snapping to the granularity or its precision step
- ruler: Ruler tick spacing and major/minor classification
"""

from .units import BaseTimeUnit, TimeUnit, unit_ms, unit_and_parents
from .time_converter import TimeConverter
from .coordinate_mapper import CoordinateMapper, CoordinateState
from .snap_calculator import SnapCalculator, SnapMode
from .ruler import RulerIntervalSelector

__all__ = [
    'BaseTimeUnit',
    'TimeUnit',
    'unit_ms',
    'unit_and_parents',
    'TimeConverter',
    'CoordinateMapper',
    'CoordinateState',
    'SnapCalculator',
    'SnapMode',
    'RulerIntervalSelector',
]
