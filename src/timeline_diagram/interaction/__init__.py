"""
Interaction

Consumers that turn pointer positions into actual-time edits and
read-outs through the shared coordinate mapper.
"""

from .movement_controller import MovementController
from .measurement import MeasurementTool, MeasurementReading
from .minimap import Minimap, MinimapRect

__all__ = [
    'MovementController',
    'MeasurementTool',
    'MeasurementReading',
    'Minimap',
    'MinimapRect',
]
