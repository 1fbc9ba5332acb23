"""
Settings

Validated dataclass settings and their Qt managers.
"""

from .base_settings import (
    BaseSettings,
    BaseSettingsManager,
    FieldValidator,
    ValidationResult,
    validated_field,
)
from .timeline_settings import TimelineSettings, TimelineSettingsManager

__all__ = [
    'BaseSettings',
    'BaseSettingsManager',
    'FieldValidator',
    'ValidationResult',
    'validated_field',
    'TimelineSettings',
    'TimelineSettingsManager',
]
