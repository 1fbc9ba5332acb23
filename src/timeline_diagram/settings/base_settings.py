"""
Base Settings

Validated dataclass settings and the Qt settings manager every
configuration namespace of the diagram editor builds on.

Features:
- Dataclass-based schema with per-field validators
- Backwards-compatible loading (missing fields use defaults, unknown keys are ignored)
- Optional persistence through a preferences store (get / set)
- Signal emission for UI reactivity
- Namespaced storage keys ("<namespace>.settings")

Saves are synchronous: a change is written through before the setter
returns, so readers in the same turn of the event loop see it.

Usage:
    @dataclass
    class MySettings(BaseSettings):
        threshold: float = validated_field(500.0, min_value=0)

    class MySettingsManager(BaseSettingsManager):
        NAMESPACE = "my_component"
        SETTINGS_CLASS = MySettings
"""
from dataclasses import dataclass, asdict, fields, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, Union

from PyQt6.QtCore import QObject, pyqtSignal

from ..interfaces import PreferencesStoreInterface
from ..utils.message import Log


# =============================================================================
# Validation Framework
# =============================================================================

@dataclass
class ValidationResult:
    """
    Result of validating settings.

    Attributes:
        valid: True if all validations passed
        errors: Validation failures
        warnings: Non-blocking issues
    """
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str):
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult'):
        if not other.valid:
            self.valid = False
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def __bool__(self) -> bool:
        return self.valid


@dataclass
class FieldValidator:
    """
    Validation rules for a settings field.

    Example:
        threshold: float = field(default=500.0, metadata={
            'validator': FieldValidator(min_value=0)
        })
        base_time_unit: str = field(default='ms', metadata={
            'validator': FieldValidator(choices=['ms', 's', 'm', 'h', 'd'])
        })
    """
    min_value: Optional[Union[int, float]] = None
    max_value: Optional[Union[int, float]] = None
    choices: Optional[List[Any]] = None

    # (value, field_name) -> error message or None
    custom: Optional[Callable[[Any, str], Optional[str]]] = None
    # (value, field_name) -> warning message or None; never invalidates
    advisory: Optional[Callable[[Any, str], Optional[str]]] = None

    allow_none: bool = True

    def validate(self, value: Any, field_name: str) -> ValidationResult:
        """
        Validate a value against this validator's rules.

        Args:
            value: The value to validate
            field_name: Name of the field (for messages)

        Returns:
            ValidationResult with any errors/warnings
        """
        result = ValidationResult()

        if value is None:
            if not self.allow_none:
                result.add_error(f"{field_name}: Cannot be None")
            return result

        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)

        if self.min_value is not None and is_number and value < self.min_value:
            result.add_error(f"{field_name}: Value {value} is below minimum {self.min_value}")

        if self.max_value is not None and is_number and value > self.max_value:
            result.add_error(f"{field_name}: Value {value} is above maximum {self.max_value}")

        if self.choices is not None:
            check_value = value.value if isinstance(value, Enum) else value
            valid_choices = [c.value if isinstance(c, Enum) else c for c in self.choices]
            if check_value not in valid_choices:
                result.add_error(f"{field_name}: Value '{value}' not in allowed choices: {valid_choices}")

        if self.custom is not None:
            error = self.custom(value, field_name)
            if error:
                result.add_error(error)

        if self.advisory is not None:
            warning = self.advisory(value, field_name)
            if warning:
                result.add_warning(warning)

        return result


def validated_field(
    default: Any = None,
    *,
    min_value: Optional[Union[int, float]] = None,
    max_value: Optional[Union[int, float]] = None,
    choices: Optional[List[Any]] = None,
    custom: Optional[Callable[[Any, str], Optional[str]]] = None,
    advisory: Optional[Callable[[Any, str], Optional[str]]] = None,
    allow_none: bool = True,
    **kwargs
):
    """
    Create a dataclass field with validation metadata.

    Example:
        @dataclass
        class MySettings(BaseSettings):
            ruler_max_ticks: int = validated_field(360, min_value=2)
    """
    validator = FieldValidator(
        min_value=min_value,
        max_value=max_value,
        choices=choices,
        custom=custom,
        advisory=advisory,
        allow_none=allow_none,
    )

    metadata = kwargs.pop('metadata', {})
    metadata['validator'] = validator

    return field(default=default, metadata=metadata, **kwargs)


@dataclass
class BaseSettings:
    """
    Base class for settings dataclasses.

    Subclasses define every field with a default so older stored data
    keeps loading when fields are added.
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary for storage."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseSettings':
        """
        Create settings from a dictionary.

        Missing keys take their defaults; unknown keys are dropped.
        """
        valid_keys = {f.name for f in fields(cls)}
        merged = asdict(cls())
        merged.update({k: v for k, v in data.items() if k in valid_keys})
        return cls(**merged)

    def validate(self) -> ValidationResult:
        """Validate every field that carries a validator."""
        result = ValidationResult()
        for f in fields(self):
            validator = f.metadata.get('validator') if f.metadata else None
            if isinstance(validator, FieldValidator):
                result.merge(validator.validate(getattr(self, f.name), f.name))
        return result

    def validate_field(self, field_name: str) -> ValidationResult:
        """
        Validate a single field by name.

        Raises:
            AttributeError: If the field doesn't exist
        """
        value = getattr(self, field_name)
        for f in fields(self):
            if f.name == field_name:
                validator = f.metadata.get('validator') if f.metadata else None
                if isinstance(validator, FieldValidator):
                    return validator.validate(value, field_name)
                return ValidationResult()

        raise AttributeError(f"Field '{field_name}' not found in {self.__class__.__name__}")

    def is_valid(self) -> bool:
        return self.validate().valid


class BaseSettingsManager(QObject):
    """
    Base class for settings managers.

    Provides:
    - Persistence to a preferences store (or in-memory only without one)
    - Signal emission when settings change
    - Validated writes via set_validated()

    Subclasses must define NAMESPACE and SETTINGS_CLASS.
    """

    settings_changed = pyqtSignal(str)  # Setting name that changed
    settings_loaded = pyqtSignal()
    validation_failed = pyqtSignal(object)  # ValidationResult
    settings_save_failed = pyqtSignal(str)  # Error message

    NAMESPACE: str = ""
    SETTINGS_CLASS: Type[BaseSettings] = BaseSettings

    def __init__(self, preferences_store: Optional[PreferencesStoreInterface] = None, parent=None):
        """
        Initialize the settings manager.

        Args:
            preferences_store: Store for persistence (None = in-memory only)
            parent: Parent QObject
        """
        super().__init__(parent)

        if not self.NAMESPACE:
            raise ValueError(f"{self.__class__.__name__} must define NAMESPACE")

        self._preferences_store = preferences_store
        self._settings: BaseSettings = self.SETTINGS_CLASS()
        self._loaded = False

        self._load_from_storage()

    @property
    def _storage_key(self) -> str:
        return f"{self.NAMESPACE}.settings"

    @property
    def settings(self) -> BaseSettings:
        return self._settings

    # =========================================================================
    # Generic Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self._settings, key, default)

    def set(self, key: str, value: Any) -> bool:
        """
        Set a setting value by key without validation.

        Returns True if the setting was changed.
        """
        if hasattr(self._settings, key) and getattr(self._settings, key) != value:
            setattr(self._settings, key, value)
            self._save_setting(key)
            return True
        return False

    def get_all(self) -> Dict[str, Any]:
        return self._settings.to_dict()

    def reset_to_defaults(self):
        """Reset all settings to their defaults and announce a reload."""
        self._settings = self.SETTINGS_CLASS()
        self._do_save()
        self.settings_loaded.emit()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load_from_storage(self):
        if not self._preferences_store:
            self._loaded = True
            return

        try:
            stored_data = self._preferences_store.get(self._storage_key, {})
            if stored_data and isinstance(stored_data, dict):
                self._settings = self.SETTINGS_CLASS.from_dict(stored_data)
                result = self._settings.validate()
                for warning in result.warnings:
                    Log.warning(f"{self.__class__.__name__}: {warning}")
                if not result.valid:
                    Log.warning(
                        f"{self.__class__.__name__}: Stored settings invalid, using defaults "
                        f"({'; '.join(result.errors)})"
                    )
                    self._settings = self.SETTINGS_CLASS()
        except Exception as e:
            Log.error(f"{self.__class__.__name__}: Failed to load settings: {e}")

        self._loaded = True
        self.settings_loaded.emit()

    def _save_setting(self, key: str):
        self._do_save()
        self.settings_changed.emit(key)

    def _do_save(self):
        if not self._preferences_store:
            return

        try:
            self._preferences_store.set(self._storage_key, self._settings.to_dict())
        except Exception as e:
            Log.error(f"{self.__class__.__name__}: Failed to save settings: {e}")
            self.settings_save_failed.emit(str(e))

    def is_loaded(self) -> bool:
        return self._loaded

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> ValidationResult:
        return self._settings.validate()

    def set_validated(self, key: str, value: Any) -> ValidationResult:
        """
        Set a setting value with validation.

        Invalid values are reverted and reported through validation_failed.

        Returns:
            ValidationResult - result.valid tells whether the value was kept
        """
        if not hasattr(self._settings, key):
            result = ValidationResult()
            result.add_error(f"Unknown setting: {key}")
            return result

        old_value = getattr(self._settings, key)
        setattr(self._settings, key, value)
        result = self._settings.validate_field(key)

        if result.valid:
            for warning in result.warnings:
                Log.warning(f"{self.__class__.__name__}: {warning}")
            if old_value != value:
                self._save_setting(key)
        else:
            setattr(self._settings, key, old_value)
            Log.warning(f"{self.__class__.__name__}: Rejected {key}={value!r} ({'; '.join(result.errors)})")
            self.validation_failed.emit(result)

        return result
