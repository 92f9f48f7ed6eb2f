"""
Timeline Settings

Dataclass-based tuning for the timeline engine, with validation and
optional persistence.

Features:
- Dataclass schema with validated fields (defaults from constants.py)
- Backwards-compatible loading (missing keys use defaults, unknown keys dropped)
- Auto-save on change with debouncing
- Signal emission for reactivity
- JSON file preferences repository in the user config directory

Usage:
    manager = TimelineSettingsManager(JsonPreferencesRepository())
    manager.set_validated('max_zoom', 6.0)
    engine = TimelineEngine(source, settings=manager.settings)
"""
import json
import os
from dataclasses import dataclass, asdict, fields, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Type, List, Callable, Union

from PyQt6.QtCore import QObject, pyqtSignal, QTimer

from . import constants
from .utils.message import Log
from .utils.paths import get_preferences_path


# =============================================================================
# Validation Framework
# =============================================================================

@dataclass
class ValidationResult:
    """
    Result of validating settings.

    Attributes:
        valid: True if all validations passed
        errors: List of error messages (validation failures)
        warnings: List of warning messages (non-blocking issues)
    """
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str):
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult'):
        """Merge another ValidationResult into this one."""
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
        @dataclass
        class MySettings(BaseSettings):
            density: float = field(default=10, metadata={
                'validator': FieldValidator(min_value=1)
            })
    """
    # Range validation (for numbers)
    min_value: Optional[Union[int, float]] = None
    max_value: Optional[Union[int, float]] = None

    # Exclusive lower bound, for values that must be strictly positive
    greater_than: Optional[Union[int, float]] = None

    choices: Optional[List[Any]] = None

    # Signature: (value, field_name) -> Optional[str] (error message or None)
    custom: Optional[Callable[[Any, str], Optional[str]]] = None

    allow_none: bool = False

    def validate(self, value: Any, field_name: str) -> ValidationResult:
        """
        Validate a value against this validator's rules.

        Args:
            value: The value to validate
            field_name: Name of the field (for error messages)

        Returns:
            ValidationResult with any errors
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

        if self.greater_than is not None and is_number and value <= self.greater_than:
            result.add_error(f"{field_name}: Value {value} must be greater than {self.greater_than}")

        if self.choices is not None:
            check_value = value.value if isinstance(value, Enum) else value
            valid_choices = [c.value if isinstance(c, Enum) else c for c in self.choices]
            if check_value not in valid_choices:
                result.add_error(f"{field_name}: Value '{value}' not in allowed choices: {self.choices}")

        if self.custom is not None:
            error = self.custom(value, field_name)
            if error:
                result.add_error(error)

        return result


def validated_field(
    default: Any = None,
    *,
    min_value: Optional[Union[int, float]] = None,
    max_value: Optional[Union[int, float]] = None,
    greater_than: Optional[Union[int, float]] = None,
    choices: Optional[List[Any]] = None,
    allow_none: bool = False,
    custom: Optional[Callable[[Any, str], Optional[str]]] = None,
    **kwargs
):
    """
    Create a dataclass field with validation metadata.

    Example:
        @dataclass
        class MySettings(BaseSettings):
            zoom_step: float = validated_field(0.1, greater_than=0)
    """
    validator = FieldValidator(
        min_value=min_value,
        max_value=max_value,
        greater_than=greater_than,
        choices=choices,
        allow_none=allow_none,
        custom=custom,
    )

    metadata = kwargs.pop('metadata', {})
    metadata['validator'] = validator

    return field(default=default, metadata=metadata, **kwargs)


@dataclass
class BaseSettings:
    """
    Base class for settings dataclasses.

    Subclasses define every field with a default so that stored data written
    by older versions still loads.
    """

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseSettings':
        """
        Create settings from dictionary.

        Missing keys fall back to defaults; unknown keys are ignored.
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
            AttributeError: If field doesn't exist
        """
        for f in fields(self):
            if f.name == field_name:
                validator = f.metadata.get('validator') if f.metadata else None
                if isinstance(validator, FieldValidator):
                    return validator.validate(getattr(self, field_name), field_name)
                return ValidationResult()

        raise AttributeError(f"Field '{field_name}' not found in {self.__class__.__name__}")

    def is_valid(self) -> bool:
        return self.validate().valid


# =============================================================================
# Timeline Settings Schema
# =============================================================================

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class TimelineSettings(BaseSettings):
    """
    Every tunable of the timeline engine.

    Defaults mirror constants.py.
    """
    # Viewport
    viewport_density: float = validated_field(constants.VIEWPORT_DENSITY, greater_than=0)
    pan_pixels_per_day: float = validated_field(constants.PAN_PIXELS_PER_DAY, greater_than=0)
    default_viewport_width: float = validated_field(constants.DEFAULT_VIEWPORT_WIDTH, min_value=0)

    # Zoom
    min_zoom: float = validated_field(constants.MIN_ZOOM, greater_than=0)
    max_zoom: float = validated_field(constants.MAX_ZOOM, greater_than=0)
    default_zoom: float = validated_field(constants.DEFAULT_ZOOM, greater_than=0)
    zoom_step: float = validated_field(constants.ZOOM_STEP, greater_than=0)
    wheel_delta_per_step: float = validated_field(constants.WHEEL_DELTA_PER_STEP, greater_than=0)

    # Layout
    min_item_width: float = validated_field(constants.MIN_ITEM_WIDTH, min_value=0)
    item_height: float = validated_field(constants.ITEM_HEIGHT, greater_than=0)
    track_spacing: float = validated_field(constants.TRACK_SPACING, min_value=0)
    padding_top: float = validated_field(constants.PADDING_TOP, min_value=0)

    # Editing
    min_step_days: float = validated_field(constants.MIN_STEP_DAYS, greater_than=0)
    min_selection_px: float = validated_field(constants.MIN_SELECTION_PX, min_value=0)

    # Timing
    frame_interval_ms: int = validated_field(constants.FRAME_INTERVAL_MS, min_value=0, max_value=1000)
    shutdown_timeout_ms: int = validated_field(constants.SHUTDOWN_TIMEOUT_MS, min_value=0)

    # Sync
    rollback_on_failure: bool = False

    # Logging
    log_level: str = validated_field('INFO', choices=LOG_LEVELS)

    def validate(self) -> ValidationResult:
        """Field rules plus zoom bound ordering."""
        result = super().validate()
        if result.valid and not (self.min_zoom <= self.default_zoom <= self.max_zoom):
            result.add_error(
                f"default_zoom: {self.default_zoom} must lie within "
                f"[{self.min_zoom}, {self.max_zoom}]"
            )
        return result


# =============================================================================
# Persistence
# =============================================================================

class JsonPreferencesRepository:
    """
    Key/value preferences stored in a single JSON file.

    Reads the file on construction and rewrites it on every set().
    A missing or unreadable file starts empty.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else get_preferences_path()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            Log.warning(f"JsonPreferencesRepository: could not read {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            Log.warning(f"JsonPreferencesRepository: {self.path} does not hold an object, ignoring")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)
        Log.debug(f"JsonPreferencesRepository: saved '{key}'")

    def get_all(self) -> Dict[str, Any]:
        return dict(self._data)


# =============================================================================
# Settings Manager
# =============================================================================

class BaseSettingsManager(QObject):
    """
    Base class for settings managers.

    Provides:
    - Persistence to a preferences repository (in-memory when None)
    - Auto-save with debouncing
    - Signal emission when settings change
    - Validation on set_validated()

    Subclasses define NAMESPACE and SETTINGS_CLASS.
    """

    settings_changed = pyqtSignal(str)  # Setting name that changed
    settings_loaded = pyqtSignal()
    validation_failed = pyqtSignal(object)  # ValidationResult
    settings_save_failed = pyqtSignal(str)

    NAMESPACE: str = ""
    SETTINGS_CLASS: Type[BaseSettings] = BaseSettings

    SAVE_DEBOUNCE_MS: int = 300

    def __init__(self, preferences_repo=None, parent=None):
        """
        Args:
            preferences_repo: Object with get(key, default) / set(key, value), or None
            parent: Parent QObject
        """
        super().__init__(parent)

        if not self.NAMESPACE:
            raise ValueError(f"{self.__class__.__name__} must define NAMESPACE")

        self._preferences_repo = preferences_repo
        self._settings: BaseSettings = self.SETTINGS_CLASS()
        self._loaded = False

        self._save_timer = QTimer(self)
        self._save_timer.setSingleShot(True)
        self._save_timer.setInterval(self.SAVE_DEBOUNCE_MS)
        self._save_timer.timeout.connect(self._do_save)
        self._pending_save = False

        self._load_from_storage()

    @property
    def _storage_key(self) -> str:
        return f"{self.NAMESPACE}.settings"

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
        if hasattr(self._settings, key):
            if getattr(self._settings, key) != value:
                setattr(self._settings, key, value)
                self._save_setting(key)
                return True
        return False

    def set_validated(self, key: str, value: Any) -> ValidationResult:
        """
        Set a setting value, keeping the old one if validation fails.

        The whole schema is revalidated so cross-field rules apply.
        """
        if not hasattr(self._settings, key):
            result = ValidationResult()
            result.add_error(f"Unknown setting: {key}")
            return result

        old_value = getattr(self._settings, key)
        setattr(self._settings, key, value)
        result = self._settings.validate()

        if result.valid:
            if old_value != value:
                self._save_setting(key)
        else:
            setattr(self._settings, key, old_value)
            Log.warning(f"{self.__class__.__name__}: rejected {key}={value!r}: {result.errors}")
            self.validation_failed.emit(result)

        return result

    def get_all(self) -> Dict[str, Any]:
        return self._settings.to_dict()

    def reset_to_defaults(self):
        self._settings = self.SETTINGS_CLASS()
        self._do_save()
        self.settings_loaded.emit()

    def validate(self) -> ValidationResult:
        return self._settings.validate()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load_from_storage(self):
        if not self._preferences_repo:
            self._loaded = True
            return

        try:
            stored_data = self._preferences_repo.get(self._storage_key, {})
            if stored_data and isinstance(stored_data, dict):
                loaded = self.SETTINGS_CLASS.from_dict(stored_data)
                result = loaded.validate()
                if result.valid:
                    self._settings = loaded
                else:
                    Log.warning(
                        f"{self.__class__.__name__}: stored settings invalid, using defaults: {result.errors}"
                    )
            self._loaded = True
            self.settings_loaded.emit()
        except Exception as e:
            Log.error(f"{self.__class__.__name__}: Failed to load settings: {e}")
            self._loaded = True

    def _save_setting(self, key: str):
        """Queue a save operation (debounced)."""
        self._pending_save = True
        self._save_timer.start()
        self.settings_changed.emit(key)

    def _do_save(self):
        if not self._preferences_repo:
            self._pending_save = False
            return

        try:
            self._preferences_repo.set(self._storage_key, self._settings.to_dict())
            self._pending_save = False
        except Exception as e:
            Log.error(f"{self.__class__.__name__}: Failed to save settings: {e}")
            self.settings_save_failed.emit(str(e))

    def force_save(self):
        """Save now, bypassing the debounce."""
        self._save_timer.stop()
        self._do_save()

    def is_loaded(self) -> bool:
        return self._loaded

    def has_pending_save(self) -> bool:
        return self._pending_save


class TimelineSettingsManager(BaseSettingsManager):
    """
    Settings manager for the timeline engine.

    The log level is applied to Log whenever it loads or changes.
    """

    NAMESPACE = "timeline"
    SETTINGS_CLASS = TimelineSettings

    def __init__(self, preferences_repo=None, parent=None):
        super().__init__(preferences_repo, parent)
        self._apply_log_level()
        self.settings_changed.connect(self._on_setting_changed)
        self.settings_loaded.connect(self._apply_log_level)

    @property
    def settings(self) -> TimelineSettings:
        """Snapshot of the current settings."""
        return replace(self._settings)

    @property
    def rollback_on_failure(self) -> bool:
        return self._settings.rollback_on_failure

    @rollback_on_failure.setter
    def rollback_on_failure(self, value: bool):
        self.set('rollback_on_failure', bool(value))

    @property
    def log_level(self) -> str:
        return self._settings.log_level

    @log_level.setter
    def log_level(self, value: str):
        self.set_validated('log_level', value.upper())

    def _on_setting_changed(self, key: str):
        if key == 'log_level':
            self._apply_log_level()

    def _apply_log_level(self):
        Log.set_level(self._settings.log_level)
