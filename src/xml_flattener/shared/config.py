"""Configuration classes for XML flattening and record cursors.

This module provides configuration objects for the flatten engine and the
record cursor, enabling control over field naming, collision handling and
the runaway-read guard.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

# Field-name joining tokens
VERTICAL_SEPARATOR = "_"   # parent_child, used when a node is lifted a level
LATERAL_SEPARATOR = "-"    # container-leaf, used when a subtree is collapsed
BASE_PREFIX = "base"       # base-leaf, used for document level context

MAX_READ_COUNT = 2_000_000
DEFAULT_DATE = date(1900, 1, 1)

_VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_COMPONENTS = ["flatten", "cursor"]


class CollisionPolicy(Enum):
    """What happens when a record receives a field name it already has."""

    LAST_WRITE_WINS = "last_write_wins"  # keep first position, take new value
    ERROR = "error"                      # raise FieldNameCollisionError


@dataclass
class FlattenConfig:
    """Configuration for the flatten engine and its collaborators."""

    vertical_separator: str = VERTICAL_SEPARATOR
    lateral_separator: str = LATERAL_SEPARATOR
    base_prefix: str = BASE_PREFIX
    min_repeat_count: int = 1
    collision_policy: CollisionPolicy = CollisionPolicy.LAST_WRITE_WINS
    fold_root_context: bool = True
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate flatten configuration."""
        if isinstance(self.collision_policy, str):
            self.collision_policy = CollisionPolicy(self.collision_policy)
        if not self.vertical_separator:
            raise ValueError("vertical_separator cannot be empty")
        if not self.lateral_separator:
            raise ValueError("lateral_separator cannot be empty")
        if self.vertical_separator == self.lateral_separator:
            raise ValueError(
                "vertical_separator and lateral_separator must be different"
            )
        if not self.base_prefix:
            raise ValueError("base_prefix cannot be empty")
        if self.min_repeat_count < 1:
            raise ValueError("min_repeat_count must be >= 1")

    @classmethod
    def default(cls) -> "FlattenConfig":
        """Create the default configuration."""
        return cls()

    @classmethod
    def strict(cls) -> "FlattenConfig":
        """Create configuration that refuses ambiguous input.

        Inference only accepts structures that actually repeat, and a field
        name produced twice in one record is an error.
        """
        return cls(min_repeat_count=2, collision_policy=CollisionPolicy.ERROR)

    def join_vertical(self, parent: str, child: str) -> str:
        """Name used when ``child`` is lifted past ``parent``."""
        return f"{parent}{self.vertical_separator}{child}"

    def join_lateral(self, container: str, child: str) -> str:
        """Name used when ``child`` is hoisted out of ``container``."""
        return f"{container}{self.lateral_separator}{child}"

    def base_name(self, name: str) -> str:
        """Name used for a document level leaf folded into every row."""
        return self.join_lateral(self.base_prefix, name)

    def name_parts(self, name: str) -> List[str]:
        """Split a promoted name back into its ancestor names."""
        return name.split(self.vertical_separator)


@dataclass
class CursorConfig:
    """Configuration for record cursors."""

    max_read_count: int = MAX_READ_COUNT
    collision_policy: CollisionPolicy = CollisionPolicy.LAST_WRITE_WINS
    default_date: date = DEFAULT_DATE

    def __post_init__(self) -> None:
        """Validate cursor configuration."""
        if isinstance(self.collision_policy, str):
            self.collision_policy = CollisionPolicy(self.collision_policy)
        if isinstance(self.default_date, str):
            self.default_date = date.fromisoformat(self.default_date)
        if self.max_read_count <= 0:
            raise ValueError("max_read_count must be > 0")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class FlattenerConfig:
    """Complete configuration bundle used by the API and the CLI.

    Immutable so one instance can be shared between calls; use
    :meth:`override` to derive variants.
    """

    flatten: FlattenConfig = field(default_factory=FlattenConfig)
    cursor: CursorConfig = field(default_factory=CursorConfig)
    logging_level: str = "WARNING"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.flatten.__post_init__()
            self.cursor.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.logging_level not in _VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {_VALID_LOGGING_LEVELS}",
                field_name="logging_level",
            )

        if self.flatten.collision_policy != self.cursor.collision_policy:
            raise ConfigValidationError(
                "flatten and cursor collision policies differ",
                field_name="collision_policy",
                suggestions=[
                    "Set flatten__collision_policy and cursor__collision_policy "
                    "to the same value",
                ],
            )

    def override(self, **kwargs: Any) -> "FlattenerConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; nested fields use ``component__field``

        Returns:
            New FlattenerConfig instance with overrides applied

        Example:
            >>> config = FlattenerConfig()
            >>> strict = config.override(
            ...     flatten__collision_policy=CollisionPolicy.ERROR,
            ...     cursor__collision_policy=CollisionPolicy.ERROR,
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        for component in _COMPONENTS:
            current = getattr(self, component)
            if component in nested_overrides:
                try:
                    new_fields[component] = replace(
                        current, **nested_overrides[component]
                    )
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e)) from e

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _convert(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, date):
                return value.isoformat()
            return value

        return {
            "flatten": {
                name: _convert(getattr(self.flatten, name))
                for name in self.flatten.__dataclass_fields__
            },
            "cursor": {
                name: _convert(getattr(self.cursor, name))
                for name in self.cursor.__dataclass_fields__
            },
            "logging_level": self.logging_level,
            "name": self.name,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlattenerConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files
        surface immediately.
        """
        try:
            flatten = FlattenConfig(**data.get("flatten", {}))
            cursor = CursorConfig(**data.get("cursor", {}))
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

        extra_keys = set(data) - {"flatten", "cursor", "logging_level", "name"}
        if extra_keys:
            raise ConfigValidationError(
                f"Unknown configuration keys: {sorted(extra_keys)}"
            )

        return cls(
            flatten=flatten,
            cursor=cursor,
            logging_level=data.get("logging_level", "WARNING"),
            name=data.get("name"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "FlattenerConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def strict(cls) -> "FlattenerConfig":
        """Preset that turns every ambiguity into an error."""
        return cls(
            flatten=FlattenConfig.strict(),
            cursor=CursorConfig(collision_policy=CollisionPolicy.ERROR),
            name="strict",
        )
