"""
Core type definitions for catalog record schemas.

This module defines the building blocks used to describe each entity type:
- FieldKind: Supported value shapes
- FieldDef: One field of a record
- FieldError: One validation failure, addressed by field path
- EntityTypeDef: The full shape of one entity type

Invariants:
    - Field names are unique within an entity type
    - enum_values are append-only once published
    - Every entity type implicitly carries id, created_at and updated_at

How to change safely:
    - Add new fields as optional (required=False)
    - Add new enum values at the end of enum_values
    - Never change the kind of an existing field

Example:
    >>> Actor = EntityTypeDef(
    ...     name="actor",
    ...     store="actors",
    ...     fields=(
    ...         field("display_name", "str", required=True),
    ...         field("actor_complete", "bool"),
    ...     ),
    ... )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any

from ..ids import parse_iso

CONTENT_TYPES: tuple[str, ...] = ("dialogue", "music", "sfx", "image", "video", "text")
OWNER_TYPES: tuple[str, ...] = ("actor", "scene", "global")
TAKE_STATUSES: tuple[str, ...] = ("new", "approved", "rejected", "hidden")
INHERIT = "inherit"


class FieldKind(Enum):
    """Supported field types in record schemas."""

    STRING = "str"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    TIMESTAMP = "timestamp"  # ISO-8601 string
    ENUM = "enum"
    LIST_STRING = "list_str"
    LIST_OBJECT = "list_obj"  # list of JSON objects
    JSON = "json"  # JSON object
    DEFAULT_BLOCKS = "default_blocks"  # content type -> default block

    @classmethod
    def from_str(cls, value: str) -> FieldKind:
        """Convert string representation to FieldKind.

        Raises:
            ValueError: If value is not a valid field kind
        """
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid field kind '{value}'. Valid kinds: {valid}")


@dataclass(frozen=True)
class FieldError:
    """A single validation failure.

    Attributes:
        path: Dotted path to the offending value (e.g. "default_blocks.music.provider")
        message: Human-readable reason
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_timestamp(path: str, value: Any) -> list[FieldError]:
    if not isinstance(value, str):
        return [FieldError(path, f"expected ISO-8601 string, got {_type_name(value)}")]
    try:
        parse_iso(value)
    except ValueError:
        return [FieldError(path, f"invalid ISO-8601 timestamp '{value}'")]
    return []


def check_default_block(path: str, block: Any) -> list[FieldError]:
    """Validate one default block (provider settings object)."""
    if not isinstance(block, dict):
        return [FieldError(path, f"expected object, got {_type_name(block)}")]
    errors: list[FieldError] = []
    provider = block.get("provider")
    if provider is not None and not isinstance(provider, str):
        errors.append(FieldError(f"{path}.provider", f"expected string, got {_type_name(provider)}"))
    templates = block.get("templates")
    if templates is not None and not isinstance(templates, dict):
        errors.append(
            FieldError(f"{path}.templates", f"expected object, got {_type_name(templates)}")
        )
    for key in ("min_candidates", "approval_count_default"):
        value = block.get(key)
        if value is not None and (not _is_int(value) or value < 0):
            errors.append(FieldError(f"{path}.{key}", "expected non-negative integer"))
    return errors


def _check_default_blocks(path: str, value: Any) -> list[FieldError]:
    if not isinstance(value, dict):
        return [FieldError(path, f"expected object, got {_type_name(value)}")]
    errors: list[FieldError] = []
    for content_type, block in value.items():
        if content_type not in CONTENT_TYPES:
            errors.append(
                FieldError(
                    f"{path}.{content_type}",
                    f"unknown content type, expected one of {list(CONTENT_TYPES)}",
                )
            )
            continue
        errors.extend(check_default_block(f"{path}.{content_type}", block))
    return errors


@dataclass(frozen=True)
class FieldDef:
    """Definition of a single field within an entity type.

    Attributes:
        name: Field name as stored in the record
        kind: Value shape
        required: Whether the key must be present
        nullable: Whether an explicit null is accepted
        enum_values: Valid values if kind is ENUM
        min_value: Lower bound for numeric kinds
        description: Human-readable description
    """

    name: str
    kind: FieldKind
    required: bool = False
    nullable: bool = False
    enum_values: tuple[str, ...] | None = None
    min_value: float | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name cannot be empty")
        if self.kind == FieldKind.ENUM and not self.enum_values:
            raise ValueError(f"enum_values required for ENUM field '{self.name}'")

    def check(self, value: Any, path: str | None = None) -> list[FieldError]:
        """Validate a present value against this field.

        Args:
            value: The value (the key is known to be present)
            path: Path prefix for error messages (defaults to the field name)

        Returns:
            List of errors, empty if valid
        """
        path = path or self.name

        if value is None:
            if self.nullable:
                return []
            return [FieldError(path, "must not be null")]

        kind = self.kind
        if kind == FieldKind.STRING:
            if not isinstance(value, str):
                return [FieldError(path, f"expected string, got {_type_name(value)}")]
        elif kind == FieldKind.INTEGER:
            if not _is_int(value):
                return [FieldError(path, f"expected integer, got {_type_name(value)}")]
        elif kind == FieldKind.FLOAT:
            if not _is_number(value):
                return [FieldError(path, f"expected number, got {_type_name(value)}")]
        elif kind == FieldKind.BOOLEAN:
            if not isinstance(value, bool):
                return [FieldError(path, f"expected boolean, got {_type_name(value)}")]
        elif kind == FieldKind.TIMESTAMP:
            return _check_timestamp(path, value)
        elif kind == FieldKind.ENUM:
            if not isinstance(value, str):
                return [FieldError(path, f"expected string, got {_type_name(value)}")]
            if value not in self.enum_values:
                return [
                    FieldError(
                        path, f"must be one of {list(self.enum_values)}, got '{value}'"
                    )
                ]
        elif kind == FieldKind.LIST_STRING:
            if not isinstance(value, list):
                return [FieldError(path, f"expected list, got {_type_name(value)}")]
            return [
                FieldError(f"{path}.{i}", f"expected string, got {_type_name(item)}")
                for i, item in enumerate(value)
                if not isinstance(item, str)
            ]
        elif kind == FieldKind.LIST_OBJECT:
            if not isinstance(value, list):
                return [FieldError(path, f"expected list, got {_type_name(value)}")]
            return [
                FieldError(f"{path}.{i}", f"expected object, got {_type_name(item)}")
                for i, item in enumerate(value)
                if not isinstance(item, dict)
            ]
        elif kind == FieldKind.JSON:
            if not isinstance(value, dict):
                return [FieldError(path, f"expected object, got {_type_name(value)}")]
        elif kind == FieldKind.DEFAULT_BLOCKS:
            return _check_default_blocks(path, value)

        if self.min_value is not None and _is_number(value) and value < self.min_value:
            return [FieldError(path, f"must be >= {self.min_value:g}, got {value}")]

        return []


def field(
    name: str,
    kind: str | FieldKind,
    *,
    required: bool = False,
    nullable: bool = False,
    enum_values: tuple[str, ...] | None = None,
    min_value: float | None = None,
    description: str = "",
) -> FieldDef:
    """Convenience function to create a FieldDef.

    Example:
        >>> status = field("status", "enum", required=True, enum_values=TAKE_STATUSES)
    """
    if isinstance(kind, str):
        kind = FieldKind.from_str(kind)
    return FieldDef(
        name=name,
        kind=kind,
        required=required,
        nullable=nullable,
        enum_values=enum_values,
        min_value=min_value,
        description=description,
    )


# Fields every persisted record carries.
BASE_FIELDS: tuple[FieldDef, ...] = (
    field("id", "str", required=True),
    field("created_at", "timestamp", required=True),
    field("updated_at", "timestamp", required=True),
)

RecordRule = Callable[[dict[str, Any]], list[FieldError]]


@dataclass(frozen=True)
class EntityTypeDef:
    """Definition of one entity type.

    Attributes:
        name: Entity type name (e.g. "actor")
        store: Catalog store holding records of this type (e.g. "actors")
        fields: Entity-specific field definitions
        rules: Cross-field checks run after field checks pass
        include_base_fields: Whether id/created_at/updated_at are implied
        description: Human-readable description

    Invariants:
        - Field names are unique, including the implied base fields
    """

    name: str
    store: str | None
    fields: tuple[FieldDef, ...] = dataclass_field(default_factory=tuple)
    rules: tuple[RecordRule, ...] = dataclass_field(default_factory=tuple)
    include_base_fields: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Entity type name cannot be empty")
        names = [f.name for f in self.all_fields()]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field name in entity type '{self.name}'")

    def all_fields(self) -> tuple[FieldDef, ...]:
        """Declared fields plus the implied base fields."""
        if self.include_base_fields:
            return BASE_FIELDS + self.fields
        return self.fields

    def get_field_names(self) -> list[str]:
        return [f.name for f in self.all_fields()]
