"""
Record validation against registered entity schemas.

This module is the gate every write passes through:
- validate_record: Collect every field-level error for a record
- validate_or_raise: Raise ValidationError carrying the full list
- record_validator: Adapter used by RecordStore.read_all

Invariants:
    - Validation is pure and deterministic
    - All errors are reported, not just the first
    - Unknown fields suggest similar valid fields
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Any, Callable

from ..errors import ValidationError
from .registry import SchemaRegistry, get_registry
from .types import EntityTypeDef, FieldError


@dataclass
class ValidationResult:
    """Outcome of validating one record.

    Attributes:
        valid: Whether the record passed
        errors: Field-level failures
    """

    valid: bool
    errors: list[FieldError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        """Errors rendered as "path: message" strings."""
        return [str(e) for e in self.errors]


def check_record(entity_type: EntityTypeDef, record: dict[str, Any]) -> list[FieldError]:
    """Check a record against an entity type definition.

    Args:
        entity_type: Entity type to validate against
        record: Record to validate

    Returns:
        List of errors, empty if valid
    """
    if not isinstance(record, dict):
        return [FieldError("$", f"expected object, got {type(record).__name__}")]

    errors: list[FieldError] = []
    known = entity_type.get_field_names()

    for name in record:
        if name not in known:
            suggestions = get_close_matches(name, known, n=3)
            if suggestions:
                errors.append(FieldError(name, f"unknown field. Did you mean: {suggestions}?"))
            else:
                errors.append(FieldError(name, "unknown field"))

    for field_def in entity_type.all_fields():
        if field_def.name not in record:
            if field_def.required:
                errors.append(FieldError(field_def.name, "is required"))
            continue
        errors.extend(field_def.check(record[field_def.name]))

    # Cross-field rules assume well-typed fields
    if not errors:
        for rule in entity_type.rules:
            errors.extend(rule(record))

    return errors


def validate_record(
    type_name: str,
    record: dict[str, Any],
    registry: SchemaRegistry | None = None,
) -> ValidationResult:
    """Validate a record against the schema registered as ``type_name``.

    Args:
        type_name: Entity type name ("actor", "scene", ...)
        record: Record to validate
        registry: Registry to use (defaults to the built-in registry)

    Returns:
        ValidationResult with every field-level error

    Raises:
        SchemaNotFoundError: If ``type_name`` is not registered
    """
    entity_type = (registry or get_registry()).get(type_name)
    errors = check_record(entity_type, record)
    return ValidationResult(valid=not errors, errors=errors)


def validate_or_raise(
    type_name: str,
    record: dict[str, Any],
    registry: SchemaRegistry | None = None,
) -> None:
    """Validate a record and raise if invalid.

    Raises:
        ValidationError: If validation fails
        SchemaNotFoundError: If ``type_name`` is not registered
    """
    result = validate_record(type_name, record, registry)
    if not result.valid:
        messages = result.messages
        raise ValidationError(
            f"Invalid {type_name}: {'; '.join(messages)}",
            entity_type=type_name,
            errors=messages,
        )


def record_validator(
    type_name: str,
    registry: SchemaRegistry | None = None,
) -> Callable[[dict[str, Any]], tuple[bool, list[str]]]:
    """Build a (record) -> (is_valid, messages) callable for store reads."""
    entity_type = (registry or get_registry()).get(type_name)

    def _validate(record: dict[str, Any]) -> tuple[bool, list[str]]:
        errors = check_record(entity_type, record)
        return not errors, [str(e) for e in errors]

    return _validate
