"""
Schema module for the catalog.

This module provides the structural schemas for every entity type:
- Type definitions (EntityTypeDef, FieldDef, FieldKind)
- Schema registry for lookup by entity type name
- Record validation with field-path error messages

Invariants:
    - Every write path validates before touching a store
    - The built-in registry is frozen once built
"""

from .entities import ALL_ENTITY_TYPES, Actor, Content, Scene, Section, Snapshot, Take
from .registry import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    SchemaRegistry,
    get_registry,
)
from .types import (
    CONTENT_TYPES,
    INHERIT,
    OWNER_TYPES,
    TAKE_STATUSES,
    EntityTypeDef,
    FieldDef,
    FieldError,
    FieldKind,
    field,
)
from .validate import (
    ValidationResult,
    check_record,
    record_validator,
    validate_or_raise,
    validate_record,
)

__all__ = [
    # Types
    "EntityTypeDef",
    "FieldDef",
    "FieldError",
    "FieldKind",
    "field",
    "CONTENT_TYPES",
    "OWNER_TYPES",
    "TAKE_STATUSES",
    "INHERIT",
    # Entities
    "Actor",
    "Scene",
    "Section",
    "Content",
    "Take",
    "Snapshot",
    "ALL_ENTITY_TYPES",
    # Registry
    "SchemaRegistry",
    "get_registry",
    "RegistryFrozenError",
    "DuplicateRegistrationError",
    # Validation
    "ValidationResult",
    "check_record",
    "validate_record",
    "validate_or_raise",
    "record_validator",
]
