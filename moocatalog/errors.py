"""
Error types for the catalog data layer.

This module defines every exception raised by the catalog:
- CatalogError: Base exception
- ValidationError: Record failed schema validation
- ReferentialIntegrityError: A foreign key does not resolve
- NotFoundError: Update/delete target is missing
- ConflictError: Name collision inside an owner or section
- NothingToUndoError / NothingToRedoError: Empty history stacks
- PartialCascadeError: Multi-store write failed partway
- SchemaNotFoundError: Unknown entity type name

Invariants:
    - All errors inherit from CatalogError
    - Validation and reference errors carry the full list of messages
    - Errors are raised before any store is touched, except PartialCascadeError
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "CATALOG_ERROR"
        self.details = details or {}


class ValidationError(CatalogError):
    """Record failed schema validation.

    Raised when:
    - Required field is missing
    - Field value has wrong type
    - Enum value is invalid
    - Unknown field is present
    """

    def __init__(
        self,
        message: str,
        entity_type: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"entity_type": entity_type, "errors": errors or []},
        )
        self.entity_type = entity_type
        self.errors = errors or []


class ReferentialIntegrityError(CatalogError):
    """A foreign key in the candidate record does not resolve."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(
            message,
            code="REFERENTIAL_INTEGRITY",
            details={"errors": errors or []},
        )
        self.errors = errors or []


class NotFoundError(CatalogError):
    """Update or delete target is absent from its store."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_type.capitalize()} not found: {entity_id}",
            code="NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(CatalogError):
    """Name collision.

    Raised when:
    - A section is renamed to a name already used by the same owner
    - Every name in a content batch already exists in the section
    """

    def __init__(self, message: str, duplicates: Optional[List[str]] = None) -> None:
        super().__init__(
            message,
            code="CONFLICT",
            details={"duplicates": duplicates or []},
        )
        self.duplicates = duplicates or []


class NothingToUndoError(CatalogError):
    """The snapshot stack is empty."""

    def __init__(self) -> None:
        super().__init__("Nothing to undo", code="NOTHING_TO_UNDO")


class NothingToRedoError(CatalogError):
    """The redo stack is empty."""

    def __init__(self) -> None:
        super().__init__("Nothing to redo", code="NOTHING_TO_REDO")


class PartialCascadeError(CatalogError):
    """A multi-store write failed after some stores were replaced.

    The catalog is left inconsistent. ``committed`` lists the stores whose
    new contents are already on disk; ``pending`` lists those that still
    hold their previous contents.
    """

    def __init__(
        self,
        message: str,
        committed: Optional[List[str]] = None,
        pending: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="PARTIAL_CASCADE",
            details={"committed": committed or [], "pending": pending or []},
        )
        self.committed = committed or []
        self.pending = pending or []


class SchemaNotFoundError(CatalogError):
    """No schema is registered under the requested entity type name."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Schema not found for entity type: {type_name}",
            code="SCHEMA_NOT_FOUND",
            details={"type_name": type_name},
        )
        self.type_name = type_name


class MalformedRecordWarning(UserWarning):
    """A store line failed to parse or validate and was skipped."""
