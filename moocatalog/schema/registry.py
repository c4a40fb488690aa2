"""
Schema Registry for the catalog.

The SchemaRegistry maps entity-type names to their definitions. It provides:
- Registration of entity types
- Lookup by name
- Freeze mechanism to prevent runtime modifications

Invariants:
    - Registry is mutable during setup, frozen before use
    - Once frozen, no new types can be registered
    - Entity type names are unique

Example:
    >>> registry = SchemaRegistry()
    >>> registry.register(Actor)
    >>> registry.freeze()
    >>> registry.get("actor")
    EntityTypeDef(name='actor', ...)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from ..errors import SchemaNotFoundError
from .types import EntityTypeDef

logger = logging.getLogger(__name__)

_global_registry: SchemaRegistry | None = None
_registry_lock = threading.Lock()


class RegistryFrozenError(Exception):
    """Raised when attempting to modify a frozen registry."""

    pass


class DuplicateRegistrationError(Exception):
    """Raised when attempting to register a duplicate entity type name."""

    pass


class SchemaRegistry:
    """Central registry for entity type definitions.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups after freeze are lock-free

    Attributes:
        frozen: Whether the registry is frozen
    """

    def __init__(self) -> None:
        self._types: dict[str, EntityTypeDef] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, entity_type: EntityTypeDef) -> None:
        """Register an entity type definition.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If the name is already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register entity type '{entity_type.name}': registry is frozen"
                )
            if entity_type.name in self._types:
                raise DuplicateRegistrationError(
                    f"Entity type name '{entity_type.name}' already registered"
                )
            self._types[entity_type.name] = entity_type
            logger.debug(f"Registered entity type: {entity_type.name}")

    def get(self, name: str) -> EntityTypeDef:
        """Get an entity type by name.

        Raises:
            SchemaNotFoundError: If no type is registered under ``name``
        """
        entity_type = self._types.get(name)
        if entity_type is None:
            raise SchemaNotFoundError(name)
        return entity_type

    def __iter__(self) -> Iterator[EntityTypeDef]:
        return iter(self._types.values())

    def freeze(self) -> None:
        """Freeze the registry; later registrations raise."""
        with self._lock:
            if not self._frozen:
                self._frozen = True
                logger.debug(f"Schema registry frozen with {len(self._types)} types")


def get_registry() -> SchemaRegistry:
    """Get the global registry with the built-in entity types registered.

    The registry is built and frozen on first use.
    """
    global _global_registry
    if _global_registry is None:
        with _registry_lock:
            if _global_registry is None:
                from .entities import ALL_ENTITY_TYPES

                registry = SchemaRegistry()
                for entity_type in ALL_ENTITY_TYPES:
                    registry.register(entity_type)
                registry.freeze()
                _global_registry = registry
    return _global_registry
