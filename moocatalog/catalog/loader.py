"""
Catalog loader.

Reads every entity store of a project into one in-memory graph. A Catalog is
a transient snapshot used for one logical operation (a validation, a cascade
plan, a resolution); it is never cached across mutations.

Invariants:
    - Stores are read concurrently; a missing store is an empty list
    - Lookups are by id; the record lists keep file order
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..config import ProjectPaths
from ..schema import get_registry, record_validator
from ..store import RecordStore

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# Catalog store name -> entity type name, in registration order
STORE_ENTITY_TYPES: dict[str, str] = {t.store: t.name for t in get_registry() if t.store}


def _index(records: list[Record]) -> dict[str, Record]:
    return {r["id"]: r for r in records if isinstance(r.get("id"), str)}


@dataclass
class Catalog:
    """All entity records of one project.

    Attributes:
        actors: Actor records
        scenes: Scene records
        sections: Section records
        content: Content records
        takes: Take records
    """

    actors: list[Record] = field(default_factory=list)
    scenes: list[Record] = field(default_factory=list)
    sections: list[Record] = field(default_factory=list)
    content: list[Record] = field(default_factory=list)
    takes: list[Record] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_id: dict[str, dict[str, Record]] = {}

    def invalidate(self) -> None:
        """Drop the id lookup tables after a record list changed in place."""
        self._by_id.clear()

    def store(self, name: str) -> list[Record]:
        """Records of a store by its catalog name.

        Raises:
            KeyError: If the store name is unknown
        """
        if name not in STORE_ENTITY_TYPES:
            raise KeyError(name)
        return getattr(self, name)

    def _lookup(self, store_name: str, record_id: str | None) -> Record | None:
        if not isinstance(record_id, str):
            return None
        index = self._by_id.get(store_name)
        if index is None:
            index = self._by_id[store_name] = _index(getattr(self, store_name))
        return index.get(record_id)

    def actor(self, actor_id: str | None) -> Record | None:
        return self._lookup("actors", actor_id)

    def scene(self, scene_id: str | None) -> Record | None:
        return self._lookup("scenes", scene_id)

    def section(self, section_id: str | None) -> Record | None:
        return self._lookup("sections", section_id)

    def content_item(self, content_id: str | None) -> Record | None:
        return self._lookup("content", content_id)

    def take(self, take_id: str | None) -> Record | None:
        return self._lookup("takes", take_id)

    def owner(self, owner_type: str | None, owner_id: str | None) -> Record | None:
        """The actor or scene owning a section or content item.

        Returns None for the global owner and for unknown owners.
        """
        if owner_type == "actor":
            return self.actor(owner_id)
        if owner_type == "scene":
            return self.scene(owner_id)
        return None

    def owner_name(self, owner_type: str | None, owner_id: str | None) -> str:
        """Display name of an owner ("Global" for the global owner)."""
        if owner_type == "global":
            return "Global"
        owner = self.owner(owner_type, owner_id)
        if owner is None:
            return owner_id or ""
        if owner_type == "actor":
            return owner.get("display_name", owner_id or "")
        return owner.get("name", owner_id or "")

    def sections_of(self, owner_type: str, owner_id: str | None) -> list[Record]:
        return [
            s
            for s in self.sections
            if s.get("owner_type") == owner_type and s.get("owner_id") == owner_id
        ]

    def content_of_section(self, section_id: str) -> list[Record]:
        return [c for c in self.content if c.get("section_id") == section_id]

    def takes_of(self, content_id: str) -> list[Record]:
        return [t for t in self.takes if t.get("content_id") == content_id]


async def load_catalog(paths: ProjectPaths, validate: bool = False) -> Catalog:
    """Read every entity store of a project.

    Args:
        paths: Project path layout
        validate: Skip (with a warning) records failing their schema

    Returns:
        Catalog holding every readable record
    """

    async def _read(store_name: str) -> list[Record]:
        store = RecordStore(paths.store_path(store_name))
        validator = record_validator(STORE_ENTITY_TYPES[store_name]) if validate else None
        return await store.read_all(validator)

    names = list(STORE_ENTITY_TYPES)
    results = await asyncio.gather(*(_read(name) for name in names))
    catalog = Catalog(**dict(zip(names, results)))

    logger.debug(
        "Loaded catalog",
        extra={
            "root": str(paths.root),
            **{f"{name}_count": len(records) for name, records in zip(names, results)},
        },
    )
    return catalog
