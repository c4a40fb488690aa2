"""
Cascading deletes.

Deletion is split in two phases:
1. Plan: pure functions compute every record a delete removes
2. Execute: the surviving records of each affected store are written
   through write_stores_atomically

Invariants:
    - Planning never touches disk
    - Deleting an owner leaves no section, content or take pointing at it
    - Deleting an actor removes its id from every scene's actor_ids
    - Stores not touched by a plan are not rewritten

How to change safely:
    - A new child relation needs a new step in the matching plan_* function
    - Keep execution as one write_stores_atomically call per plan
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..config import ProjectPaths
from ..errors import NotFoundError
from ..ids import now_iso
from ..store import RecordStore, write_stores_atomically
from .loader import Catalog

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@dataclass
class CascadePlan:
    """Everything one delete removes.

    Attributes:
        target_type: Entity type of the deleted root record
        target_id: Id of the deleted root record
        actor_ids: Actors to remove
        scene_ids: Scenes to remove
        section_ids: Sections to remove
        content_ids: Content items to remove
        take_ids: Takes to remove
        scrub_actor_ids: Actor ids to strip from surviving scenes
    """

    target_type: str
    target_id: str
    actor_ids: set[str] = field(default_factory=set)
    scene_ids: set[str] = field(default_factory=set)
    section_ids: set[str] = field(default_factory=set)
    content_ids: set[str] = field(default_factory=set)
    take_ids: set[str] = field(default_factory=set)
    scrub_actor_ids: set[str] = field(default_factory=set)

    def affected_stores(self) -> list[str]:
        """Stores whose contents change, in catalog order."""
        stores = []
        if self.actor_ids:
            stores.append("actors")
        if self.scene_ids or self.scrub_actor_ids:
            stores.append("scenes")
        if self.section_ids:
            stores.append("sections")
        if self.content_ids:
            stores.append("content")
        if self.take_ids:
            stores.append("takes")
        return stores

    def summary(self) -> dict[str, int]:
        return {
            "actors": len(self.actor_ids),
            "scenes": len(self.scene_ids),
            "sections": len(self.section_ids),
            "content": len(self.content_ids),
            "takes": len(self.take_ids),
        }

    def apply(self, catalog: Catalog) -> dict[str, list[Record]]:
        """Compute the surviving records of every affected store.

        Args:
            catalog: Catalog the plan was computed from

        Returns:
            Store name -> records to keep (only affected stores)
        """
        removed = {
            "actors": self.actor_ids,
            "scenes": self.scene_ids,
            "sections": self.section_ids,
            "content": self.content_ids,
            "takes": self.take_ids,
        }
        result: dict[str, list[Record]] = {}
        for store_name in self.affected_stores():
            drop = removed[store_name]
            kept = [r for r in catalog.store(store_name) if not _member(r.get("id"), drop)]
            if store_name == "scenes" and self.scrub_actor_ids:
                kept = [self._scrub(scene) for scene in kept]
            result[store_name] = kept
        return result

    def _scrub(self, scene: Record) -> Record:
        actor_ids = scene.get("actor_ids") or []
        if not any(a in self.scrub_actor_ids for a in actor_ids):
            return scene
        return {
            **scene,
            "actor_ids": [a for a in actor_ids if a not in self.scrub_actor_ids],
            "updated_at": now_iso(),
        }


def _member(value: Any, ids: set[str]) -> bool:
    return isinstance(value, str) and value in ids


def _add_content(plan: CascadePlan, catalog: Catalog, content_ids: set[str]) -> None:
    plan.content_ids |= content_ids
    plan.take_ids |= {t["id"] for t in catalog.takes if _member(t.get("content_id"), content_ids)}


def plan_owner_delete(catalog: Catalog, owner_type: str, owner_id: str) -> CascadePlan:
    """Plan the delete of an actor or scene and everything it owns.

    Raises:
        NotFoundError: If the owner does not exist
    """
    if catalog.owner(owner_type, owner_id) is None:
        raise NotFoundError(owner_type, owner_id)

    plan = CascadePlan(target_type=owner_type, target_id=owner_id)
    if owner_type == "actor":
        plan.actor_ids.add(owner_id)
        plan.scrub_actor_ids.add(owner_id)
    else:
        plan.scene_ids.add(owner_id)

    plan.section_ids = {s["id"] for s in catalog.sections_of(owner_type, owner_id)}
    content_ids = {
        c["id"]
        for c in catalog.content
        if (c.get("owner_type") == owner_type and c.get("owner_id") == owner_id)
        or _member(c.get("section_id"), plan.section_ids)
    }
    _add_content(plan, catalog, content_ids)
    return plan


def plan_section_delete(catalog: Catalog, section_id: str) -> CascadePlan:
    """Plan the delete of a section, its content and their takes.

    Raises:
        NotFoundError: If the section does not exist
    """
    if catalog.section(section_id) is None:
        raise NotFoundError("section", section_id)

    plan = CascadePlan(target_type="section", target_id=section_id)
    plan.section_ids.add(section_id)
    _add_content(plan, catalog, {c["id"] for c in catalog.content_of_section(section_id)})
    return plan


def plan_content_delete(catalog: Catalog, content_id: str) -> CascadePlan:
    """Plan the delete of a content item and its takes.

    Raises:
        NotFoundError: If the content item does not exist
    """
    if catalog.content_item(content_id) is None:
        raise NotFoundError("content", content_id)

    plan = CascadePlan(target_type="content", target_id=content_id)
    _add_content(plan, catalog, {content_id})
    return plan


def plan_take_delete(catalog: Catalog, take_id: str) -> CascadePlan:
    """Plan the delete of a single take.

    Raises:
        NotFoundError: If the take does not exist
    """
    if catalog.take(take_id) is None:
        raise NotFoundError("take", take_id)

    plan = CascadePlan(target_type="take", target_id=take_id)
    plan.take_ids.add(take_id)
    return plan


async def execute_plan(paths: ProjectPaths, catalog: Catalog, plan: CascadePlan) -> dict[str, list[Record]]:
    """Persist a cascade plan.

    Args:
        paths: Project path layout
        catalog: Catalog the plan was computed from
        plan: Plan to execute

    Returns:
        Store name -> records written

    Raises:
        PartialCascadeError: If some stores were replaced before a failure
    """
    survivors = plan.apply(catalog)
    writes = {RecordStore(paths.store_path(name)): records for name, records in survivors.items()}
    await write_stores_atomically(writes)

    logger.info(
        "Cascade delete executed",
        extra={"target_type": plan.target_type, "target_id": plan.target_id, **plan.summary()},
    )
    return survivors
