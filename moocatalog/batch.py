"""
Backfill planning.

For every content item that is not complete (all_approved is false) the
planner works out how many new takes generation must still produce:

    if approved < approval_count_default:
        needed = max(0, min_candidates - undecided)

where undecided counts takes with status "new" and both thresholds come
from the resolved default block. Generation itself happens elsewhere;
this module only plans.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .catalog import Catalog, check_references_or_raise
from .resolve import resolve_default_block

logger = logging.getLogger(__name__)


@dataclass
class BackfillItem:
    """Planned work for one content item."""

    content_id: str
    owner_name: str
    section_name: str
    current_undecided: int
    approved: int
    min_candidates: int
    approval_count_default: int
    needed: int
    resolved_from: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_id": self.content_id,
            "owner_name": self.owner_name,
            "section_name": self.section_name,
            "current_undecided": self.current_undecided,
            "approved": self.approved,
            "min_candidates": self.min_candidates,
            "approval_count_default": self.approval_count_default,
            "needed": self.needed,
            "resolved_from": self.resolved_from,
        }


@dataclass
class BackfillPlan:
    """Planned work for every matching content item.

    Attributes:
        items: One entry per incomplete content item
        errors: Items that could not be planned
        total_needed: Sum of needed takes
    """

    items: list[BackfillItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total_needed(self) -> int:
        return sum(item.needed for item in self.items)


def plan_backfill(
    catalog: Catalog,
    global_defaults: Mapping[str, Any] | None = None,
    actor_id: str | None = None,
    section_id: str | None = None,
    content_id: str | None = None,
) -> BackfillPlan:
    """Plan take generation for incomplete content items.

    Args:
        catalog: Loaded catalog
        global_defaults: Parsed defaults.json document
        actor_id: Only content owned directly by this actor
        section_id: Only content in this section
        content_id: Only this content item

    Returns:
        BackfillPlan

    Raises:
        ReferentialIntegrityError: If a filter id does not exist
    """
    filters = {"actor_id": actor_id, "section_id": section_id, "content_id": content_id}
    check_references_or_raise({k: v for k, v in filters.items() if v is not None}, catalog)

    targets = [c for c in catalog.content if not c.get("all_approved", False)]
    if content_id:
        targets = [c for c in targets if c["id"] == content_id]
    if section_id:
        targets = [c for c in targets if c.get("section_id") == section_id]
    if actor_id:
        targets = [c for c in targets if c.get("owner_type") == "actor" and c.get("owner_id") == actor_id]

    plan = BackfillPlan()
    for content in targets:
        section = catalog.section(content.get("section_id"))
        if section is None:
            plan.errors.append(f"Content {content['id']}: Missing section")
            continue

        owner = catalog.owner(content.get("owner_type"), content.get("owner_id"))
        resolved = resolve_default_block(
            content["content_type"],
            content=content,
            section=section,
            owner=owner,
            global_defaults=global_defaults,
        )
        min_candidates = resolved.settings.get("min_candidates", 1)
        approval_count_default = resolved.settings.get("approval_count_default", 1)

        takes = catalog.takes_of(content["id"])
        undecided = sum(1 for t in takes if t.get("status") == "new")
        approved = sum(1 for t in takes if t.get("status") == "approved")

        needed = 0
        if approved < approval_count_default:
            needed = max(0, min_candidates - undecided)

        plan.items.append(
            BackfillItem(
                content_id=content["id"],
                owner_name=catalog.owner_name(content.get("owner_type"), content.get("owner_id")),
                section_name=section.get("name") or section.get("content_type", ""),
                current_undecided=undecided,
                approved=approved,
                min_candidates=min_candidates,
                approval_count_default=approval_count_default,
                needed=needed,
                resolved_from=resolved.resolved_from,
            )
        )

    logger.info(
        "Backfill planned",
        extra={"items": len(plan.items), "total_needed": plan.total_needed, "errors": len(plan.errors)},
    )
    return plan
