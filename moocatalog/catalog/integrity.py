"""
Referential integrity checks.

A candidate record (or a batch filter) is checked against a loaded catalog
before it is written. Only keys that are present and non-null are checked,
so partial patches and filters work unchanged.

Checked keys:
    owner_type / owner_id  - actor or scene exists; global has no id
    section_id, bin_id     - section exists
    content_id, media_id   - content exists
    actor_id, actor_ids    - actor(s) exist
    scene_id               - scene exists
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import ReferentialIntegrityError
from .loader import Catalog


@dataclass
class ReferenceResult:
    """Outcome of a reference check.

    Attributes:
        valid: Whether every reference resolved
        errors: One message per dangling reference
    """

    valid: bool
    errors: list[str] = field(default_factory=list)


def _check_owner(candidate: dict[str, Any], catalog: Catalog, errors: list[str]) -> None:
    if "owner_type" not in candidate or candidate["owner_type"] is None:
        return
    owner_type = candidate["owner_type"]
    owner_id = candidate.get("owner_id")

    if owner_type == "global":
        if owner_id is not None:
            errors.append(f"owner_id must be null for global owner, got {owner_id}")
        return
    if owner_type not in ("actor", "scene"):
        errors.append(f"Unknown owner_type: {owner_type}")
        return
    if not owner_id:
        errors.append(f"owner_id is required for owner_type {owner_type}")
        return
    if catalog.owner(owner_type, owner_id) is None:
        errors.append(f"{owner_type.capitalize()} not found: {owner_id}")


def validate_references(candidate: dict[str, Any], catalog: Catalog) -> ReferenceResult:
    """Check every foreign key present in ``candidate``.

    Args:
        candidate: Record, patch or filter to check
        catalog: Loaded catalog to resolve against

    Returns:
        ReferenceResult listing each dangling reference
    """
    errors: list[str] = []

    _check_owner(candidate, catalog, errors)

    for key in ("section_id", "bin_id"):
        value = candidate.get(key)
        if value is not None and catalog.section(value) is None:
            errors.append(f"Section not found: {value}")

    for key in ("content_id", "media_id"):
        value = candidate.get(key)
        if value is not None and catalog.content_item(value) is None:
            errors.append(f"Content not found: {value}")

    actor_id = candidate.get("actor_id")
    if actor_id is not None and catalog.actor(actor_id) is None:
        errors.append(f"Actor not found: {actor_id}")

    scene_id = candidate.get("scene_id")
    if scene_id is not None and catalog.scene(scene_id) is None:
        errors.append(f"Scene not found: {scene_id}")

    for value in candidate.get("actor_ids") or []:
        if catalog.actor(value) is None:
            errors.append(f"Actor not found: {value}")

    return ReferenceResult(valid=not errors, errors=errors)


def check_references_or_raise(candidate: dict[str, Any], catalog: Catalog) -> None:
    """Raise if any reference in ``candidate`` is dangling.

    Raises:
        ReferentialIntegrityError: With the full list of messages
    """
    result = validate_references(candidate, catalog)
    if not result.valid:
        raise ReferentialIntegrityError(
            f"Invalid references: {'; '.join(result.errors)}",
            errors=result.errors,
        )
