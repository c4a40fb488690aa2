"""
Catalog mutation service.

Every write to a project's catalog goes through CatalogService. Each
mutation runs the same pipeline:

    load catalog -> validate -> check references -> snapshot -> write

Invariants:
    - Nothing is written (not even a snapshot) when validation or the
      reference check fails
    - Mutations on the same project root never interleave within an event loop
    - Deletes cascade; no section, content or take is left orphaned
    - update is a replace-merge: {**current, **patch, "id": id, "updated_at": now}

How to change safely:
    - New operations must acquire the project lock via _serialized()
    - Locks belong to the running loop; never cache one on the instance
    - Keep snapshot capture after every check and before the first write
"""

from __future__ import annotations

import asyncio
import logging
import re
import warnings
import weakref
from collections.abc import Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from .batch import BackfillPlan, plan_backfill
from .catalog import (
    STORE_ENTITY_TYPES,
    Catalog,
    CascadePlan,
    check_references_or_raise,
    execute_plan,
    load_catalog,
    plan_content_delete,
    plan_owner_delete,
    plan_section_delete,
    plan_take_delete,
    rebuild_indexes,
    validate_references,
)
from .catalog.indexing import IndexStats
from .config import CatalogSettings, ProjectPaths
from .errors import ConflictError, MalformedRecordWarning, NotFoundError, ValidationError
from .ids import generate_id, now_iso
from .resolve import DefaultsStore, GlobalDefaults, ResolvedBlock, resolve_default_block, seed_default_blocks
from .schema import validate_or_raise, validate_record
from .snapshot import DEFAULT_SNAPSHOT_STORES, HistoryInfo, SnapshotManager, UndoResult
from .store import RecordStore

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# Event loop -> resolved project root -> lock
_project_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]] = (
    weakref.WeakKeyDictionary()
)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def _lock_for(paths: ProjectPaths) -> asyncio.Lock:
    """The running loop's lock for a project root."""
    locks = _project_locks.setdefault(asyncio.get_running_loop(), {})
    key = str(paths.root.resolve())
    lock = locks.get(key)
    if lock is None:
        lock = locks[key] = asyncio.Lock()
    return lock


def slugify(name: str) -> str:
    """Filename-safe slug: lowercase, runs of other characters become "_"."""
    return _SLUG_PATTERN.sub("_", name.lower()).strip("_")


def split_names(value: str | None) -> list[str]:
    """Split a comma-separated name list, dropping blanks."""
    if not value:
        return []
    return [n.strip() for n in value.split(",") if n.strip()]


@dataclass
class CreateResult:
    """Outcome of a create that may reuse existing records.

    Attributes:
        records: Resulting records in input order (created and reused)
        created: Number of new records written
        reused: Number of existing records returned instead
        duplicates_skipped: Names skipped because they already exist
        message: Summary when something was skipped
    """

    records: list[Record] = field(default_factory=list)
    created: int = 0
    reused: int = 0
    duplicates_skipped: list[str] = field(default_factory=list)
    message: str | None = None


class CatalogService:
    """Validated, undoable mutations of one project's catalog.

    Attributes:
        settings: Catalog settings
        paths: Project path layout
        snapshots: Undo/redo manager
        defaults: Global defaults document store

    Example:
        >>> service = CatalogService(CatalogSettings(project_root="/work/game"))
        >>> result = await service.create_actors({"display_name": "Ada, Grace"})
        >>> await service.undo()
    """

    def __init__(
        self,
        settings: CatalogSettings | None = None,
        paths: ProjectPaths | None = None,
    ) -> None:
        self.settings = settings or CatalogSettings()
        self.paths = paths or self.settings.paths()

        stores = DEFAULT_SNAPSHOT_STORES
        if self.settings.snapshot_include_takes:
            stores = stores + ("takes",)
        self.snapshots = SnapshotManager(self.paths, stores=stores, limit=self.settings.snapshot_limit)
        self.defaults = DefaultsStore(self.paths.defaults)

    @asynccontextmanager
    async def _serialized(self) -> AsyncIterator[None]:
        if not self.settings.serialize_writes:
            yield
            return
        async with _lock_for(self.paths):
            yield

    async def _load(self) -> Catalog:
        return await load_catalog(self.paths, validate=self.settings.validate_on_load)

    def _store(self, name: str) -> RecordStore:
        return RecordStore(self.paths.store_path(name))

    async def _snapshot(self, message: str, catalog: Catalog) -> None:
        await self.snapshots.capture_before_write(message, catalog)

    async def _append_all(self, store_name: str, records: list[Record]) -> None:
        store = self._store(store_name)
        for record in records:
            await store.append(record)

    async def _replace_record(self, catalog: Catalog, store_name: str, record: Record) -> None:
        records = [record if r.get("id") == record["id"] else r for r in catalog.store(store_name)]
        await self._store(store_name).overwrite_all(records)

    def _section_label(self, catalog: Catalog, section: Mapping[str, Any]) -> str:
        owner_name = catalog.owner_name(section.get("owner_type"), section.get("owner_id"))
        return f"{owner_name} → {section.get('name') or section.get('content_type')}"

    def _content_label(self, catalog: Catalog, owner_type: str, owner_id: str | None, section_id: str, name: str) -> str:
        section = catalog.section(section_id)
        section_name = (section.get("name") or section.get("content_type")) if section else "unknown section"
        return f"{catalog.owner_name(owner_type, owner_id)} → {section_name} → {name}"

    def _take_label(self, catalog: Catalog, take: Mapping[str, Any]) -> str:
        content = catalog.content_item(take.get("content_id"))
        if content is None:
            return f"Take {take.get('take_number', take.get('id'))}"
        label = self._content_label(
            catalog, content["owner_type"], content.get("owner_id"), content["section_id"], content["name"]
        )
        return f"{label} → Take {take.get('take_number')}"

    # ------------------------------------------------------------------
    # Actors
    # ------------------------------------------------------------------

    async def create_actors(self, payload: Mapping[str, Any]) -> CreateResult:
        """Create one actor per comma-separated display name.

        Names matching an existing actor (case-insensitive) return that
        actor instead of creating a duplicate.

        Args:
            payload: Actor fields; display_name may list several names

        Returns:
            CreateResult with the actors in name order

        Raises:
            ValidationError: If no usable name is given or a record is invalid
            ReferentialIntegrityError: If the payload references missing records
        """
        names = split_names(payload.get("display_name", "New Actor"))
        if not names:
            raise ValidationError(
                "At least one valid actor name is required",
                entity_type="actor",
                errors=["display_name: is required"],
            )

        async with self._serialized():
            catalog = await self._load()
            defaults = await self.defaults.load()

            existing = {a["display_name"].lower(): a for a in catalog.actors if "display_name" in a}
            extra = {k: v for k, v in payload.items() if k not in ("display_name", "default_blocks")}
            now = now_iso()

            result = CreateResult()
            new_actors: list[Record] = []
            for name in names:
                found = existing.get(name.lower())
                if found is not None:
                    result.records.append(found)
                    result.reused += 1
                    continue
                actor = {
                    **extra,
                    "id": generate_id(),
                    "display_name": name,
                    "base_filename": slugify(name),
                    "default_blocks": payload.get("default_blocks") or seed_default_blocks(defaults, "actor"),
                    "actor_complete": False,
                    "created_at": now,
                    "updated_at": now,
                }
                validate_or_raise("actor", actor)
                existing[name.lower()] = actor
                new_actors.append(actor)
                result.records.append(actor)

            check_references_or_raise(dict(payload), catalog)
            if not new_actors:
                return result

            if len(names) == 1:
                message = f"Create actor: {names[0]}"
            else:
                message = f"Create actors: {', '.join(names)}"
            await self._snapshot(message, catalog)
            await self._append_all("actors", new_actors)
            result.created = len(new_actors)

        logger.info("Actors created", extra={"created": result.created, "reused": result.reused})
        return result

    async def update_actor(self, actor_id: str, patch: Mapping[str, Any]) -> Record:
        """Replace-merge a patch into an actor.

        Raises:
            NotFoundError: If the actor does not exist
            ValidationError: If the merged record is invalid
        """
        async with self._serialized():
            catalog = await self._load()
            current = catalog.actor(actor_id)
            if current is None:
                raise NotFoundError("actor", actor_id)

            updated = {**current, **patch, "id": actor_id, "updated_at": now_iso()}
            validate_or_raise("actor", updated)
            check_references_or_raise(dict(patch), catalog)

            old_name, new_name = current.get("display_name"), updated.get("display_name")
            if old_name != new_name:
                message = f"Rename actor: {old_name} → {new_name}"
            else:
                message = f"Update actor: {old_name}"
            await self._snapshot(message, catalog)
            await self._replace_record(catalog, "actors", updated)

        logger.info("Actor updated", extra={"actor_id": actor_id})
        return updated

    async def delete_actor(self, actor_id: str) -> CascadePlan:
        """Delete an actor with its sections, content and takes.

        The actor is also removed from every scene's actor_ids.

        Raises:
            NotFoundError: If the actor does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            plan = plan_owner_delete(catalog, "actor", actor_id)
            actor = catalog.actor(actor_id)
            await self._snapshot(f"Delete actor: {actor.get('display_name', actor_id)}", catalog)
            await execute_plan(self.paths, catalog, plan)
        return plan

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------

    async def create_scene(self, payload: Mapping[str, Any]) -> CreateResult:
        """Create a scene, or merge actor_ids into a same-named scene.

        Raises:
            ValidationError: If the name is missing or the record is invalid
            ReferentialIntegrityError: If an actor id does not exist
        """
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("Scene name is required", entity_type="scene", errors=["name: is required"])

        async with self._serialized():
            catalog = await self._load()
            check_references_or_raise(dict(payload), catalog)
            now = now_iso()

            existing = next((s for s in catalog.scenes if s.get("name", "").lower() == name.lower()), None)
            if existing is not None:
                merged_ids = list(dict.fromkeys([*(existing.get("actor_ids") or []), *(payload.get("actor_ids") or [])]))
                scene = {**existing, "actor_ids": merged_ids, "updated_at": now}
                validate_or_raise("scene", scene)
                await self._snapshot(f"Update scene: {existing['name']}", catalog)
                await self._replace_record(catalog, "scenes", scene)
                logger.info("Scene reused", extra={"scene_id": scene["id"]})
                return CreateResult(records=[scene], reused=1)

            defaults = await self.defaults.load()
            scene = {
                **{k: v for k, v in payload.items() if k not in ("name",)},
                "id": generate_id(),
                "name": name,
                "description": payload.get("description") or "",
                "default_blocks": payload.get("default_blocks") or seed_default_blocks(defaults, "scene"),
                "actor_ids": list(payload.get("actor_ids") or []),
                "scene_complete": False,
                "created_at": now,
                "updated_at": now,
            }
            validate_or_raise("scene", scene)
            await self._snapshot(f"Create scene: {name}", catalog)
            await self._append_all("scenes", [scene])

        logger.info("Scene created", extra={"scene_id": scene["id"]})
        return CreateResult(records=[scene], created=1)

    async def update_scene(self, scene_id: str, patch: Mapping[str, Any]) -> Record:
        """Replace-merge a patch into a scene.

        Raises:
            NotFoundError: If the scene does not exist
            ValidationError: If the merged record is invalid
            ReferentialIntegrityError: If an actor id does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            current = catalog.scene(scene_id)
            if current is None:
                raise NotFoundError("scene", scene_id)

            updated = {**current, **patch, "id": scene_id, "updated_at": now_iso()}
            validate_or_raise("scene", updated)
            check_references_or_raise(dict(patch), catalog)

            if current.get("name") != updated.get("name"):
                message = f"Rename scene: {current.get('name')} → {updated.get('name')}"
            else:
                message = f"Update scene: {updated.get('name')}"
            await self._snapshot(message, catalog)
            await self._replace_record(catalog, "scenes", updated)

        logger.info("Scene updated", extra={"scene_id": scene_id})
        return updated

    async def delete_scene(self, scene_id: str) -> CascadePlan:
        """Delete a scene with its sections, content and takes.

        Raises:
            NotFoundError: If the scene does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            plan = plan_owner_delete(catalog, "scene", scene_id)
            scene = catalog.scene(scene_id)
            await self._snapshot(f"Delete scene: {scene.get('name', scene_id)}", catalog)
            await execute_plan(self.paths, catalog, plan)
        return plan

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _check_section_name(
        self,
        catalog: Catalog,
        owner_type: str,
        owner_id: str | None,
        name: str | None,
        exclude_id: str | None = None,
    ) -> None:
        if not name:
            return
        for section in catalog.sections_of(owner_type, owner_id):
            if section["id"] != exclude_id and section.get("name") == name:
                raise ConflictError(
                    f'A section with the name "{name}" already exists for this owner',
                    duplicates=[name],
                )

    async def create_section(self, payload: Mapping[str, Any]) -> Record:
        """Create a section under an actor, a scene or the global owner.

        Raises:
            ValidationError: If the record is invalid
            ReferentialIntegrityError: If the owner does not exist
            ConflictError: If the owner already has a section with this name
        """
        now = now_iso()
        section = {
            **payload,
            "id": generate_id(),
            "owner_id": payload.get("owner_id"),
            "default_blocks": payload.get("default_blocks") or {},
            "section_complete": bool(payload.get("section_complete", False)),
            "created_at": now,
            "updated_at": now,
        }
        validate_or_raise("section", section)

        async with self._serialized():
            catalog = await self._load()
            check_references_or_raise(section, catalog)
            self._check_section_name(catalog, section["owner_type"], section["owner_id"], section.get("name"))

            await self._snapshot(f"Create section: {self._section_label(catalog, section)}", catalog)
            await self._append_all("sections", [section])

        logger.info("Section created", extra={"section_id": section["id"]})
        return section

    async def update_section(self, section_id: str, patch: Mapping[str, Any]) -> Record:
        """Replace-merge a patch into a section.

        Raises:
            NotFoundError: If the section does not exist
            ValidationError: If the merged record is invalid
            ReferentialIntegrityError: If a new owner does not exist
            ConflictError: If the new name is taken within the owner
        """
        async with self._serialized():
            catalog = await self._load()
            current = catalog.section(section_id)
            if current is None:
                raise NotFoundError("section", section_id)

            updated = {**current, **patch, "id": section_id, "updated_at": now_iso()}
            validate_or_raise("section", updated)
            check_references_or_raise(updated, catalog)
            if patch.get("name"):
                self._check_section_name(
                    catalog, updated["owner_type"], updated.get("owner_id"), patch["name"], exclude_id=section_id
                )

            label = self._section_label(catalog, current)
            if patch.get("name") and patch["name"] != current.get("name"):
                message = f"Rename section: {label} → {patch['name']}"
            else:
                message = f"Update section: {label}"
            await self._snapshot(message, catalog)
            await self._replace_record(catalog, "sections", updated)

        logger.info("Section updated", extra={"section_id": section_id})
        return updated

    async def delete_section(self, section_id: str) -> CascadePlan:
        """Delete a section with its content and their takes.

        Raises:
            NotFoundError: If the section does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            plan = plan_section_delete(catalog, section_id)
            label = self._section_label(catalog, catalog.section(section_id))
            await self._snapshot(f"Delete section: {label}", catalog)
            await execute_plan(self.paths, catalog, plan)
        return plan

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def create_content(self, payload: Mapping[str, Any]) -> CreateResult:
        """Create content items from a comma-separated name list.

        Names already present in the same section (case-insensitive) are
        skipped and reported. The prompt defaults to the capitalized name.

        Args:
            payload: owner_type, owner_id, section_id, content_type and
                name or names, plus optional prompt / default_blocks / tags

        Raises:
            ValidationError: If required fields are missing or a record is invalid
            ReferentialIntegrityError: If the owner or section does not exist
            ConflictError: If every name already exists in the section
        """
        missing = [k for k in ("owner_type", "content_type", "section_id") if not payload.get(k)]
        names = split_names(payload.get("names") or payload.get("name"))
        if not names:
            missing.append("name")
        if missing:
            raise ValidationError(
                "owner_type, content_type, section_id, and name/names are required",
                entity_type="content",
                errors=[f"{k}: is required" for k in missing],
            )

        owner_type = payload["owner_type"]
        owner_id = payload.get("owner_id")
        section_id = payload["section_id"]
        extra = {k: v for k, v in payload.items() if k not in ("name", "names", "prompt")}

        async with self._serialized():
            catalog = await self._load()

            now = now_iso()
            candidates = []
            for name in names:
                record = {
                    **extra,
                    "id": generate_id(),
                    "owner_id": owner_id,
                    "name": name,
                    "prompt": payload.get("prompt") or name[:1].upper() + name[1:],
                    "all_approved": False,
                    "created_at": now,
                    "updated_at": now,
                }
                validate_or_raise("content", record)
                candidates.append(record)
            check_references_or_raise(candidates[0], catalog)

            existing = {
                c.get("name", "").lower()
                for c in catalog.content
                if c.get("owner_type") == owner_type
                and c.get("owner_id") == owner_id
                and c.get("section_id") == section_id
            }
            created = [c for c in candidates if c["name"].lower() not in existing]
            duplicates = [c["name"] for c in candidates if c["name"].lower() in existing]
            if not created:
                raise ConflictError("All provided names already exist for this section", duplicates=duplicates)

            display = names[0] if len(names) == 1 else f"{len(names)} items"
            label = self._content_label(catalog, owner_type, owner_id, section_id, display)
            await self._snapshot(f"Create content: {label}", catalog)
            await self._append_all("content", created)

        result = CreateResult(records=created, created=len(created), duplicates_skipped=duplicates)
        if duplicates:
            result.message = (
                f"Created {len(created)} items. Skipped {len(duplicates)} duplicates: {', '.join(duplicates)}"
            )
        logger.info("Content created", extra={"created": len(created), "skipped": len(duplicates)})
        return result

    async def update_content(self, content_id: str, patch: Mapping[str, Any]) -> Record:
        """Replace-merge a patch into a content item.

        Raises:
            NotFoundError: If the content item does not exist
            ValidationError: If the merged record is invalid
            ReferentialIntegrityError: If a new owner or section does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            current = catalog.content_item(content_id)
            if current is None:
                raise NotFoundError("content", content_id)

            updated = {**current, **patch, "id": content_id, "updated_at": now_iso()}
            validate_or_raise("content", updated)
            check_references_or_raise(updated, catalog)

            label = self._content_label(
                catalog, current["owner_type"], current.get("owner_id"), current["section_id"], current["name"]
            )
            await self._snapshot(f"Update content: {label}", catalog)
            await self._replace_record(catalog, "content", updated)

        logger.info("Content updated", extra={"content_id": content_id})
        return updated

    async def delete_content(self, content_id: str) -> CascadePlan:
        """Delete a content item and its takes.

        Raises:
            NotFoundError: If the content item does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            plan = plan_content_delete(catalog, content_id)
            content = catalog.content_item(content_id)
            label = self._content_label(
                catalog, content["owner_type"], content.get("owner_id"), content["section_id"], content["name"]
            )
            await self._snapshot(f"Delete content: {label}", catalog)
            await execute_plan(self.paths, catalog, plan)
        return plan

    # ------------------------------------------------------------------
    # Takes
    # ------------------------------------------------------------------

    async def create_take(self, payload: Mapping[str, Any]) -> Record:
        """Register a generated take for a content item.

        The take number is one more than the highest existing number for
        the content item.

        Raises:
            ValidationError: If the record is invalid
            ReferentialIntegrityError: If the content item does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            content_id = payload.get("content_id")
            take_number = max((t.get("take_number", 0) for t in catalog.takes_of(content_id)), default=0) + 1

            now = now_iso()
            take = {
                **payload,
                "id": generate_id(),
                "take_number": take_number,
                "status": payload.get("status", "new"),
                "created_at": now,
                "updated_at": now,
            }
            validate_or_raise("take", take)
            check_references_or_raise(take, catalog)

            await self._snapshot(f"Create take: {self._take_label(catalog, take)}", catalog)
            await self._append_all("takes", [take])

        logger.info("Take created", extra={"take_id": take["id"], "content_id": content_id, "take_number": take_number})
        return take

    async def update_take(self, take_id: str, patch: Mapping[str, Any]) -> Record:
        """Replace-merge a patch into a take (typically a status change).

        Raises:
            NotFoundError: If the take does not exist
            ValidationError: If the merged record is invalid
            ReferentialIntegrityError: If the patch references missing records
        """
        async with self._serialized():
            catalog = await self._load()
            current = catalog.take(take_id)
            if current is None:
                raise NotFoundError("take", take_id)

            updated = {**current, **patch, "id": take_id, "updated_at": now_iso()}
            validate_or_raise("take", updated)
            check_references_or_raise(dict(patch), catalog)

            if "status" in patch and patch["status"] != current.get("status"):
                change = f"status {current.get('status')} → {patch['status']}"
            else:
                change = "updated"
            await self._snapshot(f"{self._take_label(catalog, current)}: {change}", catalog)
            await self._replace_record(catalog, "takes", updated)

        logger.info("Take updated", extra={"take_id": take_id})
        return updated

    async def delete_take(self, take_id: str) -> CascadePlan:
        """Delete a single take record (the media file is not touched).

        Raises:
            NotFoundError: If the take does not exist
        """
        async with self._serialized():
            catalog = await self._load()
            plan = plan_take_delete(catalog, take_id)
            await self._snapshot(f"Delete take: {self._take_label(catalog, catalog.take(take_id))}", catalog)
            await execute_plan(self.paths, catalog, plan)
        return plan

    # ------------------------------------------------------------------
    # Defaults and resolution
    # ------------------------------------------------------------------

    async def get_defaults(self) -> GlobalDefaults | None:
        return await self.defaults.load()

    async def save_defaults(self, document: GlobalDefaults | dict[str, Any]) -> GlobalDefaults:
        async with self._serialized():
            return await self.defaults.save(document)

    async def update_content_type_defaults(self, content_type: str, patch: Mapping[str, Any]) -> GlobalDefaults:
        async with self._serialized():
            return await self.defaults.update_content_type(content_type, dict(patch))

    async def resolve_settings(self, content_id: str) -> ResolvedBlock:
        """Resolve the effective generation settings of a content item.

        Raises:
            NotFoundError: If the content item does not exist
        """
        catalog = await self._load()
        content = catalog.content_item(content_id)
        if content is None:
            raise NotFoundError("content", content_id)

        defaults = await self.defaults.load()
        return resolve_default_block(
            content["content_type"],
            content=content,
            section=catalog.section(content.get("section_id")),
            owner=catalog.owner(content.get("owner_type"), content.get("owner_id")),
            global_defaults=defaults.to_document() if defaults else None,
        )

    async def plan_backfill(
        self,
        actor_id: str | None = None,
        section_id: str | None = None,
        content_id: str | None = None,
    ) -> BackfillPlan:
        """Compute how many takes each incomplete content item still needs.

        Raises:
            ReferentialIntegrityError: If a filter id does not exist
        """
        catalog = await self._load()
        defaults = await self.defaults.load()
        return plan_backfill(
            catalog,
            defaults.to_document() if defaults else None,
            actor_id=actor_id,
            section_id=section_id,
            content_id=content_id,
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def undo(self) -> UndoResult:
        """Restore the state before the last mutation.

        Raises:
            NothingToUndoError: If there is no snapshot
        """
        async with self._serialized():
            return await self.snapshots.undo()

    async def redo(self) -> UndoResult:
        """Re-apply the last undone mutation.

        Raises:
            NothingToRedoError: If nothing was undone since the last mutation
        """
        async with self._serialized():
            return await self.snapshots.redo()

    async def history(self) -> HistoryInfo:
        return await self.snapshots.history()

    async def clear_history(self) -> None:
        async with self._serialized():
            await self.snapshots.clear_history()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def rebuild_indexes(self) -> IndexStats:
        async with self._serialized():
            return await rebuild_indexes(self.paths, await self._load())

    async def check_catalog(self) -> list[str]:
        """Validate every stored record and every reference.

        Returns:
            One message per problem; empty when the catalog is consistent
        """
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", MalformedRecordWarning)
            catalog = await load_catalog(self.paths)

        problems = [str(w.message) for w in caught if issubclass(w.category, MalformedRecordWarning)]

        for store_name, entity_type in STORE_ENTITY_TYPES.items():
            seen: set[str] = set()
            for position, record in enumerate(catalog.store(store_name), start=1):
                record_id = record.get("id")
                if isinstance(record_id, str):
                    if record_id in seen:
                        problems.append(f"{store_name}/{record_id}: duplicate id")
                    seen.add(record_id)
                else:
                    record_id = f"#{position}"

                result = validate_record(entity_type, record)
                problems.extend(f"{store_name}/{record_id}: {m}" for m in result.messages)
                if not result.valid:
                    continue

                references = validate_references(record, catalog)
                problems.extend(f"{store_name}/{record_id}: {e}" for e in references.errors)

        if problems:
            logger.warning("Catalog check found problems", extra={"problem_count": len(problems)})
        else:
            logger.info("Catalog check passed", extra={"root": str(self.paths.root)})
        return problems
