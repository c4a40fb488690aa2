"""
Built-in entity type definitions.

- Actor: A voice talent with per-content-type default blocks
- Scene: A grouping of actors with its own default blocks
- Section: A content-type bucket owned by an actor, a scene, or global
- Content: One line / cue / effect to be generated inside a section
- Take: One generated file for a content item, with provenance
- Snapshot: One entry of the undo/redo stacks
"""

from __future__ import annotations

from typing import Any

from .types import (
    CONTENT_TYPES,
    OWNER_TYPES,
    TAKE_STATUSES,
    EntityTypeDef,
    FieldError,
    field,
)


def check_owner_pair(record: dict[str, Any]) -> list[FieldError]:
    """The global owner has a null id; actor and scene owners need one."""
    owner_type = record.get("owner_type")
    owner_id = record.get("owner_id")
    if owner_type == "global" and owner_id is not None:
        return [FieldError("owner_id", "must be null when owner_type is 'global'")]
    if owner_type in ("actor", "scene") and not owner_id:
        return [FieldError("owner_id", f"is required when owner_type is '{owner_type}'")]
    return []


def check_scene_actor_ids(record: dict[str, Any]) -> list[FieldError]:
    actor_ids = record.get("actor_ids") or []
    if len(actor_ids) != len(set(actor_ids)):
        return [FieldError("actor_ids", "must not contain duplicates")]
    return []


Actor = EntityTypeDef(
    name="actor",
    store="actors",
    description="A voice talent",
    fields=(
        field("display_name", "str", required=True),
        field("base_filename", "str", required=True, description="Filename-safe slug"),
        field("default_blocks", "default_blocks"),
        field("actor_complete", "bool"),
        field("aliases", "list_str"),
        field("notes", "str"),
    ),
)

Scene = EntityTypeDef(
    name="scene",
    store="scenes",
    description="A group of actors sharing default blocks",
    fields=(
        field("name", "str", required=True),
        field("description", "str"),
        field("default_blocks", "default_blocks"),
        field("actor_ids", "list_str"),
        field("scene_complete", "bool"),
    ),
    rules=(check_scene_actor_ids,),
)

Section = EntityTypeDef(
    name="section",
    store="sections",
    description="A content-type bucket inside an owner",
    fields=(
        field("owner_type", "enum", required=True, enum_values=OWNER_TYPES),
        field("owner_id", "str", nullable=True),
        field("content_type", "enum", required=True, enum_values=CONTENT_TYPES),
        field("name", "str"),
        field("default_blocks", "default_blocks"),
        field("section_complete", "bool"),
    ),
    rules=(check_owner_pair,),
)

Content = EntityTypeDef(
    name="content",
    store="content",
    description="One item to generate",
    fields=(
        field("owner_type", "enum", required=True, enum_values=OWNER_TYPES),
        field("owner_id", "str", nullable=True),
        field("section_id", "str", required=True),
        field("content_type", "enum", required=True, enum_values=CONTENT_TYPES),
        field("name", "str", required=True),
        field("prompt", "str"),
        field("all_approved", "bool"),
        field("approved_count", "int", min_value=0),
        field("default_blocks", "default_blocks"),
        field("tags", "list_str"),
    ),
    rules=(check_owner_pair,),
)

Take = EntityTypeDef(
    name="take",
    store="takes",
    description="A generated file for a content item",
    fields=(
        field("content_id", "str", required=True),
        field("take_number", "int", required=True, min_value=1),
        field("filename", "str"),
        field("path", "str", required=True),
        field("format", "str"),
        field("size_bytes", "int", min_value=0),
        field("duration_sec", "float", min_value=0),
        field("hash_sha256", "str"),
        field("sample_rate", "int"),
        field("channels", "int"),
        field("bit_depth", "int"),
        field("lufs_integrated", "float"),
        field("peak_dbfs", "float"),
        field("status", "enum", required=True, enum_values=TAKE_STATUSES),
        field("generation_params", "json"),
        field("notes", "str"),
    ),
)

Snapshot = EntityTypeDef(
    name="snapshot",
    store=None,
    include_base_fields=False,
    description="One entry of the undo/redo stacks",
    fields=(
        field("id", "str", required=True),
        field("timestamp", "timestamp", required=True),
        field("message", "str"),
        field("actors", "list_obj"),
        field("scenes", "list_obj"),
        field("sections", "list_obj"),
        field("content", "list_obj"),
        field("takes", "list_obj"),
    ),
)

ALL_ENTITY_TYPES: tuple[EntityTypeDef, ...] = (Actor, Scene, Section, Content, Take, Snapshot)
