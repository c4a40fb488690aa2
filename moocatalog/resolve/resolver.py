"""
Default-settings resolution.

Generation settings for a content item are resolved by walking its
inheritance chain, lowest precedence first:

    hardcoded -> global -> owner (actor/scene) -> section -> content

Each level contributes a default block for the content type. A block whose
provider is "inherit" still contributes its other fields and templates but
keeps the provider and provenance of the levels below it.

Invariants:
    - Resolution is pure: no I/O, inputs are never mutated
    - Higher levels win field by field
    - templates merge key by key instead of being replaced
    - resolved_from names the highest level that set the provider

Example:
    >>> resolved = resolve_default_block("dialogue", section=section, owner=actor)
    >>> resolved.settings["provider"], resolved.resolved_from
    ('elevenlabs', 'owner')
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..schema.types import INHERIT

Block = dict[str, Any]

HARDCODED_DEFAULTS: dict[str, Block] = {
    "dialogue": {
        "provider": "elevenlabs",
        "model_id": "eleven_multilingual_v2",
        "stability": 0.5,
        "similarity_boost": 0.75,
        "min_candidates": 1,
        "approval_count_default": 1,
    },
    "music": {
        "provider": "elevenlabs",
        "duration_seconds": 30,
        "min_candidates": 1,
        "approval_count_default": 1,
    },
    "sfx": {
        "provider": "elevenlabs",
        "min_candidates": 1,
        "approval_count_default": 1,
    },
    "image": {
        "provider": "openai",
        "model": "dall-e-3",
        "style": "natural",
        "quality": "standard",
        "size": "1024x1024",
        "min_candidates": 1,
        "approval_count_default": 1,
    },
    "video": {
        "provider": "runway",
        "model": "gen-3-alpha",
        "duration_seconds": 5,
        "aspect_ratio": "16:9",
        "fps": 24,
        "min_candidates": 1,
        "approval_count_default": 1,
    },
}

HARDCODED_SOURCE_NAME = "System Defaults"
GLOBAL_SOURCE_NAME = "Global Defaults"


@dataclass(frozen=True)
class LevelBlock:
    """One level's contribution, with the inherit sentinel made explicit.

    Attributes:
        is_inherit: Whether the level defers its provider to lower levels
        fields: Every field except provider (when inheriting) and templates
        templates: Template overrides for this level
    """

    is_inherit: bool
    fields: dict[str, Any] = field(default_factory=dict)
    templates: dict[str, Any] | None = None

    @classmethod
    def from_block(cls, block: Mapping[str, Any]) -> LevelBlock:
        is_inherit = block.get("provider") == INHERIT
        fields = {
            k: copy.deepcopy(v)
            for k, v in block.items()
            if k != "templates" and not (is_inherit and k == "provider")
        }
        templates = block.get("templates")
        return cls(
            is_inherit=is_inherit,
            fields=fields,
            templates=dict(templates) if isinstance(templates, Mapping) else None,
        )


@dataclass
class ResolvedBlock:
    """Resolved settings with provenance.

    Attributes:
        settings: Effective default block
        resolved_from: "hardcoded", "global", "owner", "section" or "content"
        source_name: Display name of that level
    """

    settings: Block
    resolved_from: str
    source_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "settings": self.settings,
            "resolved_from": self.resolved_from,
            "source_name": self.source_name,
        }


def _merge_templates(base: dict[str, Any] | None, overrides: dict[str, Any] | None) -> dict[str, Any] | None:
    if not overrides:
        return base
    return {**(base or {}), **overrides}


def _block_for(entity: Mapping[str, Any] | None, content_type: str) -> Mapping[str, Any] | None:
    if not entity:
        return None
    block = (entity.get("default_blocks") or {}).get(content_type)
    return block if isinstance(block, Mapping) else None


def _owner_name(owner: Mapping[str, Any]) -> str:
    if "display_name" in owner:
        return owner["display_name"]
    return owner.get("name", "")


def is_inherit_block(block: Mapping[str, Any] | None) -> bool:
    """Whether a default block defers its provider to lower levels."""
    return bool(block) and block.get("provider") == INHERIT


def configured_content_types(default_blocks: Mapping[str, Any] | None) -> list[str]:
    """Content types with a block that sets its own provider."""
    if not default_blocks:
        return []
    return [ct for ct, block in default_blocks.items() if not is_inherit_block(block)]


def resolve_default_block(
    content_type: str,
    content: Mapping[str, Any] | None = None,
    section: Mapping[str, Any] | None = None,
    owner: Mapping[str, Any] | None = None,
    global_defaults: Mapping[str, Any] | None = None,
    fallbacks: Mapping[str, Block] = HARDCODED_DEFAULTS,
) -> ResolvedBlock:
    """Resolve effective settings for one content type.

    A level takes part whenever it has a block for the type. An empty block
    changes no settings but still takes provenance.

    Args:
        content_type: Content type being generated
        content: Content item (may carry per-item overrides)
        section: Section containing the content
        owner: Actor or scene owning the section
        global_defaults: Parsed defaults.json document
        fallbacks: Hardcoded blocks per content type

    Returns:
        ResolvedBlock with settings and provenance
    """
    base = fallbacks.get(content_type) or {}
    settings: Block = {k: copy.deepcopy(v) for k, v in base.items() if k != "templates"}
    templates = base.get("templates")
    templates = dict(templates) if isinstance(templates, Mapping) else None
    resolved_from = "hardcoded"
    source_name = HARDCODED_SOURCE_NAME

    global_block = None
    if global_defaults:
        global_block = (global_defaults.get("content_types") or {}).get(content_type)
        if not isinstance(global_block, Mapping):
            global_block = None

    levels: list[tuple[str, str, Mapping[str, Any] | None]] = [
        ("global", GLOBAL_SOURCE_NAME, global_block),
        ("owner", _owner_name(owner) if owner else "", _block_for(owner, content_type)),
        ("section", (section or {}).get("name", ""), _block_for(section, content_type)),
        ("content", (content or {}).get("name", ""), _block_for(content, content_type)),
    ]

    for level_name, level_source, block in levels:
        if block is None:
            continue
        level = LevelBlock.from_block(block)
        settings.update(level.fields)
        templates = _merge_templates(templates, level.templates)
        # Global is the configured baseline; it always takes provenance
        if not level.is_inherit or level_name == "global":
            resolved_from = level_name
            source_name = level_source

    if templates is not None:
        settings["templates"] = templates

    return ResolvedBlock(settings=settings, resolved_from=resolved_from, source_name=source_name)
