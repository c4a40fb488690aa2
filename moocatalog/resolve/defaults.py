"""
Global defaults document (defaults.json at the project root).

The document holds the project-wide default block per content type and the
templates used when new actors and scenes are created:

    {
      "schema_version": "2.0.0",
      "content_types": {"dialogue": {"provider": "elevenlabs", ...}},
      "templates": {"actor": {"auto_add_blocks": ["dialogue"]}}
    }

Invariants:
    - A document is validated before it is written
    - A missing or unreadable file loads as None; resolution then falls
      back to hardcoded defaults
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, Field, field_validator

from ..errors import ValidationError
from ..schema.types import INHERIT, check_default_block

logger = logging.getLogger(__name__)

ContentType = Literal["dialogue", "music", "sfx", "image", "video", "text"]

SCHEMA_VERSION = "2.0.0"


class ActorTemplate(BaseModel):
    auto_add_blocks: list[ContentType] = Field(default_factory=lambda: ["dialogue"])


class SceneTemplate(BaseModel):
    auto_add_blocks: list[ContentType] = Field(default_factory=list)


class EntityTemplates(BaseModel):
    actor: ActorTemplate | None = None
    scene: SceneTemplate | None = None


class GlobalDefaults(BaseModel):
    """Parsed defaults.json.

    Attributes:
        schema_version: Document format version
        content_types: Default block per content type
        templates: Seeds for new actors and scenes
    """

    schema_version: str = SCHEMA_VERSION
    content_types: dict[ContentType, dict[str, Any]] = Field(default_factory=dict)
    templates: EntityTemplates | None = None

    @field_validator("content_types")
    @classmethod
    def _check_blocks(cls, value: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        errors = []
        for content_type, block in value.items():
            errors.extend(check_default_block(f"content_types.{content_type}", block))
        if errors:
            raise ValueError("; ".join(str(e) for e in errors))
        return value

    def auto_add_blocks(self, entity_type: str) -> list[str]:
        """Content types seeded on a new actor or scene."""
        if entity_type == "actor":
            template = (self.templates.actor if self.templates else None) or ActorTemplate()
        elif entity_type == "scene":
            template = (self.templates.scene if self.templates else None) or SceneTemplate()
        else:
            return []
        return list(template.auto_add_blocks)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def seed_default_blocks(defaults: GlobalDefaults | None, entity_type: str) -> dict[str, dict[str, Any]]:
    """Default blocks for a new actor or scene, each set to inherit."""
    document = defaults or GlobalDefaults()
    return {ct: {"provider": INHERIT} for ct in document.auto_add_blocks(entity_type)}


def parse_defaults(document: Any) -> GlobalDefaults:
    """Validate a defaults document.

    Raises:
        ValidationError: If the document does not match the schema
    """
    try:
        return GlobalDefaults.model_validate(document)
    except pydantic.ValidationError as e:
        messages = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationError(
            f"Invalid defaults: {'; '.join(messages)}",
            entity_type="defaults",
            errors=messages,
        ) from e


class DefaultsStore:
    """Reads and writes defaults.json.

    Attributes:
        path: Location of defaults.json
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def _run(self, fn: Any, *args: Any) -> Any:
        return await asyncio.get_event_loop().run_in_executor(None, fn, *args)

    async def load(self) -> GlobalDefaults | None:
        """Load the document, or None if it is missing or unreadable."""
        try:
            text = await self._run(self.path.read_text, "utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError):
            logger.warning("Failed to read defaults", extra={"path": str(self.path)}, exc_info=True)
            return None

        try:
            return parse_defaults(json.loads(text))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Ignoring invalid defaults", extra={"path": str(self.path)}, exc_info=True)
            return None

    async def save(self, document: GlobalDefaults | dict[str, Any]) -> GlobalDefaults:
        """Validate and write the whole document.

        Raises:
            ValidationError: If the document is invalid (nothing is written)
        """
        if not isinstance(document, GlobalDefaults):
            document = parse_defaults(document)
        text = json.dumps(document.to_document(), indent=2, ensure_ascii=False) + "\n"
        await self._run(self._write, text)
        logger.info("Defaults saved", extra={"path": str(self.path)})
        return document

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")

    async def update_content_type(self, content_type: str, patch: dict[str, Any]) -> GlobalDefaults:
        """Merge ``patch`` into one content type's default block.

        Raises:
            ValidationError: If the merged document is invalid
        """
        current = await self.load() or GlobalDefaults()
        document = current.to_document()
        content_types = document.setdefault("content_types", {})
        content_types[content_type] = {**content_types.get(content_type, {}), **patch}
        return await self.save(document)
