"""
Derived lookup indexes.

The index tree under .moo/indexes/ is rebuilt from scratch from the catalog:
- by_actor/<actor_id>.json: content owned directly by the actor
- by_bin/<section_id>.json: content inside the section
- by_media/<content_id>.json: takes of the content item

Invariants:
    - Indexes are fully derived; deleting the tree loses nothing
    - A rebuild removes index files of deleted records
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import IndexPaths, ProjectPaths
from ..ids import now_iso
from .loader import Catalog, load_catalog

logger = logging.getLogger(__name__)


@dataclass
class IndexStats:
    """Number of index files written per kind."""

    by_actor: int = 0
    by_bin: int = 0
    by_media: int = 0


def _section_of(content: dict[str, Any]) -> str | None:
    return content.get("section_id", content.get("bin_id"))


def _content_of(take: dict[str, Any]) -> str | None:
    return take.get("content_id", take.get("media_id"))


def build_index_documents(catalog: Catalog, timestamp: str) -> dict[str, dict[str, dict[str, Any]]]:
    """Compute every index document.

    Returns:
        Kind ("by_actor", "by_bin", "by_media") -> id -> document
    """
    by_actor: dict[str, dict[str, Any]] = {}
    for actor in catalog.actors:
        media_ids = [
            c["id"]
            for c in catalog.content
            if c.get("owner_type") == "actor" and c.get("owner_id") == actor["id"]
        ]
        by_actor[actor["id"]] = {
            "actor_id": actor["id"],
            "media_ids": media_ids,
            "media_count": len(media_ids),
            "last_updated": timestamp,
        }

    by_bin: dict[str, dict[str, Any]] = {}
    for section in catalog.sections:
        media_ids = [c["id"] for c in catalog.content if _section_of(c) == section["id"]]
        by_bin[section["id"]] = {
            "bin_id": section["id"],
            "owner_id": section.get("owner_id"),
            "owner_type": section.get("owner_type"),
            "media_ids": media_ids,
            "media_count": len(media_ids),
            "last_updated": timestamp,
        }

    by_media: dict[str, dict[str, Any]] = {}
    for content in catalog.content:
        takes = [t for t in catalog.takes if _content_of(t) == content["id"]]
        by_media[content["id"]] = {
            "media_id": content["id"],
            "bin_id": _section_of(content),
            "owner_id": content.get("owner_id"),
            "take_ids": [t["id"] for t in takes],
            "approved_take_ids": [t["id"] for t in takes if t.get("status") == "approved"],
            "all_approved": bool(content.get("all_approved", False)),
            "last_updated": timestamp,
        }

    return {"by_actor": by_actor, "by_bin": by_bin, "by_media": by_media}


def _write_tree(indexes: IndexPaths, documents: dict[str, dict[str, dict[str, Any]]]) -> None:
    if indexes.dir.exists():
        shutil.rmtree(indexes.dir)
    targets = {
        "by_actor": indexes.by_actor,
        "by_bin": indexes.by_bin,
        "by_media": indexes.by_media,
    }
    for directory in (indexes.by_actor_dir, indexes.by_bin_dir, indexes.by_media_dir):
        directory.mkdir(parents=True, exist_ok=True)
    for kind, docs in documents.items():
        path_for = targets[kind]
        for record_id, doc in docs.items():
            path: Path = path_for(record_id)
            path.write_text(json.dumps(doc, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


async def rebuild_indexes(paths: ProjectPaths, catalog: Catalog | None = None) -> IndexStats:
    """Rebuild the index tree of a project.

    Args:
        paths: Project path layout
        catalog: Already loaded catalog (read from disk if omitted)

    Returns:
        Number of files written per index kind
    """
    if catalog is None:
        catalog = await load_catalog(paths)

    documents = build_index_documents(catalog, now_iso())
    await asyncio.get_event_loop().run_in_executor(None, _write_tree, paths.indexes, documents)

    stats = IndexStats(
        by_actor=len(documents["by_actor"]),
        by_bin=len(documents["by_bin"]),
        by_media=len(documents["by_media"]),
    )
    logger.info(
        "Indexes rebuilt",
        extra={"root": str(paths.root), "by_actor": stats.by_actor, "by_bin": stats.by_bin, "by_media": stats.by_media},
    )
    return stats
