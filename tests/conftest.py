"""
Shared fixtures for catalog tests.

``sample_records`` describes a small project:

    actor a1 "Ada"    -> section s1 "Main" (dialogue) -> content c1 (takes t1, t2), c2
    actor a2 "Grace"  -> section s4 "Lines" (dialogue) -> content c5 (take t4)
    scene sc1 "Intro" (actors a1, a2) -> section s2 "Score" (music) -> content c3 (take t3)
    global            -> section s3 "Shared" (sfx) -> content c4
"""

import tempfile
from pathlib import Path

import pytest

from moocatalog.catalog import Catalog
from moocatalog.config import CatalogSettings, ProjectPaths
from moocatalog.store import serialize_record

NOW = "2024-05-01T12:00:00.000Z"


def _stamp(record):
    return {**record, "created_at": NOW, "updated_at": NOW}


def sample_records():
    """Build the sample project as store name -> records."""
    actors = [
        _stamp({"id": "a1", "display_name": "Ada", "base_filename": "ada", "default_blocks": {}, "actor_complete": False}),
        _stamp({"id": "a2", "display_name": "Grace", "base_filename": "grace", "default_blocks": {}, "actor_complete": False}),
    ]
    scenes = [
        _stamp(
            {
                "id": "sc1",
                "name": "Intro",
                "description": "",
                "default_blocks": {},
                "actor_ids": ["a1", "a2"],
                "scene_complete": False,
            }
        ),
    ]
    sections = [
        _stamp({"id": "s1", "owner_type": "actor", "owner_id": "a1", "content_type": "dialogue", "name": "Main"}),
        _stamp({"id": "s2", "owner_type": "scene", "owner_id": "sc1", "content_type": "music", "name": "Score"}),
        _stamp({"id": "s3", "owner_type": "global", "owner_id": None, "content_type": "sfx", "name": "Shared"}),
        _stamp({"id": "s4", "owner_type": "actor", "owner_id": "a2", "content_type": "dialogue", "name": "Lines"}),
    ]

    def content(cid, owner_type, owner_id, section_id, content_type, name):
        return _stamp(
            {
                "id": cid,
                "owner_type": owner_type,
                "owner_id": owner_id,
                "section_id": section_id,
                "content_type": content_type,
                "name": name,
                "prompt": name.capitalize(),
                "all_approved": False,
            }
        )

    content_items = [
        content("c1", "actor", "a1", "s1", "dialogue", "hello"),
        content("c2", "actor", "a1", "s1", "dialogue", "bye"),
        content("c3", "scene", "sc1", "s2", "music", "theme"),
        content("c4", "global", None, "s3", "sfx", "boom"),
        content("c5", "actor", "a2", "s4", "dialogue", "hi"),
    ]

    def take(tid, content_id, number, status):
        return _stamp(
            {
                "id": tid,
                "content_id": content_id,
                "take_number": number,
                "path": f"media/{tid}.mp3",
                "status": status,
            }
        )

    takes = [
        take("t1", "c1", 1, "new"),
        take("t2", "c1", 2, "approved"),
        take("t3", "c3", 1, "new"),
        take("t4", "c5", 1, "new"),
    ]
    return {"actors": actors, "scenes": scenes, "sections": sections, "content": content_items, "takes": takes}


@pytest.fixture
def sample_catalog():
    """In-memory catalog of the sample project."""
    return Catalog(**sample_records())


@pytest.fixture
def project_dir():
    """Create temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def paths(project_dir):
    return ProjectPaths.for_root(project_dir)


@pytest.fixture
def settings(project_dir):
    return CatalogSettings(project_root=project_dir, log_format="text")


@pytest.fixture
def sample_project(paths):
    """Persist the sample project and return its paths."""
    paths.moo_dir.mkdir(parents=True, exist_ok=True)
    for store_name, records in sample_records().items():
        lines = "".join(serialize_record(r) + "\n" for r in records)
        paths.store_path(store_name).write_text(lines, encoding="utf-8")
    return paths
