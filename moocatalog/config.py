"""
Configuration and project path layout for the catalog.

Settings come from environment variables (prefix ``MOO_``) through
pydantic-settings; every setting has a default suitable for a local project.
``ProjectPaths`` turns a project root into the concrete file layout.

Invariants:
    - All catalog files live under <root>/.moo/
    - defaults.json lives at the project root, not inside .moo/
    - Index files are derived and may be deleted at any time

How to change safely:
    - Add new settings with defaults that keep existing projects working
    - Add a new layout instead of renaming store files in place
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

MOO_DIR_NAME = ".moo"
DEFAULTS_FILE_NAME = "defaults.json"


class StoreLayout(str, Enum):
    """Which generation of store file names a project uses."""

    SECTIONS = "sections"  # sections.jsonl / content.jsonl
    BINS = "bins"  # bins.jsonl / media.jsonl


@dataclass(frozen=True)
class IndexPaths:
    """Locations of the derived lookup files.

    Attributes:
        dir: Root of the index tree
        by_actor_dir: One file per actor
        by_bin_dir: One file per section
        by_media_dir: One file per content item
    """

    dir: Path
    by_actor_dir: Path
    by_bin_dir: Path
    by_media_dir: Path

    def by_actor(self, actor_id: str) -> Path:
        return self.by_actor_dir / f"{actor_id}.json"

    def by_bin(self, section_id: str) -> Path:
        return self.by_bin_dir / f"{section_id}.json"

    def by_media(self, content_id: str) -> Path:
        return self.by_media_dir / f"{content_id}.json"


@dataclass(frozen=True)
class ProjectPaths:
    """Every file the catalog reads or writes for one project.

    Attributes:
        root: Project root directory
        moo_dir: Catalog directory (<root>/.moo)
        actors: Actor store
        scenes: Scene store
        sections: Section store (sections.jsonl or bins.jsonl)
        content: Content store (content.jsonl or media.jsonl)
        takes: Take store
        snapshots: Undo stack
        redo_snapshots: Redo stack
        indexes: Derived index locations
        defaults: Global defaults document
    """

    root: Path
    moo_dir: Path
    actors: Path
    scenes: Path
    sections: Path
    content: Path
    takes: Path
    snapshots: Path
    redo_snapshots: Path
    indexes: IndexPaths
    defaults: Path

    @classmethod
    def for_root(
        cls,
        root: str | Path,
        layout: StoreLayout | str = StoreLayout.SECTIONS,
    ) -> ProjectPaths:
        """Build the path layout for a project root.

        Args:
            root: Project root directory
            layout: Store naming generation

        Returns:
            ProjectPaths for the root
        """
        layout = StoreLayout(layout)
        root = Path(root)
        moo = root / MOO_DIR_NAME
        index_dir = moo / "indexes"

        if layout == StoreLayout.BINS:
            sections, content = moo / "bins.jsonl", moo / "media.jsonl"
        else:
            sections, content = moo / "sections.jsonl", moo / "content.jsonl"

        return cls(
            root=root,
            moo_dir=moo,
            actors=moo / "actors.jsonl",
            scenes=moo / "scenes.jsonl",
            sections=sections,
            content=content,
            takes=moo / "takes.jsonl",
            snapshots=moo / "snapshots.jsonl",
            redo_snapshots=moo / "redo-snapshots.jsonl",
            indexes=IndexPaths(
                dir=index_dir,
                by_actor_dir=index_dir / "by_actor",
                by_bin_dir=index_dir / "by_bin",
                by_media_dir=index_dir / "by_media",
            ),
            defaults=root / DEFAULTS_FILE_NAME,
        )

    def store_path(self, store_name: str) -> Path:
        """Path of an entity store by its catalog name.

        Raises:
            KeyError: If the store name is unknown
        """
        mapping = {
            "actors": self.actors,
            "scenes": self.scenes,
            "sections": self.sections,
            "content": self.content,
            "takes": self.takes,
        }
        return mapping[store_name]


class CatalogSettings(BaseSettings):
    """Catalog configuration.

    Attributes:
        project_root: Project directory holding .moo/ and defaults.json
        layout: Store file naming generation
        snapshot_limit: Maximum undo snapshots kept
        snapshot_include_takes: Also capture takes.jsonl in snapshots
        validate_on_load: Skip records failing their schema when loading
        serialize_writes: Hold a per-project lock around each mutation
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    project_root: Path = Field(default=Path("."))
    layout: StoreLayout = Field(default=StoreLayout.SECTIONS)
    snapshot_limit: int = Field(default=50, ge=1)
    snapshot_include_takes: bool = Field(default=False)
    validate_on_load: bool = Field(default=False)
    serialize_writes: bool = Field(default=True)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    model_config = {"env_prefix": "MOO_"}

    def paths(self) -> ProjectPaths:
        """Path layout for the configured project root."""
        return ProjectPaths.for_root(self.project_root, self.layout)

    def log_config(self) -> None:
        """Log the effective configuration."""
        logger.info(
            "Catalog configuration loaded",
            extra={
                "project_root": str(self.project_root),
                "layout": self.layout.value,
                "snapshot_limit": self.snapshot_limit,
                "snapshot_include_takes": self.snapshot_include_takes,
                "validate_on_load": self.validate_on_load,
                "log_level": self.log_level,
            },
        )
