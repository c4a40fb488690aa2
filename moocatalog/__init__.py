"""
moo-catalog - Flat-file catalog data layer for a voice-over / asset pipeline.

This package stores a hierarchical production catalog without a database:
- Actors and Scenes own Sections
- Sections hold Content items
- Content items collect generated Takes

Every entity type lives in its own line-delimited JSON file under
``<project>/.moo/``. All mutations run through one pipeline:

    ┌──────────┐   ┌──────────┐   ┌────────────┐   ┌──────────┐   ┌─────────┐
    │  Loader  │──▶│ Validate │──▶│ References │──▶│ Snapshot │──▶│ Persist │
    └──────────┘   └──────────┘   └────────────┘   └──────────┘   └─────────┘
                                                                       │
                                                                       ▼
                                                              ┌─────────────────┐
                                                              │ Cascade / Store │
                                                              └─────────────────┘

The default-settings resolver sits beside the pipeline and is read-only.

Invariants:
    - Ids are time-ordered UUIDv7 strings, never reused
    - A record is fully validated before it is written
    - Deleting an owner leaves no orphaned sections, content or takes
    - Index files under .moo/indexes are derived and can be rebuilt

How to change safely:
    - Add new fields to entity schemas as optional
    - Never rename store files without adding a layout
    - Route every new mutation through CatalogService

Version: see _version.py.
"""

from ._version import __version__
from .config import CatalogSettings, ProjectPaths, StoreLayout
from .errors import (
    CatalogError,
    ConflictError,
    NothingToRedoError,
    NothingToUndoError,
    NotFoundError,
    PartialCascadeError,
    ReferentialIntegrityError,
    ValidationError,
)
from .service import CatalogService, CreateResult

__all__ = [
    "__version__",
    "CatalogService",
    "CreateResult",
    "CatalogSettings",
    "ProjectPaths",
    "StoreLayout",
    "CatalogError",
    "ValidationError",
    "ReferentialIntegrityError",
    "NotFoundError",
    "ConflictError",
    "NothingToUndoError",
    "NothingToRedoError",
    "PartialCascadeError",
]
