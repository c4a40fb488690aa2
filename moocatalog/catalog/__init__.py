"""
Catalog module: the in-memory graph of a project and the operations that
need all of it at once (reference checks, cascading deletes, indexes).
"""

from .cascade import (
    CascadePlan,
    execute_plan,
    plan_content_delete,
    plan_owner_delete,
    plan_section_delete,
    plan_take_delete,
)
from .indexing import IndexStats, build_index_documents, rebuild_indexes
from .integrity import ReferenceResult, check_references_or_raise, validate_references
from .loader import STORE_ENTITY_TYPES, Catalog, load_catalog

__all__ = [
    "Catalog",
    "load_catalog",
    "STORE_ENTITY_TYPES",
    "ReferenceResult",
    "validate_references",
    "check_references_or_raise",
    "CascadePlan",
    "plan_owner_delete",
    "plan_section_delete",
    "plan_content_delete",
    "plan_take_delete",
    "execute_plan",
    "IndexStats",
    "build_index_documents",
    "rebuild_indexes",
]
