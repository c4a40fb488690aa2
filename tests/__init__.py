"""
moo-catalog test suite.

This package contains:
- unit/: Unit tests for the store, schema, graph, resolver and snapshots
- integration/: CatalogService, backfill and CLI tests against a temp project
"""
