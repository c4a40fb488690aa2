"""Default-settings resolution and the global defaults document."""

from .defaults import (
    DefaultsStore,
    GlobalDefaults,
    parse_defaults,
    seed_default_blocks,
)
from .resolver import (
    HARDCODED_DEFAULTS,
    LevelBlock,
    ResolvedBlock,
    configured_content_types,
    is_inherit_block,
    resolve_default_block,
)

__all__ = [
    "HARDCODED_DEFAULTS",
    "LevelBlock",
    "ResolvedBlock",
    "resolve_default_block",
    "is_inherit_block",
    "configured_content_types",
    "GlobalDefaults",
    "DefaultsStore",
    "parse_defaults",
    "seed_default_blocks",
]
