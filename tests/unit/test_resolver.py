"""
Unit tests for default-settings resolution.

Tests cover:
- Precedence across hardcoded, global, owner, section and content levels
- The inherit sentinel
- Template merging
- Provenance names
"""

import pytest

from moocatalog.resolve import (
    HARDCODED_DEFAULTS,
    LevelBlock,
    configured_content_types,
    is_inherit_block,
    resolve_default_block,
)


class TestResolveDefaultBlock:
    """Tests for resolve_default_block."""

    def test_hardcoded_only(self):
        resolved = resolve_default_block("dialogue")

        assert resolved.settings == HARDCODED_DEFAULTS["dialogue"]
        assert resolved.resolved_from == "hardcoded"
        assert resolved.source_name == "System Defaults"

    def test_precedence_with_inherit(self):
        """An inheriting owner still overrides fields but not the provider."""
        resolved = resolve_default_block(
            "dialogue",
            section={"name": "Main", "default_blocks": {"dialogue": {"provider": "manual"}}},
            owner={"display_name": "Ada", "default_blocks": {"dialogue": {"provider": "inherit", "stability": 0.3}}},
            global_defaults={"content_types": {"dialogue": {"min_candidates": 2}}},
            fallbacks={"dialogue": {"provider": "elevenlabs", "min_candidates": 1}},
        )

        assert resolved.settings == {"provider": "manual", "min_candidates": 2, "stability": 0.3}
        assert resolved.resolved_from == "section"
        assert resolved.source_name == "Main"

    def test_inherit_keeps_lower_provenance(self):
        resolved = resolve_default_block(
            "music",
            owner={"name": "Intro", "default_blocks": {"music": {"provider": "inherit", "duration_seconds": 12}}},
        )

        assert resolved.settings["provider"] == "elevenlabs"
        assert resolved.settings["duration_seconds"] == 12
        assert resolved.resolved_from == "hardcoded"

    def test_global_level(self):
        resolved = resolve_default_block(
            "sfx",
            global_defaults={"content_types": {"sfx": {"provider": "stability", "min_candidates": 3}}},
        )

        assert resolved.settings["provider"] == "stability"
        assert resolved.settings["min_candidates"] == 3
        assert resolved.resolved_from == "global"
        assert resolved.source_name == "Global Defaults"

    def test_owner_names(self):
        actor = {"display_name": "Ada", "default_blocks": {"dialogue": {"provider": "openai"}}}
        scene = {"name": "Intro", "default_blocks": {"dialogue": {"provider": "openai"}}}

        assert resolve_default_block("dialogue", owner=actor).source_name == "Ada"
        assert resolve_default_block("dialogue", owner=scene).source_name == "Intro"

    def test_content_level_wins(self):
        resolved = resolve_default_block(
            "dialogue",
            content={"name": "hello", "default_blocks": {"dialogue": {"provider": "custom", "voice_id": "v1"}}},
            section={"name": "Main", "default_blocks": {"dialogue": {"provider": "manual", "voice_id": "v0"}}},
        )

        assert resolved.settings["provider"] == "custom"
        assert resolved.settings["voice_id"] == "v1"
        assert resolved.resolved_from == "content"
        assert resolved.source_name == "hello"

    def test_empty_block_takes_provenance(self):
        resolved = resolve_default_block(
            "dialogue",
            owner={"display_name": "Ada", "default_blocks": {"dialogue": {}}},
        )

        assert resolved.settings == HARDCODED_DEFAULTS["dialogue"]
        assert resolved.resolved_from == "owner"
        assert resolved.source_name == "Ada"

    def test_empty_global_block_takes_provenance(self):
        resolved = resolve_default_block("sfx", global_defaults={"content_types": {"sfx": {}}})

        assert resolved.resolved_from == "global"

    def test_templates_merge_key_by_key(self):
        resolved = resolve_default_block(
            "dialogue",
            section={"name": "Main", "default_blocks": {"dialogue": {"provider": "inherit", "templates": {"filename": "{name}"}}}},
            global_defaults={"content_types": {"dialogue": {"templates": {"prompt": "{prompt}!", "filename": "x"}}}},
        )

        assert resolved.settings["templates"] == {"prompt": "{prompt}!", "filename": "{name}"}

    def test_no_templates_key_when_none_configured(self):
        assert "templates" not in resolve_default_block("video").settings

    def test_unknown_content_type_resolves_empty(self):
        resolved = resolve_default_block("text")

        assert resolved.settings == {}
        assert resolved.resolved_from == "hardcoded"

    def test_inputs_are_not_mutated(self):
        owner = {"display_name": "Ada", "default_blocks": {"dialogue": {"provider": "inherit", "templates": {"a": "1"}}}}
        before = {"display_name": "Ada", "default_blocks": {"dialogue": {"provider": "inherit", "templates": {"a": "1"}}}}

        resolved = resolve_default_block("dialogue", owner=owner)
        resolved.settings["templates"]["a"] = "changed"

        assert owner == before
        assert HARDCODED_DEFAULTS["dialogue"]["provider"] == "elevenlabs"

    def test_to_dict(self):
        data = resolve_default_block("sfx").to_dict()

        assert data["resolved_from"] == "hardcoded"
        assert data["settings"]["provider"] == "elevenlabs"


class TestHelpers:
    def test_level_block_from_inherit(self):
        level = LevelBlock.from_block({"provider": "inherit", "stability": 0.2, "templates": {"a": "b"}})

        assert level.is_inherit
        assert level.fields == {"stability": 0.2}
        assert level.templates == {"a": "b"}

    def test_level_block_from_override(self):
        level = LevelBlock.from_block({"provider": "openai"})

        assert not level.is_inherit
        assert level.fields == {"provider": "openai"}
        assert level.templates is None

    @pytest.mark.parametrize(
        "block,expected",
        [({"provider": "inherit"}, True), ({"provider": "openai"}, False), ({}, False), (None, False)],
    )
    def test_is_inherit_block(self, block, expected):
        assert is_inherit_block(block) is expected

    def test_configured_content_types(self):
        blocks = {"dialogue": {"provider": "inherit"}, "music": {"provider": "elevenlabs"}}

        assert configured_content_types(blocks) == ["music"]
        assert configured_content_types(None) == []
