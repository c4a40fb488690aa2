"""
Unit tests for entity schemas and record validation.

Tests cover:
- Field kinds and required fields
- Unknown field suggestions
- Owner pair rule
- Default block checks
- Registry lookups and freezing
"""

import pytest

from moocatalog.errors import SchemaNotFoundError, ValidationError
from moocatalog.schema import (
    EntityTypeDef,
    FieldKind,
    RegistryFrozenError,
    DuplicateRegistrationError,
    SchemaRegistry,
    field,
    get_registry,
    record_validator,
    validate_or_raise,
    validate_record,
)

NOW = "2024-05-01T12:00:00.000Z"


def make_actor(**overrides):
    actor = {
        "id": "0190a1b2-0000-7000-8000-000000000001",
        "display_name": "Ada",
        "base_filename": "ada",
        "default_blocks": {"dialogue": {"provider": "inherit"}},
        "actor_complete": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    actor.update(overrides)
    return actor


def make_section(**overrides):
    section = {
        "id": "s1",
        "owner_type": "actor",
        "owner_id": "a1",
        "content_type": "dialogue",
        "name": "Main",
        "created_at": NOW,
        "updated_at": NOW,
    }
    section.update(overrides)
    return section


class TestValidateRecord:
    """Tests for validate_record."""

    def test_valid_actor(self):
        result = validate_record("actor", make_actor())

        assert result.valid
        assert result.errors == []

    def test_missing_required_field(self):
        actor = make_actor()
        del actor["base_filename"]

        result = validate_record("actor", actor)

        assert not result.valid
        assert "base_filename: is required" in result.messages

    def test_wrong_type(self):
        result = validate_record("actor", make_actor(actor_complete="yes"))

        assert result.messages == ["actor_complete: expected boolean, got str"]

    def test_all_errors_are_reported(self):
        """Validation collects every failure, not just the first."""
        result = validate_record("actor", make_actor(display_name=3, actor_complete=None))

        assert len(result.errors) == 2

    def test_unknown_field_suggests_similar(self):
        result = validate_record("actor", make_actor(display_nam="Ada"))

        assert not result.valid
        assert result.errors[0].path == "display_nam"
        assert "display_name" in result.errors[0].message

    def test_invalid_timestamp(self):
        result = validate_record("actor", make_actor(created_at="yesterday"))

        assert result.messages == ["created_at: invalid ISO-8601 timestamp 'yesterday'"]

    def test_enum_value(self):
        result = validate_record("section", make_section(content_type="podcast"))

        assert not result.valid
        assert result.errors[0].path == "content_type"

    def test_default_block_path_in_error(self):
        actor = make_actor(default_blocks={"music": {"provider": 5}})

        result = validate_record("actor", actor)

        assert result.messages == ["default_blocks.music.provider: expected string, got int"]

    def test_default_blocks_unknown_content_type(self):
        result = validate_record("actor", make_actor(default_blocks={"podcast": {}}))

        assert result.errors[0].path == "default_blocks.podcast"

    def test_take_number_minimum(self):
        take = {
            "id": "t1",
            "content_id": "c1",
            "take_number": 0,
            "path": "audio/t1.mp3",
            "status": "new",
            "created_at": NOW,
            "updated_at": NOW,
        }

        result = validate_record("take", take)

        assert result.messages == ["take_number: must be >= 1, got 0"]

    def test_bool_is_not_an_integer(self):
        take = {
            "id": "t1",
            "content_id": "c1",
            "take_number": True,
            "path": "a.mp3",
            "status": "new",
            "created_at": NOW,
            "updated_at": NOW,
        }

        assert not validate_record("take", take).valid

    def test_unknown_type_raises(self):
        with pytest.raises(SchemaNotFoundError):
            validate_record("podcast", {})


class TestOwnerPairRule:
    """The global owner has no id; actor and scene owners need one."""

    def test_global_with_null_owner(self):
        assert validate_record("section", make_section(owner_type="global", owner_id=None)).valid

    def test_global_with_owner_id(self):
        result = validate_record("section", make_section(owner_type="global", owner_id="a1"))

        assert not result.valid
        assert result.errors[0].path == "owner_id"

    def test_actor_without_owner_id(self):
        result = validate_record("section", make_section(owner_id=None))

        assert not result.valid
        assert result.errors[0].path == "owner_id"


class TestValidateOrRaise:
    def test_raises_with_all_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_or_raise("actor", make_actor(display_name=None, actor_complete=1))

        error = exc_info.value
        assert error.code == "VALIDATION_ERROR"
        assert error.entity_type == "actor"
        assert len(error.errors) == 2

    def test_valid_record_passes(self):
        validate_or_raise("actor", make_actor())

    def test_record_validator_adapter(self):
        validator = record_validator("actor")

        assert validator(make_actor()) == (True, [])
        ok, messages = validator(make_actor(actor_complete="no"))
        assert not ok
        assert messages == ["actor_complete: expected boolean, got str"]


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_builtin_registry_is_frozen(self):
        registry = get_registry()

        assert registry.frozen
        assert {t.name for t in registry} == {"actor", "scene", "section", "content", "take", "snapshot"}

    def test_lookup_by_name(self):
        registry = get_registry()

        assert registry.get("content").store == "content"
        with pytest.raises(SchemaNotFoundError):
            registry.get("podcast")

    def test_register_after_freeze_raises(self):
        registry = SchemaRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.register(EntityTypeDef(name="note", store="notes"))

    def test_duplicate_registration_raises(self):
        registry = SchemaRegistry()
        registry.register(EntityTypeDef(name="note", store="notes"))

        with pytest.raises(DuplicateRegistrationError):
            registry.register(EntityTypeDef(name="note", store="notes"))

    def test_custom_registry_validation(self):
        registry = SchemaRegistry()
        registry.register(
            EntityTypeDef(
                name="note",
                store="notes",
                include_base_fields=False,
                fields=(field("text", "str", required=True),),
            )
        )

        assert validate_record("note", {"text": "hi"}, registry).valid
        assert not validate_record("note", {}, registry).valid

    def test_duplicate_field_names_rejected(self):
        with pytest.raises(ValueError):
            EntityTypeDef(name="bad", store=None, fields=(field("id", "str"),))

    def test_field_kind_from_str(self):
        assert FieldKind.from_str("list_obj") == FieldKind.LIST_OBJECT
        with pytest.raises(ValueError):
            FieldKind.from_str("blob")
