"""
Unit tests for the catalog loader, reference checks and cascade planning.

Tests cover:
- Concurrent load and id lookups
- Reference checks for every foreign key
- Cascade plans for owners, sections, content and takes
- Plan application and execution
"""

import pytest

from moocatalog.catalog import (
    STORE_ENTITY_TYPES,
    check_references_or_raise,
    execute_plan,
    load_catalog,
    plan_content_delete,
    plan_owner_delete,
    plan_section_delete,
    plan_take_delete,
    validate_references,
)
from moocatalog.errors import MalformedRecordWarning, NotFoundError, ReferentialIntegrityError


class TestLoadCatalog:
    """Tests for load_catalog and Catalog lookups."""

    def test_store_map_follows_registry(self):
        assert list(STORE_ENTITY_TYPES.items()) == [
            ("actors", "actor"),
            ("scenes", "scene"),
            ("sections", "section"),
            ("content", "content"),
            ("takes", "take"),
        ]

    @pytest.mark.asyncio
    async def test_empty_project(self, paths):
        catalog = await load_catalog(paths)

        assert catalog.actors == []
        assert catalog.takes == []

    @pytest.mark.asyncio
    async def test_loads_every_store(self, sample_project):
        catalog = await load_catalog(sample_project)

        assert len(catalog.actors) == 2
        assert len(catalog.scenes) == 1
        assert len(catalog.sections) == 4
        assert len(catalog.content) == 5
        assert len(catalog.takes) == 4

    @pytest.mark.asyncio
    async def test_validate_skips_invalid_records(self, sample_project):
        with open(sample_project.actors, "a", encoding="utf-8") as f:
            f.write('{"id":"bad","display_name":7}\n')

        with pytest.warns(MalformedRecordWarning):
            catalog = await load_catalog(sample_project, validate=True)

        assert [a["id"] for a in catalog.actors] == ["a1", "a2"]

    def test_lookups(self, sample_catalog):
        assert sample_catalog.actor("a1")["display_name"] == "Ada"
        assert sample_catalog.scene("sc1")["name"] == "Intro"
        assert sample_catalog.section("s3")["owner_type"] == "global"
        assert sample_catalog.content_item("c4")["name"] == "boom"
        assert sample_catalog.take("t2")["status"] == "approved"
        assert sample_catalog.actor("missing") is None
        assert sample_catalog.actor(None) is None

    def test_owner_lookups(self, sample_catalog):
        assert sample_catalog.owner("actor", "a2")["display_name"] == "Grace"
        assert sample_catalog.owner("scene", "sc1")["name"] == "Intro"
        assert sample_catalog.owner("global", None) is None
        assert sample_catalog.owner_name("actor", "a1") == "Ada"
        assert sample_catalog.owner_name("scene", "sc1") == "Intro"
        assert sample_catalog.owner_name("global", None) == "Global"

    def test_invalidate_refreshes_lookups(self, sample_catalog):
        assert sample_catalog.actor("a3") is None

        sample_catalog.actors.append({"id": "a3", "display_name": "Linus"})
        sample_catalog.invalidate()

        assert sample_catalog.actor("a3")["display_name"] == "Linus"


class TestValidateReferences:
    """Tests for validate_references."""

    def test_valid_references(self, sample_catalog):
        candidate = {"owner_type": "actor", "owner_id": "a1", "section_id": "s1"}

        assert validate_references(candidate, sample_catalog).valid

    def test_absent_keys_are_not_checked(self, sample_catalog):
        assert validate_references({"name": "x"}, sample_catalog).valid

    def test_global_owner(self, sample_catalog):
        assert validate_references({"owner_type": "global", "owner_id": None}, sample_catalog).valid

        result = validate_references({"owner_type": "global", "owner_id": "a1"}, sample_catalog)
        assert not result.valid

    def test_missing_owner(self, sample_catalog):
        result = validate_references({"owner_type": "scene", "owner_id": "nope"}, sample_catalog)

        assert result.errors == ["Scene not found: nope"]

    def test_every_dangling_key_reported(self, sample_catalog):
        candidate = {
            "section_id": "x1",
            "content_id": "x2",
            "actor_id": "x3",
            "scene_id": "x4",
            "actor_ids": ["a1", "x5"],
        }

        result = validate_references(candidate, sample_catalog)

        assert result.errors == [
            "Section not found: x1",
            "Content not found: x2",
            "Actor not found: x3",
            "Scene not found: x4",
            "Actor not found: x5",
        ]

    def test_legacy_filter_aliases(self, sample_catalog):
        assert validate_references({"bin_id": "s1", "media_id": "c1"}, sample_catalog).valid

        result = validate_references({"bin_id": "zz", "media_id": "yy"}, sample_catalog)
        assert result.errors == ["Section not found: zz", "Content not found: yy"]

    def test_raise_variant(self, sample_catalog):
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            check_references_or_raise({"content_id": "zz"}, sample_catalog)

        assert exc_info.value.errors == ["Content not found: zz"]
        assert exc_info.value.code == "REFERENTIAL_INTEGRITY"


class TestCascadePlans:
    """Tests for cascade planning."""

    def test_actor_delete(self, sample_catalog):
        plan = plan_owner_delete(sample_catalog, "actor", "a1")

        assert plan.actor_ids == {"a1"}
        assert plan.section_ids == {"s1"}
        assert plan.content_ids == {"c1", "c2"}
        assert plan.take_ids == {"t1", "t2"}
        assert plan.scrub_actor_ids == {"a1"}
        assert plan.affected_stores() == ["actors", "scenes", "sections", "content", "takes"]

    def test_actor_delete_leaves_no_orphans(self, sample_catalog):
        plan = plan_owner_delete(sample_catalog, "actor", "a1")

        survivors = plan.apply(sample_catalog)

        assert [a["id"] for a in survivors["actors"]] == ["a2"]
        assert all(s.get("owner_id") != "a1" for s in survivors["sections"])
        assert all(c.get("owner_id") != "a1" for c in survivors["content"])
        remaining_content = {c["id"] for c in survivors["content"]}
        assert all(t["content_id"] in remaining_content for t in survivors["takes"])
        assert survivors["scenes"][0]["actor_ids"] == ["a2"]

    def test_actor_delete_counts_on_larger_graph(self, sample_catalog):
        """3 sections x 4 content x 2 takes go; every unrelated record stays."""
        sections, content, takes = 3, 4, 2
        sample_catalog.actors.append({"id": "ak", "display_name": "Kay"})
        sample_catalog.scenes[0]["actor_ids"].append("ak")
        for s in range(sections):
            sid = f"ks{s}"
            sample_catalog.sections.append(
                {"id": sid, "owner_type": "actor", "owner_id": "ak", "content_type": "dialogue", "name": sid}
            )
            for c in range(content):
                cid = f"{sid}c{c}"
                sample_catalog.content.append(
                    {"id": cid, "owner_type": "actor", "owner_id": "ak", "section_id": sid, "name": cid}
                )
                for t in range(takes):
                    sample_catalog.takes.append({"id": f"{cid}t{t}", "content_id": cid, "take_number": t + 1})
        sample_catalog.invalidate()

        plan = plan_owner_delete(sample_catalog, "actor", "ak")
        survivors = plan.apply(sample_catalog)

        assert plan.summary() == {
            "actors": 1,
            "scenes": 0,
            "sections": sections,
            "content": sections * content,
            "takes": sections * content * takes,
        }
        assert [a["id"] for a in survivors["actors"]] == ["a1", "a2"]
        assert [s["id"] for s in survivors["sections"]] == ["s1", "s2", "s3", "s4"]
        assert [c["id"] for c in survivors["content"]] == ["c1", "c2", "c3", "c4", "c5"]
        assert [t["id"] for t in survivors["takes"]] == ["t1", "t2", "t3", "t4"]
        assert survivors["scenes"][0]["actor_ids"] == ["a1", "a2"]

    def test_apply_does_not_mutate_catalog(self, sample_catalog):
        plan_owner_delete(sample_catalog, "actor", "a1").apply(sample_catalog)

        assert sample_catalog.scene("sc1")["actor_ids"] == ["a1", "a2"]
        assert len(sample_catalog.actors) == 2

    def test_scene_delete(self, sample_catalog):
        plan = plan_owner_delete(sample_catalog, "scene", "sc1")

        assert plan.scene_ids == {"sc1"}
        assert plan.section_ids == {"s2"}
        assert plan.content_ids == {"c3"}
        assert plan.take_ids == {"t3"}
        assert "actors" not in plan.affected_stores()

    def test_owner_delete_unknown(self, sample_catalog):
        with pytest.raises(NotFoundError):
            plan_owner_delete(sample_catalog, "actor", "nobody")

    def test_section_delete(self, sample_catalog):
        plan = plan_section_delete(sample_catalog, "s1")

        assert plan.section_ids == {"s1"}
        assert plan.content_ids == {"c1", "c2"}
        assert plan.take_ids == {"t1", "t2"}
        assert plan.affected_stores() == ["sections", "content", "takes"]

    def test_content_delete(self, sample_catalog):
        plan = plan_content_delete(sample_catalog, "c1")

        assert plan.content_ids == {"c1"}
        assert plan.take_ids == {"t1", "t2"}
        assert plan.summary()["takes"] == 2

    def test_take_delete(self, sample_catalog):
        plan = plan_take_delete(sample_catalog, "t3")

        assert plan.affected_stores() == ["takes"]
        assert [t["id"] for t in plan.apply(sample_catalog)["takes"]] == ["t1", "t2", "t4"]

    def test_missing_targets(self, sample_catalog):
        with pytest.raises(NotFoundError):
            plan_section_delete(sample_catalog, "zz")
        with pytest.raises(NotFoundError):
            plan_content_delete(sample_catalog, "zz")
        with pytest.raises(NotFoundError):
            plan_take_delete(sample_catalog, "zz")

    @pytest.mark.asyncio
    async def test_execute_plan_persists(self, sample_project):
        catalog = await load_catalog(sample_project)
        plan = plan_owner_delete(catalog, "actor", "a1")

        await execute_plan(sample_project, catalog, plan)

        reloaded = await load_catalog(sample_project)
        assert [a["id"] for a in reloaded.actors] == ["a2"]
        assert [s["id"] for s in reloaded.sections] == ["s2", "s3", "s4"]
        assert [c["id"] for c in reloaded.content] == ["c3", "c4", "c5"]
        assert [t["id"] for t in reloaded.takes] == ["t3", "t4"]
        assert reloaded.scene("sc1")["actor_ids"] == ["a2"]
