"""
Tests for backfill planning.

Tests cover:
- Needed-take arithmetic from resolved thresholds
- Filters and filter reference checks
- Content with a missing section
- Planning through CatalogService with a defaults.json
"""

import pytest

from moocatalog import CatalogService
from moocatalog.batch import plan_backfill
from moocatalog.errors import ReferentialIntegrityError


class TestPlanBackfill:
    """Tests for plan_backfill on the in-memory sample catalog."""

    def test_hardcoded_thresholds(self, sample_catalog):
        plan = plan_backfill(sample_catalog)

        needed = {item.content_id: item.needed for item in plan.items}
        assert needed == {"c1": 0, "c2": 1, "c3": 0, "c4": 1, "c5": 0}
        assert plan.total_needed == 2
        assert plan.errors == []

    def test_item_details(self, sample_catalog):
        item = next(i for i in plan_backfill(sample_catalog).items if i.content_id == "c1")

        assert item.owner_name == "Ada"
        assert item.section_name == "Main"
        assert item.current_undecided == 1
        assert item.approved == 1
        assert item.resolved_from == "hardcoded"

    def test_global_min_candidates(self, sample_catalog):
        defaults = {"content_types": {"dialogue": {"min_candidates": 3}}}

        plan = plan_backfill(sample_catalog, defaults)

        needed = {item.content_id: item.needed for item in plan.items}
        assert needed["c2"] == 3
        assert needed["c5"] == 2
        assert needed["c1"] == 0
        assert needed["c4"] == 1

    def test_section_override_raises_approval_count(self, sample_catalog):
        section = sample_catalog.section("s1")
        section["default_blocks"] = {"dialogue": {"provider": "inherit", "approval_count_default": 2, "min_candidates": 2}}

        item = next(i for i in plan_backfill(sample_catalog).items if i.content_id == "c1")

        assert item.needed == 1
        assert item.resolved_from == "hardcoded"

    def test_complete_content_skipped(self, sample_catalog):
        sample_catalog.content_item("c2")["all_approved"] = True

        plan = plan_backfill(sample_catalog)

        assert "c2" not in [item.content_id for item in plan.items]

    def test_filters(self, sample_catalog):
        assert [i.content_id for i in plan_backfill(sample_catalog, actor_id="a1").items] == ["c1", "c2"]
        assert [i.content_id for i in plan_backfill(sample_catalog, section_id="s3").items] == ["c4"]
        assert [i.content_id for i in plan_backfill(sample_catalog, content_id="c5").items] == ["c5"]

    def test_actor_filter_excludes_scene_content(self, sample_catalog):
        plan = plan_backfill(sample_catalog, actor_id="a2")

        assert [i.content_id for i in plan.items] == ["c5"]

    def test_unknown_filter_rejected(self, sample_catalog):
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            plan_backfill(sample_catalog, section_id="zz")

        assert exc_info.value.errors == ["Section not found: zz"]

    def test_missing_section_reported(self, sample_catalog):
        sample_catalog.sections = [s for s in sample_catalog.sections if s["id"] != "s3"]
        sample_catalog.invalidate()

        plan = plan_backfill(sample_catalog)

        assert plan.errors == ["Content c4: Missing section"]
        assert "c4" not in [item.content_id for item in plan.items]


class TestServiceBackfill:
    """Backfill through CatalogService."""

    @pytest.mark.asyncio
    async def test_uses_saved_defaults(self, settings, sample_project):
        service = CatalogService(settings)
        await service.update_content_type_defaults("sfx", {"provider": "elevenlabs", "min_candidates": 4})

        plan = await service.plan_backfill(section_id="s3")

        assert len(plan.items) == 1
        assert plan.items[0].needed == 4
        assert plan.items[0].resolved_from == "global"
        assert plan.items[0].to_dict()["owner_name"] == "Global"
