"""Tests for grouping release items into roadmap items and initiatives."""

import copy

from cycle_roadmap.aggregation import (
    ExternalStateContext,
    RoadmapItemParser,
    build_initiatives,
    group_by_initiatives,
    group_by_roadmap_items,
    parse_roadmap_item_name,
    refine_external_state,
)
from cycle_roadmap.config import Config
from cycle_roadmap.models import ReleaseItem, RoadmapItem


def _make_config():
    config = Config()
    config.label_translations["areas"] = {"frontend": "Frontend", "backend": "Backend"}
    config.label_translations["themes"]["compliance"] = "Efficient Compliance"
    config.label_translations["initiatives"]["compliance"] = "Efficient Compliance"
    return config


def _make_release_item(ticket_id="P-1", project_id="ROAD-1", stage="internal",
                       is_external=False, teams=None, **overrides):
    values = dict(
        ticket_id=ticket_id,
        effort=1,
        project_id=project_id,
        name=f"Item {ticket_id}",
        area_ids=["frontend"],
        teams=teams if teams is not None else ["Team A"],
        status="todo",
        stage=stage,
        assignee={"accountId": "u-1"},
        is_external=is_external,
        validations=[],
    )
    values.update(overrides)
    return ReleaseItem(**values)


def _make_record(summary="Checkout", labels=None, external="Yes", description="Public"):
    return {
        "summary": summary,
        "labels": labels if labels is not None else [
            "area:frontend", "theme:compliance", "initiative:compliance",
        ],
        "externalRoadmap": external,
        "externalRoadmapDescription": description,
    }


def _make_roadmap_item(item_id, initiative_id, theme="Efficient Compliance"):
    return RoadmapItem(
        id=item_id,
        name=item_id,
        area="Frontend",
        theme=theme,
        initiative_id=initiative_id,
        owning_team="Team A",
        release_items=[_make_release_item(project_id=item_id)],
        validations=[],
        url="",
    )


class TestRefineExternalState:
    """Tests for refine_external_state."""

    def setup_method(self):
        self.config = Config()

    def _context(self, external=False, no_prerelease=False):
        return ExternalStateContext("ROAD-1", external, no_prerelease)

    def test_external_stage_under_external_roadmap_item(self):
        item = _make_release_item(stage="s1")
        refined = refine_external_state(item, self._context(external=True), self.config)
        assert refined.is_external is True
        assert refined.validations == []

    def test_internal_stage_is_never_external(self):
        item = _make_release_item(stage="internal", is_external=True)
        refined = refine_external_state(item, self._context(external=True), self.config)
        assert refined.is_external is False

    def test_internal_roadmap_item_hides_staged_items(self):
        item = _make_release_item(stage="s2", is_external=True)
        refined = refine_external_state(item, self._context(), self.config)
        assert refined.is_external is False

    def test_no_prerelease_label_with_low_stage_is_flagged(self):
        item = _make_release_item(stage="s1")
        refined = refine_external_state(item, self._context(no_prerelease=True), self.config)
        assert refined.is_external is True
        assert [v.code for v in refined.validations] == ["tooLowStageWithoutProperRoadmapItem"]

    def test_no_prerelease_label_with_final_stage_is_fine(self):
        item = _make_release_item(stage="s3")
        refined = refine_external_state(item, self._context(no_prerelease=True), self.config)
        assert refined.is_external is True
        assert refined.validations == []

    def test_returns_a_copy(self):
        item = _make_release_item(stage="s1")
        original = copy.deepcopy(item)
        refined = refine_external_state(item, self._context(no_prerelease=True), self.config)
        assert refined is not item
        assert item == original


class TestParseRoadmapItemName:
    """Tests for parse_roadmap_item_name."""

    def test_plain_name(self):
        assert parse_roadmap_item_name("Checkout Redesign") == "Checkout Redesign"

    def test_strips_prefix_and_suffix(self):
        assert parse_roadmap_item_name("[Web] Checkout Redesign [Q3]") == "Checkout Redesign"

    def test_strips_suffix_only(self):
        assert parse_roadmap_item_name("Checkout [Q3]") == "Checkout"


class TestRoadmapItemParser:
    """Tests for RoadmapItemParser.parse."""

    def setup_method(self):
        self.config = _make_config()

    def test_builds_roadmap_item_from_record(self):
        records = {"ROAD-1": _make_record(summary="[Web] Checkout [Q3]")}
        parser = RoadmapItemParser(records, self.config)
        items = [_make_release_item(stage="s1"), _make_release_item("P-2", teams=["Team B"])]

        roadmap_item = parser.parse("ROAD-1", items)

        assert roadmap_item.id == "ROAD-1"
        assert roadmap_item.name == "Checkout"
        assert roadmap_item.area == "Frontend"
        assert roadmap_item.area_ids == ["frontend"]
        assert roadmap_item.theme == "Efficient Compliance"
        assert roadmap_item.initiative_id == "compliance"
        assert roadmap_item.owning_team == "Team A"
        assert roadmap_item.is_external is True
        assert roadmap_item.validations == []
        assert roadmap_item.release_items[0].is_external is True
        assert roadmap_item.release_items[1].is_external is False

    def test_missing_record_degrades(self):
        parser = RoadmapItemParser({}, self.config)
        items = [_make_release_item(stage="s1", is_external=True)]

        roadmap_item = parser.parse("ROAD-9", items)

        assert roadmap_item.id == "ROAD-9"
        assert roadmap_item.name == ""
        assert roadmap_item.area == ""
        assert roadmap_item.theme is None
        assert roadmap_item.initiative_id is None
        assert roadmap_item.validations == []
        assert roadmap_item.release_items == items

    def test_taxonomy_validations(self):
        records = {"ROAD-1": _make_record(labels=["area:mobile"])}
        roadmap_item = RoadmapItemParser(records, self.config).parse("ROAD-1", [])

        assert [v.code for v in roadmap_item.validations] == [
            "missingAreaTranslation",
            "missingThemeLabel",
            "missingInitiativeLabel",
        ]
        assert roadmap_item.validations[0].description == "mobile"
        assert roadmap_item.initiative_id == "uncategorized"

    def test_external_roadmap_validations(self):
        labels = ["area:frontend", "theme:compliance", "initiative:compliance"]
        records = {
            "ROAD-1": _make_record(labels=labels, external=None),
            "ROAD-2": _make_record(labels=labels, external="Yes", description=None),
        }
        parser = RoadmapItemParser(records, self.config)

        unset = parser.parse("ROAD-1", [_make_release_item(stage="s1")])
        assert [v.code for v in unset.validations] == [
            "missingExternalRoadmap",
            "internalWithStagedReleaseItem",
        ]

        no_description = parser.parse("ROAD-2", [])
        assert [v.code for v in no_description.validations] == [
            "missingExternalRoadmapDescription",
        ]

    def test_release_flags_are_combined(self):
        records = {"ROAD-1": _make_record()}
        items = [
            _make_release_item(is_release_at_risk=True),
            _make_release_item("P-2", is_part_of_release_narrative=True),
        ]
        roadmap_item = RoadmapItemParser(records, self.config).parse("ROAD-1", items)
        assert roadmap_item.is_release_at_risk is True
        assert roadmap_item.is_part_of_release_narrative is True

    def test_owning_team_defaults_to_unknown(self):
        roadmap_item = RoadmapItemParser({}, self.config).parse(
            "ROAD-1", [_make_release_item(teams=[])]
        )
        assert roadmap_item.owning_team == "unknown"


class TestGroupByRoadmapItems:
    """Tests for group_by_roadmap_items."""

    def test_groups_in_first_seen_order(self):
        items = [
            _make_release_item("P-1", "ROAD-2"),
            _make_release_item("P-2", "ROAD-1"),
            _make_release_item("P-3", "ROAD-2"),
        ]
        roadmap_items = group_by_roadmap_items(items, {}, Config())

        assert [r.id for r in roadmap_items] == ["ROAD-2", "ROAD-1"]
        assert [i.ticket_id for i in roadmap_items[0].release_items] == ["P-1", "P-3"]

    def test_items_without_parent_share_one_group(self):
        items = [_make_release_item("P-1", None), _make_release_item("P-2", None)]
        roadmap_items = group_by_roadmap_items(items, {}, Config())
        assert len(roadmap_items) == 1
        assert roadmap_items[0].id == ""

    def test_input_is_not_mutated(self):
        items = [_make_release_item(stage="s1")]
        original = copy.deepcopy(items)
        records = {"ROAD-1": _make_record(labels=["omega:no-pre-release-allowed"])}
        group_by_roadmap_items(items, records, _make_config())
        assert items == original


class TestGroupByInitiatives:
    """Tests for group_by_initiatives."""

    def setup_method(self):
        self.config = _make_config()

    def test_groups_by_initiative_id(self):
        roadmap_items = [
            _make_roadmap_item("ROAD-1", "compliance"),
            _make_roadmap_item("ROAD-2", "growth"),
            _make_roadmap_item("ROAD-3", "compliance"),
        ]
        initiatives = group_by_initiatives(roadmap_items, self.config)

        assert [i.id for i in initiatives] == ["compliance", "growth"]
        assert initiatives[0].name == "Efficient Compliance"
        assert initiatives[1].name == "growth"
        assert [r.id for r in initiatives[0].roadmap_items] == ["ROAD-1", "ROAD-3"]

    def test_virtual_items_come_last(self):
        roadmap_items = [
            _make_roadmap_item("ROAD-1", "uncategorized", theme="Non-Roadmap Projects"),
            _make_roadmap_item("ROAD-2", "compliance"),
        ]
        initiatives = group_by_initiatives(roadmap_items, self.config)

        assert [i.id for i in initiatives] == ["compliance", "virtual"]
        assert initiatives[-1].name == "Non-Roadmap Projects"
        assert [r.id for r in initiatives[-1].roadmap_items] == ["ROAD-1"]

    def test_no_virtual_initiative_when_empty(self):
        initiatives = group_by_initiatives([_make_roadmap_item("ROAD-1", "x")], self.config)
        assert [i.id for i in initiatives] == ["x"]

    def test_degraded_items_are_uncategorized(self):
        item = _make_roadmap_item("ROAD-1", None, theme=None)
        initiatives = group_by_initiatives([item], self.config)
        assert initiatives[0].id == "uncategorized"
        assert initiatives[0].name == "Uncategorized"


class TestBuildInitiatives:
    """Tests for build_initiatives."""

    def test_empty_input(self):
        assert build_initiatives([], {}, Config()) == []

    def test_non_roadmap_theme_lands_in_virtual_bucket(self):
        config = _make_config()
        records = {
            "ROAD-1": _make_record(),
            "ROAD-2": _make_record(labels=["area:frontend", "theme:non-roadmap"], external="No"),
        }
        items = [_make_release_item("P-1", "ROAD-2"), _make_release_item("P-2", "ROAD-1")]

        initiatives = build_initiatives(items, records, config)

        assert [i.id for i in initiatives] == ["compliance", "virtual"]
        virtual_item = initiatives[1].roadmap_items[0]
        assert virtual_item.id == "ROAD-2"
        assert virtual_item.validations == []
