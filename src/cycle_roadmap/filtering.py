"""Cascading filter over the initiative hierarchy.

Criteria are matched against release items. A roadmap item survives with
its matching release items, and an initiative survives while at least one
of its roadmap items does. The input hierarchy is never modified; surviving
containers are copies that share release item objects with the input.
"""

from dataclasses import replace

from cycle_roadmap.models import (
    FilterCriteria,
    FilterResult,
    Initiative,
    ReleaseItem,
    RoadmapItem,
)

ALL = "all"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _is_set(value: str | None) -> bool:
    return bool(value) and value != ALL


def _constraint(values: list[str]) -> list[str]:
    return [value for value in values or [] if value != ALL]


class RoadmapFilter:
    """Applies FilterCriteria to a list of initiatives."""

    def apply(self, initiatives: list[Initiative], criteria: FilterCriteria) -> FilterResult:
        filtered: list[Initiative] = []
        for initiative in initiatives or []:
            roadmap_items = self._filter_initiative(initiative, criteria)
            if roadmap_items:
                filtered.append(replace(initiative, roadmap_items=roadmap_items))

        roadmap_items = [item for initiative in filtered for item in initiative.roadmap_items]
        return FilterResult(
            initiatives=filtered,
            applied_filters=criteria,
            total_initiatives=len(filtered),
            total_roadmap_items=len(roadmap_items),
            total_release_items=sum(len(item.release_items) for item in roadmap_items),
        )

    def _filter_initiative(
        self, initiative: Initiative, criteria: FilterCriteria
    ) -> list[RoadmapItem]:
        initiatives = _constraint(criteria.initiatives)
        if initiatives and initiative.id not in initiatives:
            return []

        surviving: list[RoadmapItem] = []
        for roadmap_item in initiative.roadmap_items:
            release_items = self._filter_roadmap_item(roadmap_item, criteria)
            if release_items is not None:
                surviving.append(replace(roadmap_item, release_items=release_items))
        return surviving

    def _filter_roadmap_item(
        self, roadmap_item: RoadmapItem, criteria: FilterCriteria
    ) -> list[ReleaseItem] | None:
        """Return the surviving release items, or None when the roadmap item is dropped."""
        release_items = [
            item for item in roadmap_item.release_items if self.matches(item, criteria)
        ]

        if criteria.show_validation_errors:
            has_validations = bool(roadmap_item.validations) or any(
                item.validations for item in release_items
            )
            if not has_validations:
                return None

        # Roadmap items tagged with the area stay visible even when none of
        # their release items carry area labels
        matches_area_directly = _is_set(criteria.area) and self._roadmap_item_matches_area(
            roadmap_item, criteria.area
        )
        if release_items or matches_area_directly:
            return release_items
        return None

    def _roadmap_item_matches_area(self, roadmap_item: RoadmapItem, area: str) -> bool:
        return roadmap_item.area == area or area in roadmap_item.area_ids

    def matches(self, item: ReleaseItem, criteria: FilterCriteria) -> bool:
        """Check a release item against every criterion that is set."""
        if _is_set(criteria.area) and not self._matches_area(item, criteria.area):
            return False
        stages = _constraint(criteria.stages)
        if stages and item.stage not in stages:
            return False
        assignees = _constraint(criteria.assignees)
        if assignees and not self._matches_assignees(item, assignees):
            return False
        if _is_set(criteria.cycle) and item.cycle_id != criteria.cycle:
            return False
        if criteria.show_validation_errors and not item.validations:
            return False
        return True

    def _matches_area(self, item, area: str) -> bool:
        area_ids = getattr(item, "area_ids", None)
        if area_ids is not None:
            return area in area_ids
        # Items from older dumps carry a single area instead of area_ids
        return getattr(item, "area", None) == area

    def _matches_assignees(self, item: ReleaseItem, assignees: list[str]) -> bool:
        assignee = item.assignee
        if not isinstance(assignee, dict):
            return False
        assignee_id = assignee.get("id") or assignee.get("accountId")
        return bool(assignee_id) and assignee_id in assignees


def apply_filters(initiatives: list[Initiative], criteria: FilterCriteria) -> FilterResult:
    return RoadmapFilter().apply(initiatives, criteria)


def _split(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [part.strip() for part in value if part and part.strip() and part.strip() != ALL]


def criteria_from_mapping(args) -> FilterCriteria:
    """Build criteria from query-string style input.

    List criteria accept comma-separated strings or lists; "all" means no
    constraint.
    """
    show_validation_errors = str(args.get("showValidationErrors", "")).strip().lower()
    return FilterCriteria(
        area=(args.get("area") or "").strip() or None,
        stages=_split(args.get("stages")),
        assignees=_split(args.get("assignees")),
        cycle=(args.get("cycle") or "").strip() or None,
        initiatives=_split(args.get("initiatives")),
        show_validation_errors=show_validation_errors in _TRUE_VALUES,
    )
