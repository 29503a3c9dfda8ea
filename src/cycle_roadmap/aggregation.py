"""Grouping of release items into roadmap items and initiatives.

Release items are grouped by their parent roadmap ticket, re-evaluated for
public visibility in the context of that roadmap ticket, and the resulting
roadmap items are grouped by initiative. Roadmap items whose theme resolves
to the virtual theme form one extra "virtual" initiative at the end.
"""

import logging
from dataclasses import dataclass, replace

from cycle_roadmap.config import Config
from cycle_roadmap.labels import (
    UNCATEGORIZED,
    collect_area,
    collect_initiative,
    collect_theme,
    extract_by_prefix,
    translate,
)
from cycle_roadmap.models import Initiative, ReleaseItem, RoadmapItem, ValidationItem
from cycle_roadmap.parser import ticket_url
from cycle_roadmap.validation import (
    ValidationCode,
    create_validation_item,
    validations_for,
)

logger = logging.getLogger(__name__)

VIRTUAL_INITIATIVE_ID = "virtual"
UNKNOWN_TEAM = "unknown"


@dataclass
class ExternalStateContext:
    """What a roadmap ticket says about the visibility of its release items."""

    roadmap_item_id: str
    roadmap_is_external: bool
    has_no_prerelease_allowed_label: bool


def refine_external_state(
    item: ReleaseItem, context: ExternalStateContext, config: Config
) -> ReleaseItem:
    """Return a copy of the item with is_external decided by its roadmap item.

    An externally staged item is public when its roadmap item is public or
    forbids pre-releases. Under a no-pre-release roadmap item, any external
    stage other than a final release stage is flagged.
    """
    has_external_stage = config.is_external_stage(item.stage)
    is_final = config.is_final_release_stage(item.stage)
    violation = (
        has_external_stage and context.has_no_prerelease_allowed_label and not is_final
    )
    new_is_external = has_external_stage and (
        context.roadmap_is_external or context.has_no_prerelease_allowed_label
    )

    if new_is_external != item.is_external:
        logger.info(
            "Release item %s (stage %s) external changed from %s to %s by roadmap item %s",
            item.ticket_id,
            item.stage,
            item.is_external,
            new_is_external,
            context.roadmap_item_id,
        )

    validations = list(item.validations)
    if violation:
        logger.info(
            "Pre-release violation on release item %s (stage %s) in roadmap item %s",
            item.ticket_id,
            item.stage,
            context.roadmap_item_id,
        )
        validations.append(
            create_validation_item(
                item.ticket_id, ValidationCode.TOO_LOW_STAGE_WITHOUT_PROPER_ROADMAP_ITEM
            )
        )

    return replace(item, is_external=new_is_external, validations=validations)


def parse_roadmap_item_name(summary: str) -> str:
    """Strip a leading "[...]" prefix and a trailing "[...]" suffix from a title."""
    start = summary.index("]") + 1 if summary.startswith("[") and "]" in summary else 0
    suffix = summary.rfind("[")
    end = suffix if suffix > 0 else len(summary)
    return summary[start:end].strip()


class RoadmapItemParser:
    """Builds roadmap items from the roadmap records of the tracker."""

    def __init__(self, roadmap_records: dict[str, dict], config: Config) -> None:
        self.roadmap_records = roadmap_records
        self.config = config

    def parse(self, project_id: str, release_items: list[ReleaseItem]) -> RoadmapItem:
        owning_team = self._owning_team(release_items)
        url = ticket_url(project_id, self.config) if project_id else ""

        record = self.roadmap_records.get(project_id) if project_id else None
        if not record:
            logger.info(
                "Roadmap item %r not found, used by tickets %s",
                project_id,
                ", ".join(item.ticket_id for item in release_items),
            )
            return RoadmapItem(
                id=project_id,
                name="",
                area="",
                theme=None,
                initiative_id=None,
                owning_team=owning_team,
                release_items=list(release_items),
                validations=[],
                url=url,
            )

        labels = record.get("labels") or []
        translations = self.config.label_translations
        area = collect_area(labels, translations)
        theme = collect_theme(labels, translations)
        initiative = collect_initiative(labels, translations, self.config.non_roadmap_theme)

        context = ExternalStateContext(
            roadmap_item_id=project_id,
            roadmap_is_external=record.get("externalRoadmap") == "Yes",
            has_no_prerelease_allowed_label=self.config.no_prerelease_allowed_label in labels,
        )
        refined = [refine_external_state(item, context, self.config) for item in release_items]

        validations = [
            *validations_for(project_id, area.codes, area.parameters),
            *validations_for(project_id, theme.codes, theme.parameters),
            *validations_for(project_id, initiative.codes, initiative.parameters),
            *self._validate_external(project_id, record, release_items),
        ]

        return RoadmapItem(
            id=project_id,
            name=parse_roadmap_item_name(record.get("summary") or ""),
            area=area.value,
            area_ids=extract_by_prefix(labels, "area"),
            theme=theme.value,
            initiative_id=initiative.id,
            owning_team=owning_team,
            release_items=refined,
            validations=validations,
            url=url,
            is_external=context.roadmap_is_external,
            is_part_of_release_narrative=any(
                item.is_part_of_release_narrative for item in release_items
            ),
            is_release_at_risk=any(item.is_release_at_risk for item in release_items),
        )

    def _owning_team(self, release_items: list[ReleaseItem]) -> str:
        for item in release_items:
            if item.teams:
                return item.teams[0]
        return UNKNOWN_TEAM

    def _validate_external(
        self, project_id: str, record: dict, release_items: list[ReleaseItem]
    ) -> list[ValidationItem]:
        codes: list[ValidationCode] = []
        external_roadmap = record.get("externalRoadmap")
        if not external_roadmap:
            codes.append(ValidationCode.MISSING_EXTERNAL_ROADMAP)

        is_external = external_roadmap == "Yes"
        if is_external and not record.get("externalRoadmapDescription"):
            codes.append(ValidationCode.MISSING_EXTERNAL_ROADMAP_DESCRIPTION)

        has_staged_item = any(
            self.config.is_external_stage(item.stage) for item in release_items
        )
        if not is_external and has_staged_item:
            codes.append(ValidationCode.INTERNAL_WITH_STAGED_RELEASE_ITEM)

        return [create_validation_item(project_id, code) for code in codes]


def group_by_roadmap_items(
    release_items: list[ReleaseItem], roadmap_records: dict[str, dict], config: Config
) -> list[RoadmapItem]:
    """Group release items by parent ticket, in order of first appearance."""
    grouped: dict[str | None, list[ReleaseItem]] = {}
    for item in release_items:
        grouped.setdefault(item.project_id, []).append(item)

    parser = RoadmapItemParser(roadmap_records, config)
    return [parser.parse(project_id or "", items) for project_id, items in grouped.items()]


def group_by_initiatives(roadmap_items: list[RoadmapItem], config: Config) -> list[Initiative]:
    """Group roadmap items by initiative, virtual-themed items last in their own bucket."""
    translations = config.label_translations
    virtual_label = translate(translations, "theme", config.virtual_theme)

    virtuals = [item for item in roadmap_items if item.theme == virtual_label]
    grouped: dict[str, list[RoadmapItem]] = {}
    for item in roadmap_items:
        if item.theme == virtual_label:
            continue
        grouped.setdefault(item.initiative_id or UNCATEGORIZED, []).append(item)

    initiatives = [
        Initiative(
            id=initiative_id,
            name=translate(translations, "initiative", initiative_id),
            roadmap_items=items,
        )
        for initiative_id, items in grouped.items()
    ]

    if virtuals:
        initiatives.append(
            Initiative(id=VIRTUAL_INITIATIVE_ID, name=virtual_label, roadmap_items=virtuals)
        )

    return initiatives


def build_initiatives(
    release_items: list[ReleaseItem], roadmap_records: dict[str, dict], config: Config
) -> list[Initiative]:
    """Build the initiative hierarchy from parsed release items."""
    roadmap_items = group_by_roadmap_items(release_items, roadmap_records, config)
    return group_by_initiatives(roadmap_items, config)
