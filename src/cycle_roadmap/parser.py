"""Parsing of raw tracker tickets into release items."""

from cycle_roadmap.config import Config
from cycle_roadmap.exceptions import MalformedTicketError
from cycle_roadmap.labels import collect_teams, extract_by_prefix
from cycle_roadmap.models import Cycle, ReleaseItem, ValidationItem
from cycle_roadmap.snapshot import cycle_from_dict
from cycle_roadmap.stages import clean_name, resolve_stage
from cycle_roadmap.statuses import resolve_status
from cycle_roadmap.validation import (
    ValidationCode,
    create_validation_item,
    validations_for,
)

NARRATIVE_LABEL = "release:part-of-narrative"
AT_RISK_LABELS = ("release:at-risk", "at-risk")


def ticket_url(key: str, config: Config) -> str:
    base_url = config.tracker_url.rstrip("/") or "https://example.com"
    return f"{base_url}/browse/{key}"


class ReleaseItemParser:
    """Turns raw tickets into release items, judged against a reference cycle."""

    def __init__(self, config: Config, reference_cycle: Cycle | None = None) -> None:
        self.config = config
        self.reference_cycle = reference_cycle

    def parse(self, issue: dict) -> ReleaseItem:
        """Parse one raw ticket.

        Data-quality problems end up as validations on the item. A ticket
        without key, fields or status id raises MalformedTicketError.
        """
        key, fields, status_id = self._require_shape(issue)
        labels = fields.get("labels") or []

        project_id, project_validations = self._collect_project_id(key, fields)
        area_ids, area_validations = self._collect_area_ids(key, labels)
        teams, team_validations = self._collect_teams(key, labels)
        effort, effort_validations = self._collect_effort(key, fields)
        assignee, assignee_validations = self._collect_assignee(key, fields)

        summary = fields.get("summary") or ""
        sprint = fields.get("sprint")
        assigned_cycle = cycle_from_dict(sprint) if sprint else None

        return ReleaseItem(
            ticket_id=key,
            effort=effort,
            project_id=project_id,
            name=clean_name(summary, self.config),
            area_ids=area_ids,
            teams=teams,
            status=resolve_status(
                status_id, self.reference_cycle, assigned_cycle, self.config
            ),
            stage=resolve_stage(summary, self.config),
            assignee=assignee,
            is_external=self._is_external_roadmap(fields),
            validations=[
                *project_validations,
                *area_validations,
                *team_validations,
                *effort_validations,
                *assignee_validations,
            ],
            is_part_of_release_narrative=NARRATIVE_LABEL in labels,
            is_release_at_risk=any(label in labels for label in AT_RISK_LABELS),
            cycle_id=assigned_cycle.id if assigned_cycle else None,
            cycle_end=assigned_cycle.end if assigned_cycle else None,
            url=ticket_url(key, self.config),
        )

    def _require_shape(self, issue: dict) -> tuple[str, dict, str]:
        key = issue.get("key") or issue.get("id")
        if not key:
            raise MalformedTicketError("Ticket has no key.")
        fields = issue.get("fields")
        if not isinstance(fields, dict):
            raise MalformedTicketError(f"Ticket {key} has no fields.")
        status_id = (fields.get("status") or {}).get("id")
        if status_id is None:
            raise MalformedTicketError(f"Ticket {key} has no status id.")
        return str(key), fields, str(status_id)

    def _collect_effort(self, key: str, fields: dict) -> tuple[float, list[ValidationItem]]:
        estimate = fields.get(self.config.effort_field)
        # 0 is a real estimate, only an unset field is missing
        if estimate is None or estimate == "":
            return 0, [create_validation_item(key, ValidationCode.MISSING_ESTIMATE)]

        try:
            estimate = float(estimate)
        except (TypeError, ValueError):
            return 0, [create_validation_item(key, ValidationCode.MISSING_ESTIMATE)]

        if estimate % 0.5 != 0:
            return estimate, [create_validation_item(key, ValidationCode.TOO_GRANULAR_ESTIMATE)]
        return estimate, []

    def _collect_project_id(self, key: str, fields: dict) -> tuple[str | None, list[ValidationItem]]:
        parent = fields.get("parent")
        if not parent or not parent.get("key"):
            return None, [create_validation_item(key, ValidationCode.NO_PROJECT_ID)]
        return parent["key"], []

    def _collect_area_ids(self, key: str, labels: list[str]) -> tuple[list[str], list[ValidationItem]]:
        area_ids = extract_by_prefix(labels, "area")
        if not area_ids:
            return [], [create_validation_item(key, ValidationCode.MISSING_AREA_LABEL)]
        return area_ids, []

    def _collect_teams(self, key: str, labels: list[str]) -> tuple[list[str], list[ValidationItem]]:
        teams = collect_teams(labels, self.config.label_translations)
        return teams.value, validations_for(key, teams.codes, teams.parameters)

    def _collect_assignee(self, key: str, fields: dict) -> tuple[dict | None, list[ValidationItem]]:
        assignee = fields.get("assignee")
        if not assignee:
            # The reporter is the best guess at who owns an unassigned ticket
            return fields.get("reporter"), [
                create_validation_item(key, ValidationCode.MISSING_ASSIGNEE)
            ]
        return assignee, []

    def _is_external_roadmap(self, fields: dict) -> bool:
        summary = fields.get("summary") or ""
        return (
            fields.get("externalRoadmap") == "Yes"
            and "(Internal)" not in summary
            and "(S0)" not in summary
        )
