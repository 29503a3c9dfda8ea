"""Roadmap pipeline: tracker snapshot to the aggregated, filtered hierarchy."""

from datetime import date

from cycle_roadmap.aggregation import build_initiatives
from cycle_roadmap.config import Config, config_exists, load_config
from cycle_roadmap.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    NoCyclesFoundError,
    UnknownCycleError,
)
from cycle_roadmap.filtering import apply_filters
from cycle_roadmap.models import (
    Cycle,
    CycleProgress,
    CycleRoadmap,
    FilterCriteria,
    Initiative,
    ProgressMetrics,
    ReleaseItem,
    ReleasePlan,
    RoadmapItem,
    TrackerSnapshot,
    ValidationItem,
)
from cycle_roadmap.parser import ReleaseItemParser
from cycle_roadmap.progress import aggregate_cycle
from cycle_roadmap.snapshot import load_snapshot
from cycle_roadmap.statuses import is_future_status
from cycle_roadmap.validation import describe, message_catalog


def select_cycle(cycles: list[Cycle], cycle_id: str | None = None) -> Cycle:
    """Pick the requested cycle, else the active one, else the first.

    Raises:
        NoCyclesFoundError: If there are no cycles
        UnknownCycleError: If cycle_id matches no cycle
    """
    if not cycles:
        raise NoCyclesFoundError("No cycles found in the tracker snapshot.")

    if cycle_id:
        for cycle in cycles:
            if cycle.id == str(cycle_id):
                return cycle
        raise UnknownCycleError(f"Cycle '{cycle_id}' not found.")

    for cycle in cycles:
        if cycle.state == "active":
            return cycle
    return cycles[0]


def release_plan(
    roadmap_item: RoadmapItem,
    cycles: list[Cycle],
    config: Config,
    today: date | None = None,
) -> ReleasePlan:
    """Check whether a roadmap item has upcoming releases planned.

    A release is scheduled when a releasable stage sits in a sprint that has
    not ended. A global release is planned when a final release stage sits
    in such a sprint or in the backlog with a status that can still happen.
    The sprint end comes from the ticket itself, and the snapshot cycles are
    only consulted when the ticket carries no end date.
    """
    today = today or date.today()
    cycle_ends = {cycle.id: cycle.end for cycle in cycles}

    has_scheduled_release = False
    has_global_release_in_backlog = False
    for item in roadmap_item.release_items:
        end = item.cycle_end or (cycle_ends.get(item.cycle_id) if item.cycle_id else None)
        in_future_cycle = bool(end and today < end)
        in_backlog = item.cycle_id is None and is_future_status(item.status, config)

        if in_future_cycle and config.is_releasable_stage(item.stage):
            has_scheduled_release = True
        if (in_backlog or in_future_cycle) and config.is_final_release_stage(item.stage):
            has_global_release_in_backlog = True

    return ReleasePlan(
        has_scheduled_release=has_scheduled_release,
        has_global_release_in_backlog=has_global_release_in_backlog,
    )


def build_cycle_roadmap(
    snapshot: TrackerSnapshot,
    config: Config,
    cycle_id: str | None = None,
    criteria: FilterCriteria | None = None,
    today: date | None = None,
) -> CycleRoadmap:
    """Build the roadmap of one cycle from a tracker snapshot.

    Every ticket is parsed with the selected cycle as reference, so tickets
    planned for later cycles show as postponed. Release plans judge every
    ticket of a roadmap item, so they are computed before filtering. The
    progress rollup runs after filtering and describes what the filter left.
    """
    cycle = select_cycle(snapshot.cycles, cycle_id)

    parser = ReleaseItemParser(config, reference_cycle=cycle)
    release_items = [parser.parse(issue) for issue in snapshot.issues]
    initiatives = build_initiatives(release_items, snapshot.roadmap_items, config)

    release_plans = {
        roadmap_item.id: release_plan(roadmap_item, snapshot.cycles, config, today)
        for initiative in initiatives
        for roadmap_item in initiative.roadmap_items
    }

    filter_result = None
    if criteria is not None:
        filter_result = apply_filters(initiatives, criteria)
        initiatives = filter_result.initiatives

    cycle_progress, initiatives = aggregate_cycle(cycle, initiatives, config, today)

    return CycleRoadmap(
        cycle_progress=cycle_progress,
        initiatives=initiatives,
        cycles=snapshot.cycles,
        release_plans=release_plans,
        filter_result=filter_result,
        messages=message_catalog(config.validation_messages),
    )


def fetch_cycle_roadmap(
    cycle_id: str | None = None, criteria: FilterCriteria | None = None
) -> CycleRoadmap:
    """Build the cycle roadmap from the configured tracker snapshot.

    Raises:
        ConfigNotFoundError: If config file not found
        InvalidConfigError: If config is invalid or has no snapshot path
        SnapshotNotFoundError: If the snapshot file is missing
        InvalidSnapshotError: If the snapshot cannot be read
        NoCyclesFoundError: If the snapshot has no cycles
        UnknownCycleError: If cycle_id matches no cycle
    """
    if not config_exists():
        raise ConfigNotFoundError(
            "Configuration not found. Create ~/.cycle-roadmap/config.toml to set up."
        )

    try:
        config = load_config()
    except ValueError as e:
        raise InvalidConfigError(f"Invalid configuration: {e}")

    if not config.snapshot_path:
        raise InvalidConfigError(
            "Tracker snapshot is not configured. Add a [snapshot] section with a "
            "path to ~/.cycle-roadmap/config.toml."
        )

    snapshot = load_snapshot(config.snapshot_path)
    return build_cycle_roadmap(snapshot, config, cycle_id=cycle_id, criteria=criteria)


def _date_str(d: date | None) -> str | None:
    return d.isoformat() if d else None


def _validation_dict(v: ValidationItem, catalog: dict[str, str]) -> dict:
    return {
        "id": v.id,
        "code": v.code,
        "status": v.status,
        "description": v.description,
        "message": describe(v, catalog),
    }


def _metrics_dict(m: ProgressMetrics) -> dict:
    return {
        "weeks": m.weeks,
        "weeks_done": m.weeks_done,
        "weeks_in_progress": m.weeks_in_progress,
        "weeks_todo": m.weeks_todo,
        "weeks_cancelled": m.weeks_cancelled,
        "weeks_postponed": m.weeks_postponed,
        "weeks_not_to_do": m.weeks_not_to_do,
        "release_items_count": m.release_items_count,
        "release_items_done_count": m.release_items_done_count,
        "progress": m.progress,
        "progress_with_in_progress": m.progress_with_in_progress,
        "progress_by_release_items": m.progress_by_release_items,
        "percentage_not_to_do": m.percentage_not_to_do,
    }


def _cycle_dict(c: Cycle) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "start": _date_str(c.start),
        "end": _date_str(c.end),
        "delivery": _date_str(c.delivery),
        "state": c.state,
    }


def _release_item_dict(r: ReleaseItem, catalog: dict[str, str]) -> dict:
    return {
        "ticket_id": r.ticket_id,
        "name": r.name,
        "effort": r.effort,
        "project_id": r.project_id,
        "area_ids": r.area_ids,
        "teams": r.teams,
        "status": r.status,
        "stage": r.stage,
        "assignee": r.assignee,
        "is_external": r.is_external,
        "is_part_of_release_narrative": r.is_part_of_release_narrative,
        "is_release_at_risk": r.is_release_at_risk,
        "cycle_id": r.cycle_id,
        "cycle_end": _date_str(r.cycle_end),
        "url": r.url,
        "validations": [_validation_dict(v, catalog) for v in r.validations],
    }


def _roadmap_item_dict(
    item: RoadmapItem, plan: ReleasePlan | None, catalog: dict[str, str]
) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "area": item.area,
        "area_ids": item.area_ids,
        "theme": item.theme,
        "initiative_id": item.initiative_id,
        "owning_team": item.owning_team,
        "url": item.url,
        "is_external": item.is_external,
        "is_part_of_release_narrative": item.is_part_of_release_narrative,
        "is_release_at_risk": item.is_release_at_risk,
        "validations": [_validation_dict(v, catalog) for v in item.validations],
        "release_plan": {
            "has_scheduled_release": plan.has_scheduled_release,
            "has_global_release_in_backlog": plan.has_global_release_in_backlog,
        } if plan else None,
        "release_items": [_release_item_dict(r, catalog) for r in item.release_items],
        **_metrics_dict(item.metrics),
    }


def _initiative_dict(
    initiative: Initiative, plans: dict[str, ReleasePlan], catalog: dict[str, str]
) -> dict:
    return {
        "id": initiative.id,
        "name": initiative.name,
        "roadmap_items": [
            _roadmap_item_dict(item, plans.get(item.id), catalog)
            for item in initiative.roadmap_items
        ],
        **_metrics_dict(initiative.metrics),
    }


def _cycle_progress_dict(p: CycleProgress) -> dict:
    return {
        **_cycle_dict(p.cycle),
        **_metrics_dict(p.metrics),
        "start_month": p.start_month,
        "end_month": p.end_month,
        "days_from_start_of_cycle": p.days_from_start_of_cycle,
        "days_in_cycle": p.days_in_cycle,
        "current_day_percentage": p.current_day_percentage,
    }


def cycle_roadmap_to_dict(result: CycleRoadmap) -> dict:
    """Convert CycleRoadmap to a JSON-serializable dict.

    Validations carry their resolved message so clients need no catalog.
    """
    catalog = result.messages or message_catalog()
    data = {
        "cycle": _cycle_progress_dict(result.cycle_progress),
        "cycles": [_cycle_dict(c) for c in result.cycles],
        "initiatives": [
            _initiative_dict(initiative, result.release_plans, catalog)
            for initiative in result.initiatives
        ],
        "filter": None,
    }

    if result.filter_result is not None:
        criteria = result.filter_result.applied_filters
        data["filter"] = {
            "applied_filters": {
                "area": criteria.area,
                "stages": criteria.stages,
                "assignees": criteria.assignees,
                "cycle": criteria.cycle,
                "initiatives": criteria.initiatives,
                "show_validation_errors": criteria.show_validation_errors,
            },
            "total_initiatives": result.filter_result.total_initiatives,
            "total_roadmap_items": result.filter_result.total_roadmap_items,
            "total_release_items": result.filter_result.total_release_items,
        }

    return data
