"""Data models for Cycle Roadmap."""

from dataclasses import dataclass, field
from datetime import date


@dataclass
class ValidationItem:
    """A non-fatal data-quality finding attached to a ticket."""

    id: str
    code: str
    status: str = "error"  # "error" | "warning"
    description: str = ""


@dataclass
class Cycle:
    """A planning period with its reference dates."""

    id: str
    name: str
    start: date | None
    end: date | None
    delivery: date | None = None
    state: str = "future"  # "active" | "closed" | "future" | "completed"


@dataclass
class ReleaseItem:
    """One ticket of planned work."""

    ticket_id: str
    effort: float
    project_id: str | None
    name: str
    area_ids: list[str]
    teams: list[str]
    status: str
    stage: str
    assignee: dict | None
    is_external: bool
    validations: list[ValidationItem]
    is_part_of_release_narrative: bool = False
    is_release_at_risk: bool = False
    cycle_id: str | None = None
    cycle_end: date | None = None
    url: str = ""


@dataclass
class ProgressMetrics:
    """Effort rollup for a roadmap item, initiative or cycle."""

    weeks: float = 0
    weeks_done: float = 0
    weeks_in_progress: float = 0
    weeks_todo: float = 0
    weeks_cancelled: float = 0
    weeks_postponed: float = 0
    weeks_not_to_do: float = 0
    release_items_count: int = 0
    release_items_done_count: int = 0
    progress: int = 0
    progress_with_in_progress: int = 0
    progress_by_release_items: int = 0
    percentage_not_to_do: int = 0


@dataclass
class RoadmapItem:
    """A roadmap ticket grouping release items."""

    id: str
    name: str
    area: str
    theme: str | None
    initiative_id: str | None
    owning_team: str
    release_items: list[ReleaseItem]
    validations: list[ValidationItem]
    url: str
    area_ids: list[str] = field(default_factory=list)
    is_external: bool = False
    is_part_of_release_narrative: bool = False
    is_release_at_risk: bool = False
    metrics: ProgressMetrics = field(default_factory=ProgressMetrics)


@dataclass
class Initiative:
    """Top-level grouping of roadmap items."""

    id: str
    name: str
    roadmap_items: list[RoadmapItem]
    metrics: ProgressMetrics = field(default_factory=ProgressMetrics)


@dataclass
class CycleProgress:
    """Progress of a whole cycle, including its calendar position."""

    cycle: Cycle
    metrics: ProgressMetrics
    start_month: str = ""
    end_month: str = ""
    days_from_start_of_cycle: int = 0
    days_in_cycle: int = 0
    current_day_percentage: int = 0


@dataclass
class FilterCriteria:
    """Filter selection; empty fields do not constrain."""

    area: str | None = None
    stages: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    cycle: str | None = None
    initiatives: list[str] = field(default_factory=list)
    show_validation_errors: bool = False


@dataclass
class FilterResult:
    """Filtered hierarchy with counts of what survived."""

    initiatives: list[Initiative]
    applied_filters: FilterCriteria
    total_initiatives: int
    total_roadmap_items: int
    total_release_items: int


@dataclass
class TrackerSnapshot:
    """Raw tracker data as dumped from the issue tracker."""

    issues: list[dict]
    roadmap_items: dict[str, dict]
    cycles: list[Cycle]


@dataclass
class ReleasePlan:
    """Whether a roadmap item has its next releases lined up."""

    has_scheduled_release: bool
    has_global_release_in_backlog: bool


@dataclass
class CycleRoadmap:
    """Complete result of building the roadmap for one cycle."""

    cycle_progress: CycleProgress
    initiatives: list[Initiative]
    cycles: list[Cycle]
    release_plans: dict[str, ReleasePlan]
    filter_result: FilterResult | None = None
    messages: dict[str, str] = field(default_factory=dict)  # validation code -> message
