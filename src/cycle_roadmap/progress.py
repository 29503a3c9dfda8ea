"""Progress rollup from release item effort up to the cycle."""

import math
from dataclasses import replace
from datetime import date

from cycle_roadmap.config import Config
from cycle_roadmap.models import (
    Cycle,
    CycleProgress,
    Initiative,
    ProgressMetrics,
    RoadmapItem,
)

# English month abbreviations, independent of the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_WEEK_FIELDS = (
    "weeks",
    "weeks_done",
    "weeks_in_progress",
    "weeks_todo",
    "weeks_cancelled",
    "weeks_postponed",
    "weeks_not_to_do",
)


def normalize(number: float) -> float:
    """Round to one decimal, halves away from zero for positive numbers."""
    return math.floor(number * 10 + 0.5) / 10


def percentage(numerator: float, denominator: float) -> int:
    """Whole percentage of numerator over denominator, 0 when the denominator is 0."""
    if not denominator:
        return 0
    return math.floor(numerator / denominator * 100 + 0.5)


def _with_percentages(metrics: ProgressMetrics) -> ProgressMetrics:
    metrics.progress = percentage(metrics.weeks_done, metrics.weeks)
    metrics.progress_with_in_progress = percentage(
        metrics.weeks_done + metrics.weeks_in_progress, metrics.weeks
    )
    metrics.progress_by_release_items = percentage(
        metrics.release_items_done_count, metrics.release_items_count
    )
    metrics.percentage_not_to_do = percentage(metrics.weeks_not_to_do, metrics.weeks)
    return metrics


def _add(metrics: ProgressMetrics, name: str, effort: float) -> None:
    setattr(metrics, name, normalize(getattr(metrics, name) + effort))


def roadmap_item_metrics(roadmap_item: RoadmapItem, config: Config) -> ProgressMetrics:
    """Bucket the effort of each release item by status.

    Replanned items are left out completely. Statuses without a bucket still
    count toward weeks and the item count.
    """
    status = config.status
    buckets = {
        status("TODO"): ("weeks_todo",),
        status("DONE"): ("weeks_done",),
        status("IN_PROGRESS"): ("weeks_in_progress",),
        status("POSTPONED"): ("weeks_postponed", "weeks_not_to_do"),
        status("CANCELLED"): ("weeks_cancelled", "weeks_not_to_do"),
    }

    metrics = ProgressMetrics()
    for item in roadmap_item.release_items:
        if item.status == status("REPLANNED"):
            continue
        effort = item.effort or 0
        _add(metrics, "weeks", effort)
        metrics.release_items_count += 1
        for name in buckets.get(item.status, ()):
            _add(metrics, name, effort)
        if item.status == status("DONE"):
            metrics.release_items_done_count += 1

    return _with_percentages(metrics)


def combine_metrics(parts: list[ProgressMetrics]) -> ProgressMetrics:
    """Sum child metrics and derive the percentages of the parent."""
    metrics = ProgressMetrics()
    for part in parts:
        for name in _WEEK_FIELDS:
            _add(metrics, name, getattr(part, name))
        metrics.release_items_count += part.release_items_count
        metrics.release_items_done_count += part.release_items_done_count
    return _with_percentages(metrics)


def aggregate_roadmap_item(roadmap_item: RoadmapItem, config: Config) -> RoadmapItem:
    return replace(roadmap_item, metrics=roadmap_item_metrics(roadmap_item, config))


def aggregate_initiative(initiative: Initiative, config: Config) -> Initiative:
    roadmap_items = [aggregate_roadmap_item(item, config) for item in initiative.roadmap_items]
    return replace(
        initiative,
        roadmap_items=roadmap_items,
        metrics=combine_metrics([item.metrics for item in roadmap_items]),
    )


def aggregate_initiatives(initiatives: list[Initiative], config: Config) -> list[Initiative]:
    """Aggregate every initiative, largest body of work first."""
    aggregated = [aggregate_initiative(initiative, config) for initiative in initiatives]
    return sorted(aggregated, key=lambda initiative: initiative.metrics.weeks, reverse=True)


def cycle_calendar(cycle: Cycle, today: date | None = None) -> dict:
    """Month labels and day counts of a cycle, measured from its delivery date."""
    today = today or date.today()
    delivery = cycle.delivery or cycle.start

    start_month = MONTH_ABBREVIATIONS[delivery.month - 1] if delivery else ""
    end_month = MONTH_ABBREVIATIONS[cycle.end.month - 1] if cycle.end else ""
    days_from_start = abs((today - delivery).days) if delivery else 0
    days_in_cycle = abs((cycle.end - delivery).days) if delivery and cycle.end else 0

    return {
        "start_month": start_month,
        "end_month": end_month,
        "days_from_start_of_cycle": days_from_start,
        "days_in_cycle": days_in_cycle,
        "current_day_percentage": min(percentage(days_from_start, days_in_cycle), 100),
    }


def aggregate_cycle(
    cycle: Cycle, initiatives: list[Initiative], config: Config, today: date | None = None
) -> tuple[CycleProgress, list[Initiative]]:
    """Roll progress up through every level of the hierarchy into the cycle.

    Returns the cycle progress and the aggregated initiatives, sorted by
    weeks descending.
    """
    aggregated = aggregate_initiatives(initiatives, config)
    cycle_progress = CycleProgress(
        cycle=cycle,
        metrics=combine_metrics([initiative.metrics for initiative in aggregated]),
        **cycle_calendar(cycle, today),
    )
    return cycle_progress, aggregated
