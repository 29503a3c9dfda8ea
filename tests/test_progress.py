"""Tests for progress aggregation."""

from datetime import date

from cycle_roadmap.config import Config
from cycle_roadmap.models import Cycle, Initiative, ProgressMetrics, ReleaseItem, RoadmapItem
from cycle_roadmap.progress import (
    aggregate_cycle,
    aggregate_initiative,
    combine_metrics,
    cycle_calendar,
    normalize,
    percentage,
    roadmap_item_metrics,
)


def _make_release_item(ticket_id, effort, status):
    return ReleaseItem(
        ticket_id=ticket_id,
        effort=effort,
        project_id="ROAD-1",
        name=ticket_id,
        area_ids=[],
        teams=[],
        status=status,
        stage="internal",
        assignee=None,
        is_external=False,
        validations=[],
    )


def _make_roadmap_item(item_id, *efforts_and_statuses):
    release_items = [
        _make_release_item(f"{item_id}-{index}", effort, status)
        for index, (effort, status) in enumerate(efforts_and_statuses)
    ]
    return RoadmapItem(
        id=item_id,
        name=item_id,
        area="",
        theme=None,
        initiative_id="init",
        owning_team="unknown",
        release_items=release_items,
        validations=[],
        url="",
    )


class TestNormalizeAndPercentage:
    """Tests for the rounding helpers."""

    def test_normalize_one_decimal(self):
        assert normalize(0.1 + 0.2) == 0.3
        assert normalize(1.25) == 1.3
        assert normalize(2) == 2

    def test_percentage_rounds_half_up(self):
        assert percentage(1, 8) == 13
        assert percentage(1, 3) == 33

    def test_percentage_of_zero_is_zero(self):
        assert percentage(5, 0) == 0


class TestRoadmapItemMetrics:
    """Tests for roadmap_item_metrics."""

    def setup_method(self):
        self.config = Config()

    def test_weeks_and_progress(self):
        roadmap_item = _make_roadmap_item("R", (1, "done"), (2, "done"), (3, "todo"))
        metrics = roadmap_item_metrics(roadmap_item, self.config)

        assert metrics.weeks == 6
        assert metrics.weeks_done == 3
        assert metrics.weeks_todo == 3
        assert metrics.progress == 50
        assert metrics.release_items_count == 3
        assert metrics.release_items_done_count == 2
        assert metrics.progress_by_release_items == 67

    def test_no_effort_means_no_progress(self):
        metrics = roadmap_item_metrics(_make_roadmap_item("R", (0, "done")), self.config)
        assert metrics.weeks == 0
        assert metrics.progress == 0
        assert metrics.progress_by_release_items == 100

    def test_in_progress_counts_toward_progress_with_in_progress(self):
        roadmap_item = _make_roadmap_item("R", (1, "done"), (1, "inprogress"), (2, "todo"))
        metrics = roadmap_item_metrics(roadmap_item, self.config)
        assert metrics.progress == 25
        assert metrics.progress_with_in_progress == 50

    def test_postponed_and_cancelled_are_not_to_do(self):
        roadmap_item = _make_roadmap_item(
            "R", (1, "postponed"), (1, "cancelled"), (2, "todo")
        )
        metrics = roadmap_item_metrics(roadmap_item, self.config)
        assert metrics.weeks_postponed == 1
        assert metrics.weeks_cancelled == 1
        assert metrics.weeks_not_to_do == 2
        assert metrics.percentage_not_to_do == 50

    def test_replanned_items_are_excluded(self):
        roadmap_item = _make_roadmap_item("R", (1, "done"), (5, "replanned"))
        metrics = roadmap_item_metrics(roadmap_item, self.config)
        assert metrics.weeks == 1
        assert metrics.release_items_count == 1
        assert metrics.progress == 100

    def test_unmapped_status_counts_only_toward_totals(self):
        roadmap_item = _make_roadmap_item("R", (2, "blocked"), (2, "done"))
        metrics = roadmap_item_metrics(roadmap_item, self.config)
        assert metrics.weeks == 4
        assert metrics.weeks_todo == 0
        assert metrics.release_items_count == 2
        assert metrics.progress == 50

    def test_sums_are_normalized_each_step(self):
        roadmap_item = _make_roadmap_item("R", (0.1, "done"), (0.2, "done"))
        metrics = roadmap_item_metrics(roadmap_item, self.config)
        assert metrics.weeks == 0.3
        assert metrics.weeks_done == 0.3


class TestCombineMetrics:
    """Tests for combine_metrics."""

    def test_sums_children(self):
        first = ProgressMetrics(weeks=4, weeks_done=1, release_items_count=2)
        second = ProgressMetrics(weeks=4, weeks_done=3, release_items_count=1,
                                 release_items_done_count=1)
        metrics = combine_metrics([first, second])

        assert metrics.weeks == 8
        assert metrics.weeks_done == 4
        assert metrics.progress == 50
        assert metrics.release_items_count == 3
        assert metrics.progress_by_release_items == 33

    def test_empty(self):
        assert combine_metrics([]) == ProgressMetrics()


class TestAggregateInitiative:
    """Tests for aggregate_initiative."""

    def test_rolls_up_roadmap_items(self):
        initiative = Initiative(
            id="init",
            name="Init",
            roadmap_items=[
                _make_roadmap_item("R1", (2, "done")),
                _make_roadmap_item("R2", (2, "todo")),
            ],
        )
        aggregated = aggregate_initiative(initiative, Config())

        assert aggregated.metrics.weeks == 4
        assert aggregated.metrics.progress == 50
        assert aggregated.roadmap_items[0].metrics.progress == 100
        assert aggregated.roadmap_items[1].metrics.progress == 0

    def test_input_is_not_mutated(self):
        initiative = Initiative(
            id="init", name="Init", roadmap_items=[_make_roadmap_item("R1", (2, "done"))]
        )
        aggregate_initiative(initiative, Config())
        assert initiative.metrics == ProgressMetrics()
        assert initiative.roadmap_items[0].metrics == ProgressMetrics()


class TestCycleCalendar:
    """Tests for cycle_calendar."""

    def test_mid_cycle(self):
        cycle = Cycle(
            id="1",
            name="Cycle 1",
            start=date(2026, 1, 1),
            end=date(2026, 3, 2),
            delivery=date(2026, 1, 1),
        )
        calendar = cycle_calendar(cycle, today=date(2026, 1, 31))

        assert calendar["start_month"] == "Jan"
        assert calendar["end_month"] == "Mar"
        assert calendar["days_from_start_of_cycle"] == 30
        assert calendar["days_in_cycle"] == 60
        assert calendar["current_day_percentage"] == 50

    def test_percentage_is_capped(self):
        cycle = Cycle(id="1", name="Cycle 1", start=date(2026, 1, 1), end=date(2026, 1, 11))
        calendar = cycle_calendar(cycle, today=date(2026, 2, 1))
        assert calendar["current_day_percentage"] == 100

    def test_delivery_defaults_to_start(self):
        cycle = Cycle(id="1", name="Cycle 1", start=date(2026, 4, 1), end=date(2026, 4, 11))
        calendar = cycle_calendar(cycle, today=date(2026, 4, 6))
        assert calendar["start_month"] == "Apr"
        assert calendar["current_day_percentage"] == 50

    def test_month_labels_are_english(self):
        labels = []
        for month in range(1, 13):
            cycle = Cycle(id="1", name="Cycle 1", start=date(2026, month, 1),
                          end=date(2026, month, 20))
            labels.append(cycle_calendar(cycle, today=date(2026, month, 10))["start_month"])
        assert labels == [
            "Jan", "Feb", "Mar", "Apr", "May", "Jun",
            "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        ]

    def test_zero_length_cycle(self):
        cycle = Cycle(id="1", name="Cycle 1", start=date(2026, 4, 1), end=date(2026, 4, 1))
        calendar = cycle_calendar(cycle, today=date(2026, 4, 1))
        assert calendar["days_in_cycle"] == 0
        assert calendar["current_day_percentage"] == 0


class TestAggregateCycle:
    """Tests for aggregate_cycle."""

    def test_sorts_by_weeks_and_sums_cycle(self):
        cycle = Cycle(id="1", name="Cycle 1", start=date(2026, 1, 1), end=date(2026, 3, 2))
        initiatives = [
            Initiative(id="small", name="Small", roadmap_items=[_make_roadmap_item("R1", (1, "done"))]),
            Initiative(id="large", name="Large", roadmap_items=[_make_roadmap_item("R2", (3, "todo"))]),
        ]

        progress, aggregated = aggregate_cycle(cycle, initiatives, Config(), today=date(2026, 1, 31))

        assert [i.id for i in aggregated] == ["large", "small"]
        assert progress.cycle is cycle
        assert progress.metrics.weeks == 4
        assert progress.metrics.progress == 25
        assert progress.days_from_start_of_cycle == 30

    def test_ties_keep_input_order(self):
        cycle = Cycle(id="1", name="Cycle 1", start=date(2026, 1, 1), end=date(2026, 3, 2))
        initiatives = [
            Initiative(id=name, name=name, roadmap_items=[_make_roadmap_item(name, (1, "todo"))])
            for name in ("a", "b", "c")
        ]
        _, aggregated = aggregate_cycle(cycle, initiatives, Config(), today=date(2026, 1, 31))
        assert [i.id for i in aggregated] == ["a", "b", "c"]
