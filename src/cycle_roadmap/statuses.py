"""Status resolution for release items."""

from cycle_roadmap.config import Config
from cycle_roadmap.models import Cycle


def resolve_status(
    status_id: str,
    reference_cycle: Cycle | None,
    assigned_cycle: Cycle | None,
    config: Config,
) -> str:
    """Map a tracker status id to an item status.

    An item assigned to a cycle that starts after the reference cycle is
    postponed from the reference cycle's point of view, whatever its tracker
    status. Equal start dates do not postpone.
    """
    if (
        assigned_cycle
        and reference_cycle
        and reference_cycle.start
        and assigned_cycle.start
        and reference_cycle.start < assigned_cycle.start
    ):
        return config.status("POSTPONED")
    return config.status_mappings.get(str(status_id), config.status("TODO"))


def is_future_status(status: str, config: Config) -> bool:
    return status in config.future_statuses
