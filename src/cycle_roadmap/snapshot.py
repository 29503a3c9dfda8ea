"""Loading of tracker data dumped to a JSON snapshot."""

import json
import logging
from datetime import date
from pathlib import Path

from cycle_roadmap.exceptions import InvalidSnapshotError, SnapshotNotFoundError
from cycle_roadmap.models import Cycle, TrackerSnapshot

logger = logging.getLogger(__name__)

CYCLE_STATES = ("active", "closed", "future", "completed")


def _parse_date(value) -> date | None:
    """Parse a tracker date value ("YYYY-MM-DD" or an ISO timestamp)."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def cycle_from_dict(data: dict) -> Cycle:
    """Build a Cycle from a snapshot cycle or a ticket's sprint field.

    Sprint fields use startDate/endDate; snapshot cycles use start/end and may
    carry a separate delivery date, which defaults to the start.
    """
    start = _parse_date(data.get("start", data.get("startDate")))
    end = _parse_date(data.get("end", data.get("endDate")))
    delivery = _parse_date(data.get("delivery")) or start
    state = str(data.get("state", "future")).lower()
    if state not in CYCLE_STATES:
        state = "future"
    return Cycle(
        id=str(data.get("id", "")),
        name=data.get("name", ""),
        start=start,
        end=end,
        delivery=delivery,
        state=state,
    )


def snapshot_from_dict(data: dict) -> TrackerSnapshot:
    """Build a TrackerSnapshot from the decoded JSON dump."""
    if not isinstance(data, dict):
        raise InvalidSnapshotError("Snapshot must be a JSON object.")

    issues = data.get("issues", [])
    roadmap_items = data.get("roadmapItems", {})
    if not isinstance(issues, list) or not isinstance(roadmap_items, dict):
        raise InvalidSnapshotError(
            "Snapshot must contain an 'issues' list and a 'roadmapItems' object."
        )

    cycles = [cycle_from_dict(cycle) for cycle in data.get("cycles", [])]
    return TrackerSnapshot(issues=issues, roadmap_items=roadmap_items, cycles=cycles)


def load_snapshot(path: str | Path) -> TrackerSnapshot:
    """Load a tracker snapshot from disk.

    Raises:
        SnapshotNotFoundError: If the file doesn't exist
        InvalidSnapshotError: If the file is not a valid snapshot
    """
    snapshot_path = Path(path).expanduser()
    if not snapshot_path.exists():
        raise SnapshotNotFoundError(f"Tracker snapshot not found at {snapshot_path}.")

    try:
        with open(snapshot_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidSnapshotError(f"Tracker snapshot is not valid JSON: {e}") from e

    snapshot = snapshot_from_dict(data)
    logger.info(
        "Loaded snapshot %s: %d issues, %d roadmap items, %d cycles",
        snapshot_path,
        len(snapshot.issues),
        len(snapshot.roadmap_items),
        len(snapshot.cycles),
    )
    return snapshot
