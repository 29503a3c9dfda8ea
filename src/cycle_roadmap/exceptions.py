"""Exception hierarchy for Cycle Roadmap."""


class RoadmapError(Exception):
    """Base exception for roadmap errors."""

    pass


class ConfigNotFoundError(RoadmapError):
    """Configuration file not found."""

    pass


class InvalidConfigError(RoadmapError):
    """Configuration is invalid."""

    pass


class SnapshotNotFoundError(RoadmapError):
    """Tracker snapshot file not found."""

    pass


class InvalidSnapshotError(RoadmapError):
    """Tracker snapshot cannot be read."""

    pass


class MalformedTicketError(RoadmapError):
    """Raw ticket is missing a required field."""

    pass


class NoCyclesFoundError(RoadmapError):
    """Snapshot contains no cycles."""

    pass


class UnknownCycleError(RoadmapError):
    """Requested cycle does not exist."""

    pass
