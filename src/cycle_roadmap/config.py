"""Configuration management for Cycle Roadmap."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

import tomli_w

LABEL_KINDS = ("areas", "teams", "themes", "initiatives")

STATUS_KEYS = ("TODO", "IN_PROGRESS", "DONE", "CANCELLED", "POSTPONED", "REPLANNED")


def _default_status_values() -> dict[str, str]:
    return {
        "TODO": "todo",
        "IN_PROGRESS": "inprogress",
        "DONE": "done",
        "CANCELLED": "cancelled",
        "POSTPONED": "postponed",
        "REPLANNED": "replanned",
    }


def _default_status_mappings() -> dict[str, str]:
    # Tracker status ids to item status values
    return {
        "18234": "todo",
        "18264": "inprogress",
        "18235": "done",
        "18295": "cancelled",
        "18306": "postponed",
    }


def _default_label_translations() -> dict[str, dict[str, str]]:
    return {
        "areas": {},
        "teams": {},
        "themes": {
            "non-roadmap": "Non-Roadmap Projects",
            "virtual": "Non-Roadmap Projects",
        },
        "initiatives": {
            "uncategorized": "Uncategorized",
        },
    }


@dataclass
class Config:
    """Configuration for the tracker snapshot and roadmap taxonomy."""

    tracker_url: str = ""
    snapshot_path: str | None = None
    effort_field: str = "effort"
    label_translations: dict[str, dict[str, str]] = field(
        default_factory=_default_label_translations
    )
    external_stages: list[str] = field(
        default_factory=lambda: ["s0", "s1", "s2", "s3", "s3+"]
    )
    final_release_stages: list[str] = field(default_factory=lambda: ["s3", "s3+"])
    releasable_stages: list[str] = field(
        default_factory=lambda: ["s1", "s2", "s3", "s3+"]
    )
    status_mappings: dict[str, str] = field(default_factory=_default_status_mappings)
    status_values: dict[str, str] = field(default_factory=_default_status_values)
    future_statuses: list[str] = field(
        default_factory=lambda: ["todo", "inprogress", "postponed"]
    )
    no_prerelease_allowed_label: str = "omega:no-pre-release-allowed"
    virtual_theme: str = "virtual"
    non_roadmap_theme: str = "non-roadmap"
    validation_messages: dict[str, str] = field(default_factory=dict)

    def is_external_stage(self, stage: str) -> bool:
        return stage in self.external_stages

    def is_final_release_stage(self, stage: str) -> bool:
        return stage in self.final_release_stages

    def is_releasable_stage(self, stage: str) -> bool:
        return stage in self.releasable_stages

    def status(self, key: str) -> str:
        """Return the configured value for a status key such as "POSTPONED"."""
        return self.status_values[key]

    def validate(self) -> list[str]:
        """Validate configuration values. Returns list of error messages."""
        errors: list[str] = []

        if self.tracker_url:
            parsed = urlparse(self.tracker_url)
            if parsed.scheme not in ("http", "https"):
                errors.append("Tracker URL must start with http:// or https://")
            if not parsed.netloc:
                errors.append("Tracker URL must include a domain")

        if not self.effort_field:
            errors.append("Effort field is required")

        for kind in self.label_translations:
            if kind not in LABEL_KINDS:
                errors.append(
                    f"Unknown label kind '{kind}', expected one of {', '.join(LABEL_KINDS)}"
                )

        missing_keys = [key for key in STATUS_KEYS if key not in self.status_values]
        if missing_keys:
            errors.append(f"Status values missing: {', '.join(missing_keys)}")

        known_statuses = set(self.status_values.values())
        for status_id, status in self.status_mappings.items():
            if status not in known_statuses:
                errors.append(f"Status id {status_id} maps to unknown status '{status}'")

        for stage in self.final_release_stages + self.releasable_stages:
            if stage not in self.external_stages:
                errors.append(f"Stage '{stage}' must also be listed as external")

        return errors


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".cycle-roadmap"


def get_config_path() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.toml"


def config_exists() -> bool:
    """Check if configuration file exists."""
    return get_config_path().exists()


def config_from_dict(data: dict) -> Config:
    """Build a Config from parsed TOML data, keeping defaults for absent keys."""
    config = Config()

    tracker_section = data.get("tracker", {})
    snapshot_section = data.get("snapshot", {})
    stages_section = data.get("stages", {})
    statuses_section = data.get("statuses", {})
    roadmap_section = data.get("roadmap", {})
    validation_section = data.get("validation", {})

    config.tracker_url = tracker_section.get("url", config.tracker_url)
    config.effort_field = tracker_section.get("effort_field", config.effort_field)
    config.snapshot_path = snapshot_section.get("path", config.snapshot_path)

    for kind, translations in data.get("labels", {}).items():
        config.label_translations[kind] = dict(translations)

    config.external_stages = stages_section.get("external", config.external_stages)
    config.final_release_stages = stages_section.get(
        "final_release", config.final_release_stages
    )
    config.releasable_stages = stages_section.get("releasable", config.releasable_stages)

    if "mappings" in statuses_section:
        config.status_mappings = {
            str(key): value for key, value in statuses_section["mappings"].items()
        }
    config.status_values.update(statuses_section.get("values", {}))
    config.future_statuses = statuses_section.get("future", config.future_statuses)

    config.no_prerelease_allowed_label = roadmap_section.get(
        "no_prerelease_allowed_label", config.no_prerelease_allowed_label
    )
    config.virtual_theme = roadmap_section.get("virtual_theme", config.virtual_theme)
    config.non_roadmap_theme = roadmap_section.get(
        "non_roadmap_theme", config.non_roadmap_theme
    )
    config.validation_messages = dict(validation_section.get("messages", {}))

    return config


def load_config() -> Config:
    """Load configuration from TOML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration not found at {config_path}. "
            "Create ~/.cycle-roadmap/config.toml to set up."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    config = config_from_dict(data)

    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    return config


def save_config(config: Config) -> None:
    """Save configuration to TOML file."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = get_config_path()

    data: dict = {
        "tracker": {
            "url": config.tracker_url,
            "effort_field": config.effort_field,
        },
        "labels": config.label_translations,
        "stages": {
            "external": config.external_stages,
            "final_release": config.final_release_stages,
            "releasable": config.releasable_stages,
        },
        "statuses": {
            "mappings": config.status_mappings,
            "values": config.status_values,
            "future": config.future_statuses,
        },
        "roadmap": {
            "no_prerelease_allowed_label": config.no_prerelease_allowed_label,
            "virtual_theme": config.virtual_theme,
            "non_roadmap_theme": config.non_roadmap_theme,
        },
    }

    # TOML has no null, so optional sections are only written when set
    if config.snapshot_path:
        data["snapshot"] = {"path": config.snapshot_path}
    if config.validation_messages:
        data["validation"] = {"messages": config.validation_messages}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
