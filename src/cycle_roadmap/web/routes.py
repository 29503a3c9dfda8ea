"""HTTP route handlers for the Cycle Roadmap JSON API."""

from datetime import date, timedelta

from flask import Blueprint, jsonify, request

from cycle_roadmap.config import Config, config_exists, load_config
from cycle_roadmap.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidSnapshotError,
    MalformedTicketError,
    NoCyclesFoundError,
    RoadmapError,
    SnapshotNotFoundError,
    UnknownCycleError,
)
from cycle_roadmap.filtering import criteria_from_mapping
from cycle_roadmap.roadmap import (
    build_cycle_roadmap,
    cycle_roadmap_to_dict,
    fetch_cycle_roadmap,
)
from cycle_roadmap.snapshot import snapshot_from_dict
from cycle_roadmap.validation import message_catalog

bp = Blueprint("main", __name__)


@bp.route("/health")
def health():
    """Health check endpoint."""
    config_loaded = config_exists()
    if config_loaded:
        return jsonify({"status": "ok", "config_loaded": True})
    else:
        return jsonify({
            "status": "error",
            "config_loaded": False,
            "message": "Configuration not found",
        }), 503


@bp.route("/api/cycle-data")
def api_cycle_data():
    """Return the roadmap of a cycle, filtered by the query arguments."""
    cycle_id = request.args.get("cycleId", "").strip() or None
    criteria = criteria_from_mapping(request.args)

    try:
        result = fetch_cycle_roadmap(cycle_id=cycle_id, criteria=criteria)
    except (ConfigNotFoundError, InvalidConfigError) as e:
        return jsonify({"error": str(e)}), 503
    except (SnapshotNotFoundError, InvalidSnapshotError, NoCyclesFoundError) as e:
        return jsonify({"error": str(e)}), 503
    except UnknownCycleError as e:
        return jsonify({"error": str(e)}), 404
    except MalformedTicketError as e:
        return jsonify({"error": f"Tracker data is malformed: {e}"}), 500
    except RoadmapError as e:
        return jsonify({"error": str(e)}), 500

    return jsonify(cycle_roadmap_to_dict(result))


@bp.route("/api/validations")
def api_validations():
    """Return the validation message catalog, keyed by code."""
    overrides = None
    if config_exists():
        try:
            overrides = load_config().validation_messages
        except (FileNotFoundError, ValueError) as e:
            return jsonify({"error": str(e)}), 503
    return jsonify(message_catalog(overrides))


@bp.route("/demo")
def demo():
    """Return the roadmap of built-in demo data (no configuration needed)."""
    today = date.today()
    criteria = criteria_from_mapping(request.args)

    try:
        result = build_cycle_roadmap(
            _demo_snapshot(today),
            _demo_config(),
            cycle_id=request.args.get("cycleId", "").strip() or None,
            criteria=criteria,
            today=today,
        )
    except UnknownCycleError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(cycle_roadmap_to_dict(result))


def _demo_config() -> Config:
    config = Config(tracker_url="https://demo.atlassian.net")
    config.label_translations["areas"] = {
        "platform": "Platform",
        "resilience": "Resilience",
    }
    config.label_translations["teams"] = {
        "platform.integrations": "Integrations",
        "resilience.fttk": "Faster Time to Know",
    }
    config.label_translations["themes"].update({
        "compliance": "Efficient Compliance",
        "tier-n": "Multi-Tier Risk Management",
    })
    config.label_translations["initiatives"].update({
        "compliance": "Efficient Compliance",
        "tier-n": "Multi-Tier Risk Management",
    })
    return config


def _demo_snapshot(today: date):
    def d(offset_days):
        return (today + timedelta(days=offset_days)).isoformat()

    current = {"id": "2", "name": "Cycle 2", "start": d(-30), "delivery": d(-28),
               "end": d(40), "state": "active"}
    previous = {"id": "1", "name": "Cycle 1", "start": d(-100), "delivery": d(-98),
                "end": d(-31), "state": "closed"}
    upcoming = {"id": "3", "name": "Cycle 3", "start": d(41), "delivery": d(43),
                "end": d(110), "state": "future"}

    def issue(key, summary, parent, status_id, effort, labels, sprint, assignee="alice"):
        return {
            "key": key,
            "fields": {
                "summary": summary,
                "status": {"id": status_id},
                "labels": labels,
                "parent": {"key": parent} if parent else None,
                "effort": effort,
                "assignee": {"accountId": assignee, "displayName": assignee.title()},
                "reporter": {"accountId": "pm", "displayName": "Pm"},
                "sprint": sprint,
            },
        }

    platform = ["area:platform", "team:platform.integrations"]
    resilience = ["area:resilience", "team:resilience.fttk"]

    return snapshot_from_dict({
        "cycles": [previous, current, upcoming],
        "roadmapItems": {
            "ROAD-1": {
                "summary": "[Compliance] Supplier self-assessment [Q3]",
                "labels": ["area:platform", "theme:compliance", "initiative:compliance"],
                "externalRoadmap": "Yes",
                "externalRoadmapDescription": "Suppliers assess themselves.",
            },
            "ROAD-2": {
                "summary": "Tier-N risk graph",
                "labels": ["area:resilience", "theme:tier-n", "initiative:tier-n",
                           "omega:no-pre-release-allowed"],
                "externalRoadmap": "No",
            },
            "ROAD-3": {
                "summary": "Keep the lights on",
                "labels": ["area:platform", "theme:non-roadmap"],
                "externalRoadmap": "No",
            },
        },
        "issues": [
            issue("CYC-1", "Questionnaire builder (s1)", "ROAD-1", "18235", 2,
                  platform, current),
            issue("CYC-2", "Questionnaire scoring (s3)", "ROAD-1", "18264", 3,
                  platform, current, assignee="bob"),
            issue("CYC-3", "Graph import (s2)", "ROAD-2", "18234", 1.5,
                  resilience + ["release:at-risk"], current),
            issue("CYC-4", "Graph explorer (s3+)", "ROAD-2", "18234", 4,
                  resilience, upcoming, assignee="carol"),
            issue("CYC-5", "Upgrade database", "ROAD-3", "18295", 1,
                  platform, current),
            issue("CYC-6", "Flaky build cleanup", None, "18234", None,
                  ["team:platform.integrations"], current),
        ],
    })
