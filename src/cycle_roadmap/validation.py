"""Validation codes, the message catalog, and validation item constructors."""

from enum import Enum

from cycle_roadmap.models import ValidationItem


class ValidationCode(str, Enum):
    """Every data-quality finding the pipeline can report."""

    NO_PROJECT_ID = "noProjectId"
    MISSING_AREA_LABEL = "missingAreaLabel"
    MISSING_TEAM_LABEL = "missingTeamLabel"
    MISSING_TEAM_TRANSLATION = "missingTeamTranslation"
    MISSING_ESTIMATE = "missingEstimate"
    TOO_GRANULAR_ESTIMATE = "tooGranularEstimate"
    MISSING_ASSIGNEE = "missingAssignee"
    TOO_LOW_STAGE_WITHOUT_PROPER_ROADMAP_ITEM = "tooLowStageWithoutProperRoadmapItem"
    MISSING_THEME_LABEL = "missingThemeLabel"
    MISSING_INITIATIVE_LABEL = "missingInitiativeLabel"
    MISSING_AREA_TRANSLATION = "missingAreaTranslation"
    MISSING_THEME_TRANSLATION = "missingThemeTranslation"
    MISSING_INITIATIVE_TRANSLATION = "missingInitiativeTranslation"
    MISSING_EXTERNAL_ROADMAP = "missingExternalRoadmap"
    MISSING_EXTERNAL_ROADMAP_DESCRIPTION = "missingExternalRoadmapDescription"
    INTERNAL_WITH_STAGED_RELEASE_ITEM = "internalWithStagedReleaseItem"


# Parameterized messages use "{parameter}", filled from the item's description
DEFAULT_MESSAGES: dict[ValidationCode, str] = {
    ValidationCode.NO_PROJECT_ID: "The `Roadmap Item` is missing from the Cycle Item",
    ValidationCode.MISSING_AREA_LABEL: "At least one `area:` prefix label is needed",
    ValidationCode.MISSING_TEAM_LABEL: (
        "At least one `team:` prefix label is needed on the Cycle Item"
    ),
    ValidationCode.MISSING_TEAM_TRANSLATION: (
        "The team name `{parameter}` is not yet translated"
    ),
    ValidationCode.MISSING_ESTIMATE: (
        "The `Story point estimate` is missing from the Cycle Item"
    ),
    ValidationCode.TOO_GRANULAR_ESTIMATE: (
        "The `Story point estimate` effort is too granular, it should be a "
        "multiple of 0.5 week"
    ),
    ValidationCode.MISSING_ASSIGNEE: "The assignee is missing from the Cycle Item",
    ValidationCode.TOO_LOW_STAGE_WITHOUT_PROPER_ROADMAP_ITEM: (
        "It should have its own Roadmap Item, because at least another release "
        "stage will be in the future based on its current stage"
    ),
    ValidationCode.MISSING_THEME_LABEL: (
        "At least one `theme:` prefix label is needed on the Roadmap Item"
    ),
    ValidationCode.MISSING_INITIATIVE_LABEL: (
        "At least one `initiative:` prefix label is needed on the Roadmap Item"
    ),
    ValidationCode.MISSING_AREA_TRANSLATION: (
        "The area name `{parameter}` is not yet translated"
    ),
    ValidationCode.MISSING_THEME_TRANSLATION: (
        "The theme `{parameter}` is not yet translated"
    ),
    ValidationCode.MISSING_INITIATIVE_TRANSLATION: (
        "The initiative `{parameter}` is not yet translated"
    ),
    ValidationCode.MISSING_EXTERNAL_ROADMAP: (
        'Set the "External Roadmap" field to either "Yes" or "No" to indicate '
        "whether this roadmap item belongs on the public roadmap"
    ),
    ValidationCode.MISSING_EXTERNAL_ROADMAP_DESCRIPTION: (
        "The external roadmap description is required for external roadmap items"
    ),
    ValidationCode.INTERNAL_WITH_STAGED_RELEASE_ITEM: (
        "This roadmap item should either be marked as external, because at least "
        "one of its cycle items has a stage, or its cycle items' stages should "
        "be changed to internal"
    ),
}


def create_validation_item(
    item_id: str, code: ValidationCode, status: str = "error"
) -> ValidationItem:
    """Create a validation item whose id links the ticket to the code."""
    return ValidationItem(id=f"{item_id}-{code.value}", code=code.value, status=status)


def create_parameterized_validation_item(
    item_id: str, code: ValidationCode, parameter: str, status: str = "error"
) -> ValidationItem:
    """Create a validation item carrying a dynamic parameter, e.g. a team name."""
    return ValidationItem(
        id=f"{item_id}-{code.value}-{parameter}",
        code=code.value,
        status=status,
        description=parameter,
    )


def validations_for(
    item_id: str, codes: list[ValidationCode], parameters: list[str | None]
) -> list[ValidationItem]:
    """Turn collected codes into validation items, parameterized where a parameter is set."""
    items: list[ValidationItem] = []
    for code, parameter in zip(codes, parameters):
        if parameter is None:
            items.append(create_validation_item(item_id, code))
        else:
            items.append(create_parameterized_validation_item(item_id, code, parameter))
    return items


def message_catalog(overrides: dict[str, str] | None = None) -> dict[str, str]:
    """Return the message catalog keyed by code, with configured overrides applied."""
    catalog = {code.value: message for code, message in DEFAULT_MESSAGES.items()}
    if overrides:
        catalog.update(
            {code: message for code, message in overrides.items() if code in catalog}
        )
    return catalog


def describe(item: ValidationItem, catalog: dict[str, str]) -> str:
    """Resolve the user-facing message of a validation item.

    Unknown codes fall back to the code itself so a stale catalog never hides
    a finding.
    """
    message = catalog.get(item.code)
    if message is None:
        return item.code
    return message.replace("{parameter}", item.description)
