"""Prefixed label extraction and translation."""

from dataclasses import dataclass, field

from cycle_roadmap.validation import ValidationCode

UNCATEGORIZED = "uncategorized"

_PLURAL_KINDS = {
    "area": "areas",
    "team": "teams",
    "theme": "themes",
    "initiative": "initiatives",
}


@dataclass
class LabelResult:
    """A resolved label value plus the validation codes it produced.

    `parameters` lines up with `codes` for parameterized codes; plain codes
    carry None.
    """

    value: object
    codes: list[ValidationCode] = field(default_factory=list)
    parameters: list[str | None] = field(default_factory=list)
    id: str | None = None


def extract_by_prefix(labels: list[str], prefix: str) -> list[str]:
    """Return the values of labels written as "<prefix>:<value>"."""
    prefix_with_colon = f"{prefix}:"
    return [
        label.strip()[len(prefix_with_colon):]
        for label in labels
        if label.strip().startswith(prefix_with_colon)
    ]


def translate_strict(
    translations: dict[str, dict[str, str]], kind: str, value: str
) -> str | None:
    """Look up the display name of a label value, None when untranslated."""
    translation_map = translations.get(_PLURAL_KINDS.get(kind, kind))
    if not translation_map:
        return None
    return translation_map.get(value)


def translate(translations: dict[str, dict[str, str]], kind: str, value: str) -> str:
    """Look up the display name of a label value, falling back to the raw value."""
    return translate_strict(translations, kind, value) or value


def collect_teams(labels: list[str], translations: dict[str, dict[str, str]]) -> LabelResult:
    team_labels = extract_by_prefix(labels, "team")
    if not team_labels:
        return LabelResult(value=[], codes=[ValidationCode.MISSING_TEAM_LABEL], parameters=[None])

    result = LabelResult(value=[])
    for team in team_labels:
        translated = translate_strict(translations, "team", team)
        if translated:
            result.value.append(translated)
            continue
        # Keep the raw team so the item still shows who owns it
        result.value.append(team)
        result.codes.append(ValidationCode.MISSING_TEAM_TRANSLATION)
        result.parameters.append(team)
    return result


def collect_area(labels: list[str], translations: dict[str, dict[str, str]]) -> LabelResult:
    """Join every area label into one display value.

    Each untranslated area adds a code, and all of them are reported with the
    first untranslated area as parameter.
    """
    area_ids = extract_by_prefix(labels, "area")
    if not area_ids:
        return LabelResult(value="", codes=[ValidationCode.MISSING_AREA_LABEL], parameters=[None])

    names: list[str] = []
    untranslated: list[str] = []
    for area in area_ids:
        translated = translate_strict(translations, "area", area)
        if translated:
            names.append(translated)
        else:
            names.append(area)
            untranslated.append(area)

    parameter = untranslated[0] if untranslated else None
    return LabelResult(
        value=", ".join(names),
        codes=[ValidationCode.MISSING_AREA_TRANSLATION] * len(untranslated),
        parameters=[parameter] * len(untranslated),
    )


def parse_theme(labels: list[str]) -> str | None:
    themes = extract_by_prefix(labels, "theme")
    return themes[0] if themes else None


def collect_theme(labels: list[str], translations: dict[str, dict[str, str]]) -> LabelResult:
    theme = parse_theme(labels)
    if not theme:
        return LabelResult(value=None, codes=[ValidationCode.MISSING_THEME_LABEL], parameters=[None])

    translated = translate_strict(translations, "theme", theme)
    if not translated:
        return LabelResult(
            value=theme,
            codes=[ValidationCode.MISSING_THEME_TRANSLATION],
            parameters=[theme],
            id=theme,
        )
    return LabelResult(value=translated, id=theme)


def collect_initiative(
    labels: list[str],
    translations: dict[str, dict[str, str]],
    non_roadmap_theme: str = "non-roadmap",
) -> LabelResult:
    initiatives = extract_by_prefix(labels, "initiative")
    if not initiatives:
        # Non-roadmap work is not expected to belong to an initiative
        if parse_theme(labels) == non_roadmap_theme:
            return LabelResult(value=UNCATEGORIZED, id=UNCATEGORIZED)
        return LabelResult(
            value=UNCATEGORIZED,
            codes=[ValidationCode.MISSING_INITIATIVE_LABEL],
            parameters=[None],
            id=UNCATEGORIZED,
        )

    initiative = initiatives[0]
    translated = translate_strict(translations, "initiative", initiative)
    if not translated:
        return LabelResult(
            value=initiative,
            codes=[ValidationCode.MISSING_INITIATIVE_TRANSLATION],
            parameters=[initiative],
            id=initiative,
        )
    return LabelResult(value=translated, id=initiative)
