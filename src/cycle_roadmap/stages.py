"""Stage extraction from ticket titles."""

import re

from cycle_roadmap.config import Config

INTERNAL_STAGE = "internal"


def _text_between_last_parens(text: str) -> str:
    """Return the text between the last "(" and the last ")".

    Missing parentheses count as index 0 and reversed bounds are swapped, so
    "Feature s1)" yields "Feature s1". Titles with several bracketed groups
    resolve against the last pair only.
    """
    start = max(text.rfind("(") + 1, 0)
    end = max(text.rfind(")"), 0)
    if start > end:
        start, end = end, start
    return text[start:end]


def resolve_stage(text: str | None, config: Config) -> str:
    """Resolve the stage written in brackets at the end of a title, e.g. "Feature (s1)".

    Returns the stage when it is external, otherwise "internal".
    """
    stage = _text_between_last_parens(text or "").lower()
    return stage if config.is_external_stage(stage) else INTERNAL_STAGE


def clean_name(title: str | None, config: Config) -> str:
    """Remove the "(stage)" marker from a title."""
    title = title or ""
    stage = resolve_stage(title, config)
    # re.escape covers the "+" of the compound stage, e.g. "s3+"
    pattern = re.escape(f"({stage})")
    return re.sub(pattern, "", title, count=1, flags=re.IGNORECASE).strip()
