"""Upload template expansion — ``{{token}}`` substitution for titles and descriptions."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date

_TOKEN_RE = re.compile(r"\{\{\s*([a-zA-Z_]+)\s*\}\}")

TITLE_MAX_CHARS = 100
DESCRIPTION_MAX_CHARS = 5000


def template_tokens(run_date: date, topic: str = "") -> dict[str, str]:
    """Token values available to upload templates for one run."""
    return {
        "date": run_date.isoformat(),
        "topic": topic,
    }


def expand_template(template: str, tokens: Mapping[str, str]) -> str:
    """Replace every known ``{{token}}`` in ``template``.

    Unknown tokens are left verbatim, so a string without known tokens is
    returned unchanged.
    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1).lower()
        if name in tokens:
            return tokens[name]
        return match.group(0)

    return _TOKEN_RE.sub(_sub, template)


def finalize_title(title: str) -> str:
    """Strip characters the platform rejects and cut to the title limit."""
    cleaned = " ".join(title.replace("<", "").replace(">", "").split())
    return cleaned[:TITLE_MAX_CHARS].rstrip()


def finalize_description(description: str) -> str:
    """Strip angle brackets and cut to the description limit."""
    cleaned = description.replace("<", "").replace(">", "").strip()
    return cleaned[:DESCRIPTION_MAX_CHARS]
