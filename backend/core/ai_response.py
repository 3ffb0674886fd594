"""
Heuristic parser for structured assistant replies.

The assistant is asked to label its answer with ``NASLOV:``, ``HOOK:``,
``BODY:`` and ``CTA:`` markers. Models do not always comply, so this is
best effort: a field whose marker is missing stays ``None`` and the
parser never raises. Callers must treat the raw text as authoritative.
"""

import re
from dataclasses import dataclass

_MARKERS = {
    "title": ("NASLOV", "TITLE"),
    "hook": ("HOOK",),
    "body": ("BODY", "TELO"),
    "cta": ("CTA",),
}

_LABEL_TO_FIELD = {label: field for field, labels in _MARKERS.items() for label in labels}

# Matches "HOOK:", "**HOOK:**", "**HOOK**:", "## HOOK:" at the start of a line
_MARKER_RE = re.compile(
    r"^[ \t]*(?:#+[ \t]*)?\**[ \t]*("
    + "|".join(sorted(_LABEL_TO_FIELD, key=len, reverse=True))
    + r")[ \t]*\**[ \t]*:[ \t]*\**",
    re.IGNORECASE | re.MULTILINE,
)


@dataclass
class ParsedContent:
    title: str | None = None
    hook: str | None = None
    body: str | None = None
    cta: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.title, self.hook, self.body, self.cta))

    def as_dict(self) -> dict:
        return {"title": self.title, "hook": self.hook, "body": self.body, "cta": self.cta}


def parse_structured_response(text: str | None) -> ParsedContent:
    """Split ``text`` into title/hook/body/cta sections by marker."""
    parsed = ParsedContent()
    if not text:
        return parsed

    matches = list(_MARKER_RE.finditer(text))
    for index, match in enumerate(matches):
        field = _LABEL_TO_FIELD[match.group(1).upper()]
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        value = text[match.end():end].strip().strip("*").strip()
        # First occurrence wins when the model repeats a marker
        if value and getattr(parsed, field) is None:
            setattr(parsed, field, value)
    return parsed
