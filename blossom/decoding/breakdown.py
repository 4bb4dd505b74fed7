"""Word breakdown array extraction from incomplete JSON.

Collects the flat breakdown objects that have fully arrived, plus the
trailing object still being written, from the ``breakdown`` array of a
streaming translation record.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from pydantic import ValidationError

from blossom.decoding.fields import extract_string_field
from blossom.schemas.translation import PartialWordEntry

_ARRAY_START_RE = re.compile(r'"breakdown"\s*:\s*\[')

# Breakdown entries are flat, so an object never contains braces
_OBJECT_RE = re.compile(r"\{[^{}]*\}")

_ENTRY_FIELDS = ("word", "reading", "meaning", "partOfSpeech")


@dataclass
class BreakdownResult:
    """Breakdown entries recovered so far."""

    items: list[PartialWordEntry] = field(default_factory=list)
    in_progress: bool = False


def parse_partial_breakdown_item(object_text: str) -> PartialWordEntry:
    """Recover whichever entry fields are present in an object fragment."""
    values: dict[str, str] = {}
    for name in _ENTRY_FIELDS:
        result = extract_string_field(object_text, name)
        if result.found and result.value is not None:
            values[name] = result.value
    return PartialWordEntry(**values)


def parse_breakdown_item(object_text: str) -> PartialWordEntry:
    """Parse a complete breakdown object.

    Falls back to per-field extraction when the object is not valid JSON
    or its values are not strings, so a malformed entry is kept rather
    than dropped.
    """
    try:
        parsed = json.loads(object_text)
        if not isinstance(parsed, dict):
            raise ValueError("breakdown entry is not an object")
        return PartialWordEntry(**{name: parsed.get(name) for name in _ENTRY_FIELDS})
    except (ValueError, RecursionError, ValidationError):
        return parse_partial_breakdown_item(object_text)


def extract_breakdown_array(fragment: str) -> BreakdownResult:
    """Extract breakdown entries from a JSON fragment.

    Args:
        fragment: A prefix of a translation record JSON document.

    Returns:
        BreakdownResult with every complete object, followed by the
        trailing partial object when it already has a recognizable field.
        ``in_progress`` is True while an object is open.
    """
    start = _ARRAY_START_RE.search(fragment)
    if start is None:
        return BreakdownResult()

    content = fragment[start.end():]
    array_end = content.find("]")
    if array_end != -1:
        content = content[:array_end]

    items = [parse_breakdown_item(m.group(0)) for m in _OBJECT_RE.finditer(content)]

    last_open = content.rfind("{")
    in_progress = last_open > content.rfind("}")
    if in_progress:
        partial = parse_partial_breakdown_item(content[last_open:])
        if not partial.is_empty():
            items.append(partial)

    return BreakdownResult(items=items, in_progress=in_progress)
