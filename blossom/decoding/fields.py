"""String field extraction from incomplete JSON.

Finds a named string field in a JSON fragment and reads its value up to
the closing quote, or up to the end of the fragment while the value is
still being streamed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


@dataclass(frozen=True)
class FieldResult:
    """Outcome of extracting one string field."""

    found: bool
    value: str | None = None
    complete: bool = False


@lru_cache(maxsize=32)
def _field_pattern(field_name: str) -> re.Pattern[str]:
    return re.compile(rf'"{re.escape(field_name)}"\s*:\s*"')


def extract_string_field(fragment: str, field_name: str) -> FieldResult:
    """Extract a string field's value from a JSON fragment.

    Only the first ``"field_name": "`` occurrence is considered. Backslash
    escapes ``\\n``, ``\\t`` and ``\\r`` are decoded; any other escaped
    character is taken literally.

    Args:
        fragment: A prefix of a JSON document, possibly truncated.
        field_name: Key of the string field to extract.

    Returns:
        FieldResult with ``found`` False when the key has not appeared yet,
        otherwise the value scanned so far and whether its closing quote
        was seen.
    """
    match = _field_pattern(field_name).search(fragment)
    if match is None:
        return FieldResult(found=False)

    chars: list[str] = []
    escaped = False
    for char in fragment[match.end():]:
        if escaped:
            chars.append(_ESCAPES.get(char, char))
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return FieldResult(found=True, value="".join(chars), complete=True)
        else:
            chars.append(char)

    return FieldResult(found=True, value="".join(chars), complete=False)
