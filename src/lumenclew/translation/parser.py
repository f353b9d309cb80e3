"""
Tiered parser for translation service responses.

The service is asked for a JSON array but answers in free text that may
wrap the JSON in prose or code fences, or break it halfway. Parsing tries,
in order:

1. WHOLE_PAYLOAD   - the body is JSON: an array, a wrapper object with a
                     conventional list key, or a single object
2. ARRAY_SUBSTRING - the first '[' ... last ']' span is a JSON array
3. OBJECT_RECOVERY - every brace-delimited object (one nesting level) that
                     parses on its own

The first tier yielding at least one object wins. Each attempt is reported
as a ParseOutcome rather than signalled through exceptions.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ParseTier(Enum):
    """Which parsing strategy produced the objects"""
    WHOLE_PAYLOAD = "whole_payload"
    ARRAY_SUBSTRING = "array_substring"
    OBJECT_RECOVERY = "object_recovery"
    NONE = "none"


@dataclass
class ParseOutcome:
    """Result of one parsing tier"""
    tier: ParseTier
    items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.items)


WRAPPER_KEYS = ("findings", "translations", "results")

_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OBJECT_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")


def _objects_only(values) -> List[Dict[str, Any]]:
    return [value for value in values if isinstance(value, dict)]


def parse_whole_payload(text: str) -> ParseOutcome:
    """Tier 1: the entire body is JSON"""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return ParseOutcome(ParseTier.WHOLE_PAYLOAD)

    if isinstance(parsed, list):
        return ParseOutcome(ParseTier.WHOLE_PAYLOAD, _objects_only(parsed))

    if isinstance(parsed, dict):
        for key in WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                return ParseOutcome(ParseTier.WHOLE_PAYLOAD, _objects_only(parsed[key]))
        return ParseOutcome(ParseTier.WHOLE_PAYLOAD, [parsed])

    return ParseOutcome(ParseTier.WHOLE_PAYLOAD)


def parse_array_substring(text: str) -> ParseOutcome:
    """Tier 2: the outermost [...] span is a JSON array"""
    match = _ARRAY_RE.search(text)
    if not match:
        return ParseOutcome(ParseTier.ARRAY_SUBSTRING)

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return ParseOutcome(ParseTier.ARRAY_SUBSTRING)

    if not isinstance(parsed, list):
        return ParseOutcome(ParseTier.ARRAY_SUBSTRING)
    return ParseOutcome(ParseTier.ARRAY_SUBSTRING, _objects_only(parsed))


def parse_individual_objects(text: str) -> ParseOutcome:
    """Tier 3: recover whichever {...} objects parse on their own"""
    items = []
    for match in _OBJECT_RE.finditer(text):
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            items.append(parsed)
    return ParseOutcome(ParseTier.OBJECT_RECOVERY, items)


PARSE_TIERS = (
    parse_whole_payload,
    parse_array_substring,
    parse_individual_objects,
)


def parse_translation_response(text: str) -> ParseOutcome:
    """
    Run the parsing ladder and stop at the first tier with objects.

    Args:
        text: Raw response text from the translation service

    Returns:
        The winning ParseOutcome, or ParseTier.NONE with no items
    """
    if not text or not text.strip():
        return ParseOutcome(ParseTier.NONE)

    for tier in PARSE_TIERS:
        outcome = tier(text)
        if outcome.ok:
            return outcome

    return ParseOutcome(ParseTier.NONE)
