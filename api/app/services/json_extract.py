"""Recover a JSON object from free-form model output.

Models often wrap the requested JSON in prose or markdown code fences.
Candidates are found by balanced-brace scanning that skips braces inside
string literals, so unrelated braces after the object do not end up in the
parsed span. Scanning stops at the first `{` that never closes, since every
later brace may belong to that cut-off object. When no balanced span was
found the naive first-`{`-to-last-`}` span is parsed instead, so its failure
surfaces as a parse error.
"""

import json
import logging
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class NoJSONFound(ValueError):
    """The text contains no brace-delimited span at all."""


def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the `}` closing the `{` at `start`, or None if unbalanced."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def iter_candidate_spans(text: str) -> Iterator[str]:
    """Yield top-level balanced `{...}` spans from left to right.

    Braces nested inside a yielded span are never yielded on their own, and
    the scan ends at an unbalanced `{`, so a malformed or truncated outer
    object cannot be replaced by one of its inner objects.
    """
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is None:
            return
        yield text[start:end + 1]
        start = text.find("{", end + 1)


def greedy_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object embedded in `text`.

    Raises:
        NoJSONFound: no `{` ... `}` span exists in the text.
        json.JSONDecodeError: spans exist but none of them parse; the error
            is the one raised for the leftmost candidate.
    """
    first_error: Optional[json.JSONDecodeError] = None
    skipped = 0

    for span in iter_candidate_spans(text):
        try:
            value = json.loads(span)
        except json.JSONDecodeError as e:
            first_error = first_error or e
            skipped += 1
            continue
        if skipped:
            logger.debug(f"Skipped {skipped} unparseable brace span(s) before the result")
        return value

    if first_error is not None:
        raise first_error

    # No balanced span; the output was cut off or a string literal never closed
    fallback = greedy_span(text)
    if fallback is None:
        raise NoJSONFound("no JSON object found in text")
    return json.loads(fallback)
