"""
Response Extraction

Turns the model's free-form reply into a validated AuditReport.

Models often wrap their JSON in Markdown code fences, sometimes with a
language tag, sometimes twice, sometimes on a single line. Fence handling
uses first-match semantics:

1. The first fence tagged ``json`` wins; otherwise the first fence of any kind.
   Fences may open anywhere, including after prose on the same line.
2. The body ends at the first closing fence on a line of its own. Valid JSON
   cannot hold a raw newline inside a string, so backticks inside string
   values never end the body. Without such a line the body ends at the next
   triple backtick, and an unterminated fence runs to the end of the text.
3. While the extracted body itself starts with a fence, strip again.

Text without fences is parsed as-is, and so is text that already starts
with a JSON object or array (backticks in its string values are content).
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import EmptyResponseError, ParseError
from .models import AuditReport, BoundsPolicy

logger = logging.getLogger(__name__)

FENCE = "```"

_TAGGED_OPEN = re.compile(r"```[ \t]*json\b[ \t]*\r?\n?", re.IGNORECASE)
_ANY_OPEN = re.compile(r"```[ \t]*[\w.+-]*[ \t]*\r?\n?")
_BARE_CLOSE = re.compile(r"^[ \t]*```[ \t]*\r?$", re.MULTILINE)


def _unwrap_once(text: str) -> Optional[str]:
    """Return the body of the first fence, or None if there is no fence."""
    opening = _TAGGED_OPEN.search(text) or _ANY_OPEN.search(text)
    if opening is None:
        return None

    start = opening.end()
    closing = _BARE_CLOSE.search(text, start)
    if closing is not None:
        return text[start:closing.start()]

    end = text.find(FENCE, start)
    if end == -1:
        return text[start:]
    return text[start:end]


def strip_fences(text: str) -> str:
    """
    Remove Markdown code fences around the payload.

    Example:
        strip_fences('```json\\n{"score": 42}\\n```') == '{"score": 42}'
    """
    body = text.strip()
    if body.startswith(("{", "[")):
        return body
    inner = _unwrap_once(body)
    while inner is not None:
        body = inner.strip()
        if not body.startswith(FENCE):
            break
        # nested fence
        inner = _unwrap_once(body)
    return body


def parse_json(raw_text: Optional[str]) -> dict[str, Any]:
    """
    Strip fences and parse the reply as a JSON object.

    Raises:
        EmptyResponseError: If the reply is empty or whitespace
        ParseError: If the remaining text is not a JSON object
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyResponseError("Model returned an empty response")

    json_text = strip_fences(raw_text)

    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.debug("Unparseable model output: %.500s", json_text)
        raise ParseError(f"Response is not valid JSON: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise ParseError(
            f"Response JSON must be an object, got {type(data).__name__}"
        )

    return data


class ResponseExtractor:
    """
    Parses and validates model replies.

    Validation policy: structural problems (missing fields, wrong types,
    unknown severities, duplicate annotation ids) raise ParseError. Range
    problems in scores and boxes are handled by `bounds_policy`, applied
    once here so renderers can trust every box they receive.

    Example:
        extractor = ResponseExtractor(BoundsPolicy.CLAMP)
        report = extractor.extract(response_text)
    """

    def __init__(self, bounds_policy: BoundsPolicy = BoundsPolicy.CLAMP):
        self.bounds_policy = BoundsPolicy(bounds_policy)

    def extract(self, raw_text: Optional[str]) -> AuditReport:
        """
        Extract an AuditReport from raw model text.

        Raises:
            EmptyResponseError: Nothing came back
            ParseError: Not JSON, or JSON that does not fit the schema
        """
        data = parse_json(raw_text)

        try:
            report = AuditReport.model_validate(
                data, context={"bounds_policy": self.bounds_policy}
            )
        except PydanticValidationError as e:
            raise ParseError(
                f"Response does not match the report schema: {e.error_count()} error(s)",
                cause=e,
            ) from e

        logger.debug(
            "Extracted report: score=%d annotations=%d",
            report.score, len(report.annotations),
        )
        return report


def extract(
    raw_text: Optional[str],
    bounds_policy: BoundsPolicy = BoundsPolicy.CLAMP,
) -> AuditReport:
    """Extract a report using a one-off ResponseExtractor."""
    return ResponseExtractor(bounds_policy).extract(raw_text)
