"""
LLM response parsing.

Two policies:
    parse()               strict: fence strip → JSON decode → shape check.
                          Anything off returns ``None`` so the retry loop
                          can ask again.
    extract_json_array()  best-effort: first ``[...]`` span anywhere in the
                          text, used by feature extraction and task
                          suggestion.

Neither function raises on bad model output.
"""

import json
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

STRING = "string"
STRING_LIST = "string_list"


@dataclass(frozen=True)
class ResponseShape:
    """Required top-level fields of a JSON object and the kind each must hold."""

    name: str
    fields: dict = field(default_factory=dict)

    def validate(self, data) -> dict | None:
        if not isinstance(data, dict):
            return None
        result = {}
        for key, kind in self.fields.items():
            value = data.get(key)
            if kind == STRING:
                if not isinstance(value, str) or not value.strip():
                    return None
            elif kind == STRING_LIST:
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    return None
            result[key] = value
        return result


ANALYSIS_SHAPE = ResponseShape("analysis", {
    "missingDetails": STRING_LIST,
    "complementarySuggestions": STRING_LIST,
    "constraintsAndRisks": STRING_LIST,
    "clarifyingQuestions": STRING_LIST,
})

DOCUMENT_SHAPE = ResponseShape("document", {
    "title": STRING,
    "content": STRING,
})

DIAGRAM_SHAPE = ResponseShape("diagram", {
    "title": STRING,
    "mermaidCode": STRING,
})


def strip_code_fence(text: str) -> str:
    """Return the body of the first ```/```json fenced block, or the trimmed text."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse(raw_text: str, shape: ResponseShape) -> dict | None:
    """Decode ``raw_text`` and validate it against ``shape``; ``None`` when invalid."""
    try:
        data = json.loads(strip_code_fence(raw_text))
    except (TypeError, ValueError) as e:
        logger.debug("Unparseable %s response: %s", shape.name, e)
        return None

    result = shape.validate(data)
    if result is None:
        logger.debug("%s response failed shape validation", shape.name)
    return result


def extract_json_array(raw_text: str) -> list[dict] | None:
    """
    Find the first ``[ ... ]`` span (greedy, across newlines) and decode it.

    Returns the list of object items, or ``None`` when nothing usable is found.
    """
    match = _ARRAY_RE.search(raw_text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    items = [item for item in data if isinstance(item, dict)]
    return items or None


def parser_for(shape: ResponseShape):
    """Bind ``shape`` into a one-argument parser for ``RetryController.attempt``."""
    def _parse(raw_text: str):
        return parse(raw_text, shape)
    return _parse
