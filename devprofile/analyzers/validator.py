"""Parsing and validation of raw model output."""
from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from devprofile.errors import MalformedOutputError, SchemaViolationError

from .schema import ProjectAnalysisData

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def extract_json_text(raw: str) -> str:
    """Trim and unwrap the first fenced code block, if any."""
    text = raw.strip()
    match = _FENCE_RE.search(text)
    if match and match.group(1):
        return match.group(1)
    return text


def _format_location(loc: tuple) -> str:
    parts = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts) or "<root>"


def describe_violations(error: ValidationError) -> list[str]:
    """One ``path: message`` entry per schema violation."""
    return [
        f"{_format_location(issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    ]


def parse_analysis_response(raw: str) -> ProjectAnalysisData:
    """Parse and validate model output, accepting or rejecting it whole.

    Raises:
        MalformedOutputError: If the text is not JSON after unwrapping fences.
        SchemaViolationError: If the JSON does not match ProjectAnalysisData.
    """
    json_text = extract_json_text(raw)
    try:
        json.loads(json_text)
    except json.JSONDecodeError as e:
        preview = json_text[:PREVIEW_CHARS]
        logger.error("Failed to parse LLM response as JSON: %s", preview)
        raise MalformedOutputError(preview) from e

    # JSON input keeps strict mode from demanding model instances for nested objects
    try:
        return ProjectAnalysisData.model_validate_json(json_text)
    except ValidationError as e:
        violations = describe_violations(e)
        logger.error("Schema validation failed with %d issue(s): %s",
                     len(violations), "; ".join(violations))
        raise SchemaViolationError(violations) from e
