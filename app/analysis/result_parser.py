from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from app.core.errors import ServiceError
from app.schemas.gap_analysis import AnalysisResult

LIST_ITEM_LIMIT = 3
EXCERPT_CHARS = 200

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_LIST_ITEM_RE = re.compile(r"^(?:[-*+•]\s|\d+[.)](?:\s|$))")


def is_list_item(line: str) -> bool:
    return bool(_LIST_ITEM_RE.match(line.strip()))


def truncate_markdown_list(text: str, count: int = LIST_ITEM_LIMIT) -> str:
    """Keep the header lines and the first ``count`` list items of ``text``.

    Lines before the first list item are the header. Non-list lines that
    appear once the list has started are dropped.
    """
    header: list[str] = []
    items: list[str] = []
    for line in text.split("\n"):
        if is_list_item(line):
            items.append(line)
        elif not items:
            header.append(line)
    return "\n".join(header + items[:count])


def extract_json_object(raw: str) -> dict[str, Any]:
    match = _JSON_OBJECT_RE.search(raw or "")
    if not match:
        raise ServiceError.parse("No JSON found in AI response", (raw or "")[:EXCERPT_CHARS])
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ServiceError.parse(f"Failed to parse JSON: {exc.msg}", raw[:EXCERPT_CHARS]) from exc
    if not isinstance(parsed, dict):
        raise ServiceError.validation("AI response is not a valid object")
    return parsed


def format_validation_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid value')}" if location else error.get("msg", ""))
    return messages


def validate_result(payload: dict[str, Any]) -> AnalysisResult:
    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        raise ServiceError.validation(
            "AI response validation failed - invalid structure",
            format_validation_errors(exc),
        ) from exc


def parse_analysis_result(raw: str) -> AnalysisResult:
    result = validate_result(extract_json_object(raw))
    return result.model_copy(
        update={
            "steps": truncate_markdown_list(result.steps),
            "interview_questions": truncate_markdown_list(result.interview_questions),
        }
    )
