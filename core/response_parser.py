"""
Recovers structured content from a model's free-form reply.

Nothing here raises on malformed input: a reply that is not the JSON the
prompt asked for degrades to best-effort text.
"""
import json
import re
from typing import Any, Optional

from core.contracts.models import GeneratedContent
from utils.logger import logger

CODE_FENCE_START = re.compile(r"^\s*```(?:json)?[ \t]*\n?", re.IGNORECASE)
CODE_FENCE_END = re.compile(r"\n?```\s*$")
JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
TITLE_LINE = re.compile(r"^[ \t]*title:[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)


def strip_code_fences(text: str) -> str:
    text = CODE_FENCE_START.sub("", text.strip())
    return CODE_FENCE_END.sub("", text).strip()


def clean_json_response(text: str) -> str:
    """
    Strips surrounding code fences and, unless the rest already is a bare
    object, narrows it to the span from the first ``{`` to the last ``}``.
    """
    cleaned = strip_code_fences(text)
    if cleaned.startswith("{") and cleaned.endswith("}"):
        return cleaned
    match = JSON_OBJECT.search(cleaned)
    return match.group(0) if match else cleaned


def _load_json(text: str) -> Optional[Any]:
    try:
        return json.loads(clean_json_response(text))
    except (ValueError, RecursionError, TypeError):
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def parse_pr_content(text: str) -> GeneratedContent:
    """
    Extracts a title and body from a reply to the description prompt.

    JSON with ``title`` and ``body`` (or ``description``) is used directly.
    Otherwise the first ``Title:`` line gives the title and the whole
    unfenced reply is the body. The title is empty when nothing is found.
    """
    text = text or ""
    data = _load_json(text)
    if isinstance(data, dict) and ("title" in data or "body" in data or "description" in data):
        body = data.get("body")
        if body is None:
            body = data.get("description")
        return GeneratedContent(title=_as_text(data.get("title")).strip(), body=_as_text(body))

    logger.debug("AI response is not JSON, falling back to text extraction")
    cleaned = strip_code_fences(text)
    match = TITLE_LINE.search(cleaned)
    title = match.group(1).strip().strip("\"'") if match else ""
    return GeneratedContent(title=title, body=cleaned)


def parse_summary(text: str) -> str:
    """Extracts the narrative from a reply to the summary prompt."""
    text = text or ""
    data = _load_json(text)
    if isinstance(data, dict) and "summary" in data:
        summary = _as_text(data["summary"])
    elif isinstance(data, str):
        summary = data
    else:
        summary = strip_code_fences(text)
    summary = summary.strip()
    if len(summary) >= 2 and summary[0] == summary[-1] and summary[0] in "\"'":
        summary = summary[1:-1].strip()
    return summary
