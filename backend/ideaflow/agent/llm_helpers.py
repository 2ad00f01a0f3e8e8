"""Shared LLM utility functions for output normalization and retry queueing.

This module provides:
- strip_json_fences: Remove markdown code fences from LLM output
- parse_json_object: Parse a JSON object from an LLM response after stripping fences
- strip_markup: Recursively remove asterisk emphasis from every string value
- enqueue_deferred_draft / pop_deferred_drafts: Redis list of drafts postponed by quota errors
"""

import datetime
import json
import re
from typing import Any

import structlog

from ideaflow.core.exceptions import ModelResponseParseError

logger = structlog.get_logger(__name__)

DEFERRED_DRAFTS_KEY = "ideaflow:draft_retry_queue"

# Applied in order: bold-italic, bold, italic (not inside words), stray rules
_MARKUP_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*{3,}(.+?)\*{3,}"), r"\1"),
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"(?<![\w*])\*([^*\n]+?)\*(?![\w*])"), r"\1"),
    (re.compile(r"\*{3,}"), ""),
)


def strip_json_fences(content: str) -> str:
    """Remove markdown code fences wrapping JSON output."""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        if first_newline != -1:
            content = content[first_newline + 1 :]
        if content.endswith("```"):
            content = content[:-3].rstrip()
    return content


def parse_json_object(content: str) -> dict:
    """Parse a JSON object from LLM output.

    Raises:
        ModelResponseParseError: Output is not valid JSON or not an object
    """
    try:
        parsed = json.loads(strip_json_fences(content))
    except json.JSONDecodeError as e:
        raise ModelResponseParseError(f"Model returned non-JSON output: {e}") from e
    if not isinstance(parsed, dict):
        raise ModelResponseParseError(f"Model returned JSON {type(parsed).__name__}, expected object")
    return parsed


def strip_markup(value: Any) -> Any:
    """Strip ***x***, **x**, *x* and stray *** from every string, recursively.

    Dict keys are left as they are; non-string scalars pass through.
    """
    if isinstance(value, str):
        for pattern, replacement in _MARKUP_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, list):
        return [strip_markup(v) for v in value]
    if isinstance(value, dict):
        return {k: strip_markup(v) for k, v in value.items()}
    return value


async def enqueue_deferred_draft(redis: Any, idea_id: str, step_number: int, reason: str) -> None:
    """Queue a draft that could not be generated because of a quota limit.

    Non-blocking: logs and returns on Redis failure.
    """
    try:
        entry = json.dumps(
            {
                "idea_id": idea_id,
                "step_number": step_number,
                "reason": reason,
                "queued_at": datetime.datetime.now(datetime.UTC).isoformat(),
            }
        )
        await redis.rpush(DEFERRED_DRAFTS_KEY, entry)
        logger.info("draft_queued_for_retry", idea_id=idea_id, step=step_number)
    except Exception as e:
        logger.warning(
            "draft_enqueue_failed", idea_id=idea_id, step=step_number, error=str(e), error_type=type(e).__name__
        )


async def pop_deferred_drafts(redis: Any, limit: int) -> list[dict]:
    """Pop up to ``limit`` queued drafts, oldest first. Malformed entries are dropped."""
    entries: list[dict] = []
    for _ in range(limit):
        raw = await redis.lpop(DEFERRED_DRAFTS_KEY)
        if raw is None:
            break
        try:
            entry = json.loads(raw)
            entries.append({"idea_id": str(entry["idea_id"]), "step_number": int(entry["step_number"])})
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("deferred_draft_malformed", raw=str(raw)[:200], error=str(e))
    return entries
