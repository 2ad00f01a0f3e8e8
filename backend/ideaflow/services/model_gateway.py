"""Model Invocation Gateway: one structured-output call to the generative backend.

Architecture:
- ModelGateway protocol so the draft pipeline can be tested without network calls
- AnthropicGateway: direct anthropic.AsyncAnthropic call, bounded by asyncio.wait_for
- Exactly one request per invoke(); no retries here
- Output must parse as a JSON object; every string is markup-stripped before return
- Quota / rate-limit failures become QuotaExceededError with a retry-after hint;
  every other failure propagates as-is
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import anthropic
import structlog

from ideaflow.agent.llm_helpers import parse_json_object, strip_markup
from ideaflow.core.config import get_settings
from ideaflow.core.exceptions import ModelTimeoutError, QuotaExceededError

logger = structlog.get_logger(__name__)

# Matched case-insensitively against "{error_type} {error_message}"
_QUOTA_PATTERNS: tuple[str, ...] = (
    "429",
    "quota",
    "rate_limit",
    "rate limit",
    "ratelimit",
    "resource_exhausted",
)


@dataclass(frozen=True)
class GenerationOptions:
    model: str
    temperature: float = 0.7
    max_output_tokens: int = 4096
    timeout_seconds: float = 60.0


@runtime_checkable
class ModelGateway(Protocol):
    """A single call to a generative backend returning structured data."""

    async def invoke(self, system_context: str, rendered_prompt: str, options: GenerationOptions) -> dict:
        """Send one request and return the markup-stripped JSON object.

        Raises:
            QuotaExceededError: Backend signalled quota or rate-limit exhaustion
            ModelResponseParseError: Output was not a JSON object
            ModelTimeoutError: Call exceeded options.timeout_seconds
        """
        ...


def is_quota_error(exc: BaseException) -> bool:
    """True when an exception signals quota or rate-limit exhaustion."""
    if isinstance(exc, QuotaExceededError | anthropic.RateLimitError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    combined = f"{type(exc).__name__} {exc}".lower()
    return any(pattern in combined for pattern in _QUOTA_PATTERNS)


def retry_after_hint(exc: BaseException, default: int) -> int:
    """Seconds to wait before retrying, from the backend's retry-after header if present."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None:
        value = headers.get("retry-after")
        if value:
            try:
                return max(1, int(float(value)))
            except ValueError:
                pass
    return default


def classify_failure(exc: BaseException) -> BaseException:
    """Map a backend exception to the error the gateway raises."""
    if isinstance(exc, QuotaExceededError):
        return exc
    if is_quota_error(exc):
        settings = get_settings()
        return QuotaExceededError(retry_after=retry_after_hint(exc, settings.quota_retry_after_seconds))
    return exc


class AnthropicGateway:
    """ModelGateway backed by the Anthropic Messages API."""

    def __init__(self, client: Any | None = None):
        """Initialize with an optional pre-built client.

        Args:
            client: anthropic.AsyncAnthropic-compatible object. Built from
                settings.anthropic_api_key when omitted, with SDK retries disabled.
        """
        if client is None:
            # The SDK retries 429 and 5xx twice by default
            client = anthropic.AsyncAnthropic(api_key=get_settings().anthropic_api_key, max_retries=0)
        self.client = client

    async def invoke(self, system_context: str, rendered_prompt: str, options: GenerationOptions) -> dict:
        logger.info(
            "model_call_started",
            model=options.model,
            max_output_tokens=options.max_output_tokens,
            prompt_chars=len(rendered_prompt),
        )
        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=options.model,
                    system=system_context,
                    messages=[{"role": "user", "content": rendered_prompt}],
                    max_tokens=options.max_output_tokens,
                    temperature=options.temperature,
                ),
                timeout=options.timeout_seconds,
            )
        except TimeoutError as e:
            raise ModelTimeoutError(options.timeout_seconds) from e
        except Exception as e:
            mapped = classify_failure(e)
            if mapped is e:
                raise
            logger.warning("model_quota_exceeded", model=options.model, error=str(e), error_type=type(e).__name__)
            raise mapped from e

        text = "".join(getattr(block, "text", "") for block in response.content)
        logger.info(
            "model_call_finished",
            model=options.model,
            response_chars=len(text),
            stop_reason=getattr(response, "stop_reason", None),
        )
        return strip_markup(parse_json_object(text))
