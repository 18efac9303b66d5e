"""Chat-completions client used to turn transcripts into summaries."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import openai
from openai import AsyncOpenAI

from app.core.config import settings
from app.services.summary_lengths import LENGTH_PROFILES, SummaryLength
from app.services.template_renderer import render_summary_prompt

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("rate limit", "rate-limit", "ratelimit", "quota", "credits", "too many requests")
_AUTH_CODES = {401, 429, "401", "429"}


class SummaryError(RuntimeError):
    """Base error for summary generation."""


class ApiKeyError(SummaryError):
    """Raised when the API key is missing, rejected or rate-limited."""


class MalformedSummaryResponse(SummaryError):
    """Raised when the completion payload lacks the expected fields."""


class SummaryTransportError(SummaryError):
    """Raised when the completion request itself failed."""


def resolve_api_key(user_api_key: str | None) -> str | None:
    """A user-supplied key takes precedence over the configured default."""

    return user_api_key or settings.openrouter_api_key


@lru_cache(maxsize=8)
def _get_client(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=api_key,
        base_url=settings.openrouter_base_url,
        max_retries=0,
        timeout=settings.http_timeout_seconds * 4,
        default_headers={"HTTP-Referer": settings.app_referer, "X-Title": settings.app_title},
    )


def build_summary_request(
    transcript: str,
    length: SummaryLength,
    *,
    min_words: int | None = None,
    emphatic: bool = False,
    temperature: float | None = None,
) -> dict[str, Any]:
    """Build the chat-completions payload for ``transcript`` at ``length``."""

    return {
        "model": settings.openrouter_model,
        "messages": [
            {"role": "system", "content": render_summary_prompt(length, min_words=min_words, emphatic=emphatic)},
            {"role": "user", "content": transcript},
        ],
        "temperature": settings.summary_temperature if temperature is None else temperature,
        "max_tokens": LENGTH_PROFILES[length].max_tokens,
        "top_p": settings.summary_top_p,
    }


def _is_quota_error(error: Any) -> bool:
    if isinstance(error, dict):
        code = error.get("code")
        if isinstance(code, (int, str)) and code in _AUTH_CODES:
            return True
        message = str(error.get("message") or "")
    else:
        message = str(error or "")
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def parse_completion(payload: Any) -> str:
    """Extract the summary text from a chat-completions JSON body."""

    if not isinstance(payload, dict):
        raise MalformedSummaryResponse("Completion response is not a JSON object")

    error = payload.get("error")
    if error:
        if _is_quota_error(error):
            raise ApiKeyError(_error_message(error))
        raise SummaryTransportError(_error_message(error))

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedSummaryResponse("Completion response has no choices")

    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise MalformedSummaryResponse("Completion choice has no message")

    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        raise MalformedSummaryResponse("Completion message has no content")

    return content.strip()


async def request_summary(payload: dict[str, Any], *, api_key: str | None, client: Any = None) -> str:
    """Send ``payload`` to the completions endpoint and return the summary text."""

    if client is None:
        if not api_key:
            raise ApiKeyError("No OpenRouter API key configured")
        client = _get_client(api_key)

    try:
        raw = await client.chat.completions.with_raw_response.create(**payload)
    except (openai.AuthenticationError, openai.RateLimitError) as exc:
        raise ApiKeyError(exc.message) from exc
    except openai.APIStatusError as exc:
        logger.warning("Completion request rejected", extra={"status_code": exc.status_code})
        raise SummaryTransportError(f"OpenRouter API returned {exc.status_code}: {exc.message}") from exc
    except openai.APIConnectionError as exc:
        raise SummaryTransportError("Unable to reach OpenRouter API") from exc

    try:
        body = raw.http_response.json()
    except ValueError as exc:
        raise MalformedSummaryResponse("Completion response is not valid JSON") from exc

    return parse_completion(body)


async def validate_api_key(api_key: str, *, client: Any = None) -> bool:
    """Return True when ``api_key`` can complete a minimal request."""

    payload = {
        "model": settings.openrouter_model,
        "messages": [{"role": "user", "content": "Hello"}],
        "max_tokens": 1,
    }
    try:
        await request_summary(payload, api_key=api_key, client=client)
    except MalformedSummaryResponse:
        # A one-token reply may legitimately come back empty.
        return True
    except SummaryError as exc:
        logger.info("API key validation failed", extra={"error": str(exc)})
        return False
    return True


__all__ = [
    "ApiKeyError",
    "MalformedSummaryResponse",
    "SummaryError",
    "SummaryTransportError",
    "build_summary_request",
    "parse_completion",
    "request_summary",
    "resolve_api_key",
    "validate_api_key",
]
