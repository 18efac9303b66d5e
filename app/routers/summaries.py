"""Summary generation, cache inspection and API key management."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.core.deps import get_store
from app.schema.summary import (
    ApiKeyRequest,
    ApiKeyStatus,
    AvailableLengthsResponse,
    SummaryCreateRequest,
    SummaryResponse,
)
from app.schema.transcript import ErrorResponse
from app.services.storage import KeyValueStore
from app.services.summary_cache import ApiKeyStore, SummaryCache
from app.services.summary_client import (
    ApiKeyError,
    MalformedSummaryResponse,
    SummaryTransportError,
    validate_api_key,
)
from app.services.summary_service import VideoIdentificationError, summarize_video
from app.services.transcript_service import TranscriptUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["summaries"])

API_KEY_HINT = "API key is invalid or rate-limited. Please provide your own OpenRouter API key."


def _error(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    content = {"error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


@router.post(
    "/summaries",
    response_model=SummaryResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def create_summary(
    payload: SummaryCreateRequest,
    store: KeyValueStore = Depends(get_store),
) -> SummaryResponse | JSONResponse:
    try:
        outcome = await summarize_video(
            payload.url,
            payload.length,
            cache=SummaryCache(store),
            key_store=ApiKeyStore(store),
        )
    except VideoIdentificationError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "invalid_url")
    except TranscriptUnavailableError:
        return _error(
            status.HTTP_404_NOT_FOUND,
            "No transcript available for this video. Make sure the video exists and has captions available.",
            "no_transcript",
        )
    except ApiKeyError:
        return _error(status.HTTP_401_UNAUTHORIZED, API_KEY_HINT, "api_key")
    except MalformedSummaryResponse:
        logger.exception("Summary response malformed")
        return _error(status.HTTP_502_BAD_GATEWAY, "The summary service returned an unexpected response. Please try again.", "malformed")
    except SummaryTransportError as exc:
        logger.warning("Summary request failed", extra={"error": str(exc)})
        return _error(status.HTTP_502_BAD_GATEWAY, "Failed to generate summary. Please try again later.", "transport")

    return SummaryResponse(
        video_id=outcome.video_id,
        length=outcome.length,
        summary=outcome.summary,
        word_count=outcome.word_count,
        cached=outcome.cached,
    )


@router.get("/summaries/{video_id}/lengths", response_model=AvailableLengthsResponse)
async def list_cached_lengths(video_id: str, store: KeyValueStore = Depends(get_store)) -> AvailableLengthsResponse:
    lengths = await SummaryCache(store).list_available_lengths(video_id)
    return AvailableLengthsResponse(video_id=video_id, lengths=lengths)


@router.get("/api-key", response_model=ApiKeyStatus)
async def get_api_key_status(store: KeyValueStore = Depends(get_store)) -> ApiKeyStatus:
    return ApiKeyStatus(has_user_key=bool(await ApiKeyStore(store).get()))


@router.put("/api-key", response_model=ApiKeyStatus, responses={400: {"model": ErrorResponse}})
async def save_api_key(payload: ApiKeyRequest, store: KeyValueStore = Depends(get_store)) -> ApiKeyStatus | JSONResponse:
    api_key = payload.api_key.strip()
    if not await validate_api_key(api_key):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid API key. Please check and try again.", "api_key")

    await ApiKeyStore(store).save(api_key)
    return ApiKeyStatus(has_user_key=True)


@router.delete("/api-key", response_model=ApiKeyStatus)
async def clear_api_key(store: KeyValueStore = Depends(get_store)) -> ApiKeyStatus:
    await ApiKeyStore(store).clear()
    return ApiKeyStatus(has_user_key=False)
