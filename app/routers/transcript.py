"""Server-side transcript and video-info endpoints."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.core.deps import get_http_client
from app.schema.transcript import ErrorResponse, TranscriptResponse
from app.services.transcript_service import TranscriptUnavailableError, run_strategies, server_side_strategies
from app.services.video_info import VideoInfo, VideoInfoError, fetch_video_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcript"])

def _missing_video_id() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing videoId parameter"})


@router.get(
    "/transcript",
    response_model=TranscriptResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_transcript(
    video_id: str | None = Query(None, alias="videoId"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> TranscriptResponse | JSONResponse:
    if not video_id:
        return _missing_video_id()

    try:
        transcript = await run_strategies(video_id, server_side_strategies(client))
    except TranscriptUnavailableError as exc:
        if exc.is_content_failure:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "No transcript available for this video"},
            )
        logger.error("Transcript fetch failed", extra={"video_id": video_id, "error": str(exc.reason)})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc.reason) if exc.reason else "Failed to fetch transcript"},
        )

    return TranscriptResponse(transcript=transcript)


@router.get(
    "/video-info",
    response_model=VideoInfo,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_video_info(
    video_id: str | None = Query(None, alias="videoId"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> VideoInfo | JSONResponse:
    if not video_id:
        return _missing_video_id()

    try:
        return await fetch_video_info(client, video_id)
    except VideoInfoError:
        logger.exception("Error fetching video info", extra={"video_id": video_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch video info"},
        )
