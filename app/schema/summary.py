"""Pydantic models for summary endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.services.summary_lengths import SummaryLength


class SummaryCreateRequest(BaseModel):
    """Inbound payload asking for a video summary."""

    url: str = Field(..., min_length=1, description="YouTube watch, short or embed URL")
    length: SummaryLength = SummaryLength.SHORT


class SummaryResponse(BaseModel):
    video_id: str
    length: SummaryLength
    summary: str
    word_count: int
    cached: bool


class AvailableLengthsResponse(BaseModel):
    video_id: str
    lengths: list[SummaryLength]


class ApiKeyRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


class ApiKeyStatus(BaseModel):
    has_user_key: bool
