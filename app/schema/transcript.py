"""Pydantic models for the transcript and video-info endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class TranscriptResponse(BaseModel):
    transcript: str


class ErrorResponse(BaseModel):
    error: str
    code: str | None = None
