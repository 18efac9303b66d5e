"""FastAPI app entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.db.init_db import init_models
from app.db.session import engine
from app.routers import summaries, transcript


def create_app() -> FastAPI:
    """Build FastAPI application."""

    app = FastAPI(title="Snip", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(transcript.router)
    app.include_router(summaries.router)

    @app.on_event("startup")
    async def _startup() -> None:
        await init_models(engine)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
