"""Summarise a YouTube video from the command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from app.core.config import settings
from app.services.storage import KeyValueStore, MemoryStore, SqlStore
from app.services.summary_cache import ApiKeyStore, SummaryCache
from app.services.summary_client import ApiKeyError, SummaryError
from app.services.summary_lengths import SummaryLength
from app.services.summary_service import VideoIdentificationError, summarize_video
from app.services.transcript_service import TranscriptUnavailableError


async def _open_store(memory: bool) -> KeyValueStore:
    if memory:
        return MemoryStore()

    from app.db.init_db import init_models
    from app.db.session import SessionLocal, engine

    await init_models(engine)
    return SqlStore(SessionLocal)


async def run(url: str, length: SummaryLength, *, memory: bool = False) -> int:
    store = await _open_store(memory)
    try:
        outcome = await summarize_video(url, length, cache=SummaryCache(store), key_store=ApiKeyStore(store))
    except VideoIdentificationError as exc:
        print(exc, file=sys.stderr)
        return 2
    except TranscriptUnavailableError as exc:
        print(exc, file=sys.stderr)
        return 3
    except ApiKeyError:
        print("API key is invalid or rate-limited. Set APP_OPENROUTER_API_KEY to your own OpenRouter key.", file=sys.stderr)
        return 4
    except SummaryError as exc:
        print(f"Failed to generate summary: {exc}", file=sys.stderr)
        return 5

    source = "cache" if outcome.cached else "fresh"
    print(f"[{outcome.video_id}] {outcome.length.value} summary, {outcome.word_count} words ({source})\n")
    print(outcome.summary)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("url", help="YouTube watch, short or embed URL")
    parser.add_argument("--length", choices=[length.value for length in SummaryLength], default=SummaryLength.SHORT.value)
    parser.add_argument("--memory", action="store_true", help="do not persist the summary cache")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return asyncio.run(run(args.url, SummaryLength(args.length), memory=args.memory))


if __name__ == "__main__":
    sys.exit(main())
