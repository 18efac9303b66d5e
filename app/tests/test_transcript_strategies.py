"""Tests for individual transcript transport routes."""

from __future__ import annotations

from types import SimpleNamespace
from urllib.parse import unquote

import httpx
import pytest

from app.services import transcript_strategies as strategies
from app.services.caption_tracks import NoCaptionTracksFound

PROXY = "https://proxy.test/?"
CAPTION_XML = "<transcript>" + "".join(f'<text start="{i}" dur="1">line {i}</text>' for i in range(10)) + "</transcript>"


@pytest.fixture(autouse=True)
def _fast_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(strategies.settings, "youtube_min_interval_ms", 0)
    monkeypatch.setattr(strategies.settings, "cors_proxy_url", PROXY)
    monkeypatch.setattr(strategies.settings, "transcript_backend_url", None)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _target(request: httpx.Request) -> str:
    url = str(request.url)
    assert url.startswith(PROXY)
    return unquote(url[len(PROXY):])


@pytest.mark.asyncio
async def test_scrape_watch_page_through_proxy() -> None:
    seen: list[str] = []
    page = (
        '<script>var x = {"captionTracks":[{"baseUrl":"https://www.youtube.com/api/timedtext?v=VID&lang=en",'
        '"languageCode":"en"}]};</script>'
    )

    def handler(request: httpx.Request) -> httpx.Response:
        target = _target(request)
        seen.append(target)
        if target.startswith("https://www.youtube.com/watch"):
            return httpx.Response(200, text=page)
        return httpx.Response(200, text=CAPTION_XML)

    async with _client(handler) as client:
        text = await strategies.scrape_watch_page(client, "VID")

    assert text.startswith("line 0 line 1")
    assert seen == [
        "https://www.youtube.com/watch?v=VID",
        "https://www.youtube.com/api/timedtext?v=VID&lang=en",
    ]


@pytest.mark.asyncio
async def test_scrape_watch_page_without_tracks_raises() -> None:
    async with _client(lambda request: httpx.Response(200, text="<html></html>")) as client:
        with pytest.raises(NoCaptionTracksFound):
            await strategies.scrape_watch_page(client, "VID", via_proxy=False)


@pytest.mark.asyncio
async def test_guess_timedtext_stops_at_first_plausible_response() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        target = _target(request)
        requested.append(target)
        if "lang=en-US" in target:
            return httpx.Response(200, text=CAPTION_XML)
        # Empty-captions stub: a successful but implausibly short body.
        return httpx.Response(200, text="<transcript/>")

    async with _client(handler) as client:
        text = await strategies.guess_timedtext(client, "VID")

    assert "line 9" in text
    assert requested == [
        "https://www.youtube.com/api/timedtext?lang=en&v=VID",
        "https://www.youtube.com/api/timedtext?lang=en-US&v=VID",
    ]


@pytest.mark.asyncio
async def test_guess_timedtext_rejects_short_bodies() -> None:
    async with _client(lambda request: httpx.Response(200, text="<transcript/>")) as client:
        with pytest.raises(strategies.EmptyTranscriptError):
            await strategies.guess_timedtext(client, "VID")


@pytest.mark.asyncio
async def test_fetch_from_backend_requires_configuration() -> None:
    async with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(strategies.StrategyUnavailable):
            await strategies.fetch_from_backend(client, "VID")


@pytest.mark.asyncio
async def test_fetch_from_backend_reads_transcript(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(strategies.settings, "transcript_backend_url", "https://snip.test/")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/transcript"
        assert request.url.params["videoId"] == "VID"
        return httpx.Response(200, json={"transcript": "backend words"})

    async with _client(handler) as client:
        assert await strategies.fetch_from_backend(client, "VID") == "backend words"


@pytest.mark.asyncio
async def test_fetch_from_backend_surfaces_error_message(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(strategies.settings, "transcript_backend_url", "https://snip.test")

    async with _client(lambda request: httpx.Response(404, json={"error": "No transcript available"})) as client:
        with pytest.raises(httpx.HTTPStatusError, match="No transcript available"):
            await strategies.fetch_from_backend(client, "VID")


@pytest.mark.asyncio
async def test_fetch_with_library_joins_snippets(monkeypatch: pytest.MonkeyPatch) -> None:
    class FakeApi:
        def fetch(self, video_id: str, languages: list[str]):
            assert video_id == "VID"
            assert languages == ["en"]
            return SimpleNamespace(
                snippets=[SimpleNamespace(text="Hello "), SimpleNamespace(text=""), SimpleNamespace(text="there\nfriend")]
            )

    monkeypatch.setattr(strategies, "YouTubeTranscriptApi", FakeApi)

    assert await strategies.fetch_with_library("VID") == "Hello there friend"


def test_proxied_encodes_target() -> None:
    assert strategies.proxied("https://www.youtube.com/watch?v=VID") == (
        PROXY + "https%3A%2F%2Fwww.youtube.com%2Fwatch%3Fv%3DVID"
    )


@pytest.mark.asyncio
async def test_guess_timedtext_moves_past_network_errors_and_bad_statuses() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        target = _target(request)
        requested.append(target)
        if "kind=asr" in target:
            return httpx.Response(200, text=CAPTION_XML)
        if "lang=en-US" in target:
            return httpx.Response(404, text="Not Found")
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        text = await strategies.guess_timedtext(client, "VID")

    assert text.startswith("line 0")
    assert requested == [
        "https://www.youtube.com/api/timedtext?lang=en&v=VID",
        "https://www.youtube.com/api/timedtext?lang=en-US&v=VID",
        "https://www.youtube.com/api/timedtext?lang=en&v=VID&kind=asr",
    ]
