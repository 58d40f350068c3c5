"""Tests for the async Notely API client."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from notely.client.api_client import (
    APIKeyRequired,
    NotelyAPIError,
    NotelyClient,
    error_from_response,
)
from notely.core.schemas_sections import HinglishTone, Language, LanguageVariant, SubtitleChunk

SECTION = LanguageVariant(title="Load balancers", summary="Spread traffic.", bullets=["Round robin"])


def _client(handler, token="jwt") -> NotelyClient:
    return NotelyClient("https://api.notely.test", token=token, transport=httpx.MockTransport(handler))


def test_error_from_response():
    assert isinstance(error_from_response(400, b'{"error": "API_KEY_REQUIRED"}'), APIKeyRequired)

    error = error_from_response(502, b'{"error": "Invalid response format"}')
    assert (error.status_code, error.message, error.code) == (502, "Invalid response format", None)

    assert error_from_response(500, b"<html>oops</html>").message == "Request failed with status 500"


@pytest.mark.asyncio
async def test_transform_section_sends_tone():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"title": "Load balancer kya hai", "summary": "", "bullets": []})

    async with _client(handler) as client:
        variant = await client.transform_section(SECTION, Language.HINGLISH, HinglishTone.CASUAL)

    assert variant.title == "Load balancer kya hai"
    assert seen["path"] == "/api/ai/transform-language"
    assert seen["auth"] == "Bearer jwt"
    assert seen["body"] == {"target": "hinglish", "tone": "casual", "section": SECTION.model_dump(mode="json")}


@pytest.mark.asyncio
async def test_missing_key_raises_api_key_required():
    async with _client(lambda request: httpx.Response(400, json={"error": "API_KEY_REQUIRED"})) as client:
        with pytest.raises(APIKeyRequired) as exc:
            await client.inline_action("text", "simplify")

    assert exc.value.code == "API_KEY_REQUIRED"


@pytest.mark.asyncio
async def test_inline_action_and_errors():
    async with _client(lambda request: httpx.Response(200, json={"result": "Simpler."})) as client:
        assert await client.inline_action("Complex text", "simplify") == "Simpler."

    async with _client(lambda request: httpx.Response(502, json={"error": "upstream"})) as client:
        with pytest.raises(NotelyAPIError, match="upstream"):
            await client.inline_action("Complex text", "simplify")


@pytest.mark.asyncio
async def test_detect_sections_with_subtitles():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "sections": [{"title": "Intro", "startTime": 0, "endTime": 30}],
                "summary": "Video.",
                "tags": ["youtube"],
            },
        )

    async with _client(handler) as client:
        result = await client.detect_sections(subtitles=[SubtitleChunk(text="hi", start=0, dur=2)])

    assert seen["body"] == {"subtitles": [{"text": "hi", "start": 0.0, "dur": 2.0}]}
    assert result.sections[0].end_time == 30
    assert result.tags == ["youtube"]


@pytest.mark.asyncio
async def test_sync_status_query_param():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={"totalNotes": 3, "notesSinceSync": 1, "serverTime": "2026-05-01T10:00:00+00:00"},
        )

    since = datetime(2026, 4, 1, tzinfo=timezone.utc)
    async with _client(handler, token=None) as client:
        status = await client.sync_status(since)

    assert seen["params"] == {"lastSyncAt": since.isoformat()}
    assert (status.total_notes, status.notes_since_sync) == (3, 1)
