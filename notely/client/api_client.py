"""Async HTTP client for the Notely API."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

import httpx

from notely.core.logging import get_logger
from notely.core.schemas_sections import (
    HinglishTone,
    Language,
    LanguageVariant,
    SectionDetectionResponse,
    SubtitleChunk,
)
from notely.core.schemas_sync import (
    SyncNote,
    SyncPullResponse,
    SyncPushResponse,
    SyncStatusResponse,
)

logger = get_logger(__name__)

API_KEY_REQUIRED = "API_KEY_REQUIRED"


class NotelyAPIError(Exception):
    """Non-2xx response from the Notely API."""

    def __init__(self, status_code: int, message: str, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class APIKeyRequired(NotelyAPIError):
    """The user must store a provider key before using AI features."""

    def __init__(self, status_code: int = 400):
        super().__init__(status_code, "An AI provider API key is required", code=API_KEY_REQUIRED)


def error_from_response(status_code: int, body: bytes) -> NotelyAPIError:
    """Build the error for a failed response from its ``{"error": ...}`` body."""
    message = None
    try:
        payload = json.loads(body)
        if isinstance(payload, dict):
            message = payload.get("error")
    except ValueError:
        pass

    if message == API_KEY_REQUIRED:
        return APIKeyRequired(status_code)
    return NotelyAPIError(status_code, str(message or f"Request failed with status {status_code}"))


class NotelyClient:
    """Bearer-authenticated wrapper over ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> NotelyClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, headers=self._headers, **kwargs)
        logger.debug(f"{method} {path} -> {response.status_code}")
        if response.is_error:
            raise error_from_response(response.status_code, response.content)
        return response.json()

    @asynccontextmanager
    async def open_stream(self, path: str, payload: dict) -> AsyncIterator[httpx.Response]:
        """POST ``payload`` and yield the open streaming response.

        Raises:
            NotelyAPIError: If the server answers with a non-2xx status
        """
        async with self._http.stream(
            "POST",
            path,
            json=payload,
            headers={**self._headers, "Accept": "text/event-stream"},
        ) as response:
            if response.is_error:
                raise error_from_response(response.status_code, await response.aread())
            yield response

    # ========================================================================
    # AI
    # ========================================================================

    async def transform_section(
        self,
        section: LanguageVariant,
        target: Language,
        tone: HinglishTone | None = None,
    ) -> LanguageVariant:
        payload: dict[str, Any] = {"target": target.value, "section": section.model_dump()}
        if tone is not None:
            payload["tone"] = tone.value
        data = await self._request("POST", "/api/ai/transform-language", json=payload)
        return LanguageVariant.model_validate(data)

    async def regenerate_section(self, section: LanguageVariant, transcript: str) -> LanguageVariant:
        data = await self._request(
            "POST",
            "/api/ai/regenerate-section",
            json={"section": section.model_dump(), "transcript": transcript},
        )
        return LanguageVariant.model_validate(data)

    async def detect_sections(
        self,
        transcript: str | None = None,
        subtitles: list[SubtitleChunk] | None = None,
    ) -> SectionDetectionResponse:
        payload: dict[str, Any] = {}
        if transcript:
            payload["transcript"] = transcript
        if subtitles:
            payload["subtitles"] = [s.model_dump() for s in subtitles]
        data = await self._request("POST", "/api/sections", json=payload)
        return SectionDetectionResponse.model_validate(data)

    async def inline_action(self, text: str, action: str) -> str:
        data = await self._request("POST", "/api/ai/inline", json={"text": text, "action": action})
        return data["result"]

    # ========================================================================
    # Sync
    # ========================================================================

    async def sync_status(self, last_sync_at: datetime | None = None) -> SyncStatusResponse:
        params = {"lastSyncAt": last_sync_at.isoformat()} if last_sync_at else None
        data = await self._request("GET", "/api/sync/status", params=params)
        return SyncStatusResponse.model_validate(data)

    async def sync_pull(
        self,
        last_sync_at: datetime | None = None,
        device_id: str | None = None,
    ) -> SyncPullResponse:
        payload = {
            "lastSyncAt": last_sync_at.isoformat() if last_sync_at else None,
            "deviceId": device_id,
        }
        data = await self._request("POST", "/api/sync/pull", json=payload)
        return SyncPullResponse.model_validate(data)

    async def sync_push(self, notes: list[SyncNote], device_id: str | None = None) -> SyncPushResponse:
        payload = {
            "notes": [note.model_dump(mode="json", by_alias=True) for note in notes],
            "deviceId": device_id,
        }
        data = await self._request("POST", "/api/sync/push", json=payload)
        return SyncPushResponse.model_validate(data)
