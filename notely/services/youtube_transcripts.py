"""YouTube caption retrieval.

Wraps ``youtube-transcript-api``; its client is synchronous, so fetches run in
a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio

from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    TranscriptsDisabled,
    YouTubeTranscriptApi,
)

from notely.core.logging import get_logger
from notely.core.schemas_sections import SubtitleChunk

logger = get_logger(__name__)


class CaptionsNotFoundError(Exception):
    """The video has no usable captions."""


class TranscriptFetchError(Exception):
    """Captions could not be retrieved (network, blocked, unavailable video)."""


class YouTubeTranscriptService:
    """Fetches timestamped captions for a video."""

    def __init__(self, languages: list[str] | None = None, api: YouTubeTranscriptApi | None = None):
        self.languages = languages or ["en"]
        self._api = api or YouTubeTranscriptApi()

    def _fetch(self, video_id: str) -> list[SubtitleChunk]:
        fetched = self._api.fetch(video_id, languages=self.languages)
        return [
            SubtitleChunk(
                text=entry.get("text", ""),
                start=float(entry.get("start") or 0),
                dur=float(entry.get("duration") or 0),
            )
            for entry in fetched.to_raw_data()
        ]

    async def fetch_subtitles(self, video_id: str) -> list[SubtitleChunk]:
        """
        Fetch captions for ``video_id``.

        Raises:
            CaptionsNotFoundError: If the video has no captions in the requested languages
            TranscriptFetchError: For any other retrieval failure
        """
        try:
            subtitles = await asyncio.to_thread(self._fetch, video_id)
        except (NoTranscriptFound, TranscriptsDisabled) as e:
            raise CaptionsNotFoundError("No captions found") from e
        except CouldNotRetrieveTranscript as e:
            logger.warning(f"Transcript fetch failed for {video_id}: {e}")
            raise TranscriptFetchError("Failed to extract transcript") from e

        if not subtitles:
            raise CaptionsNotFoundError("No captions found")

        logger.info(f"Fetched {len(subtitles)} caption lines for {video_id}")
        return subtitles


def get_transcript_service() -> YouTubeTranscriptService:
    """FastAPI dependency."""
    return YouTubeTranscriptService()
