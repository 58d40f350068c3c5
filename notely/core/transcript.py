"""Transcript helpers: video id parsing, cleaning and timestamp formatting."""

import math
import re
from collections.abc import Iterable

from notely.core.schemas_sections import SubtitleChunk

_VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([^&\n?#/]+)"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]

_WHITESPACE = re.compile(r"\s+")


def extract_video_id(url: str) -> str | None:
    """Return the YouTube video id in a watch/short/embed URL or bare id."""
    url = url.strip()
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def clean_transcript(chunks: Iterable[SubtitleChunk | str]) -> str:
    """Join caption texts into one whitespace-normalized transcript."""
    texts = [(c if isinstance(c, str) else c.text).strip() for c in chunks]
    return _WHITESPACE.sub(" ", " ".join(texts)).strip()


def video_duration(subtitles: list[SubtitleChunk]) -> int:
    """Whole seconds covered by the captions (end of the last caption)."""
    if not subtitles:
        return 0
    last = subtitles[-1]
    return math.ceil(last.start + last.dur)


def format_subtitles(subtitles: list[SubtitleChunk]) -> str:
    """Render captions as ``[second] text`` lines."""
    return "\n".join(f"[{round(s.start)}] {s.text}" for s in subtitles)
