"""Split a video transcript into titled sections with timestamps.

Two prompt variants: a cleaned transcript (timestamps estimated from speech
pace) or raw captions with real ``[second]`` markers, which also yields a
whole-video summary and tags.
"""

from pydantic import ValidationError

from notely.core.ai_client import ModelFallbackClient
from notely.core.json_extract import (
    InvalidResponseFormatError,
    extract_json_array,
    extract_json_object,
    sanitize_model_text,
)
from notely.core.logging import get_logger
from notely.core.schemas_sections import SectionDetectionResponse, SubtitleChunk
from notely.core.transcript import format_subtitles, video_duration

logger = get_logger(__name__)

_SYSTEM_PROMPT = "You structure video transcripts into study notes. You always respond with valid JSON only."

ALWAYS_TAG = "youtube"


def build_transcript_prompt(transcript: str) -> str:
    return f'''You are given a cleaned transcript of a YouTube video.

Your task:
- Identify major topic changes
- Break the transcript into logical sections
- Each section must represent one clear idea
- Estimate timestamps for each section based on content flow

Rules:
- Return ONLY valid JSON
- Do NOT include explanations
- Do NOT add information not present in the transcript
- Be concise and factual
- Timestamps should be in seconds (integers)
- Estimate timestamps based on typical speech pace (~150 words/min)

JSON format:
{{
  "sections": [
    {{
      "title": string,
      "summary": string,
      "bullets": string[],
      "startTime": number,
      "endTime": number
    }}
  ]
}}

Transcript:
"""
{transcript}
"""
'''


def build_subtitles_prompt(subtitles: list[SubtitleChunk]) -> str:
    duration = video_duration(subtitles)
    return f"""Analyze this YouTube video transcript.

VIDEO DURATION: {duration} seconds

TRANSCRIPT (format: [second] text):
{format_subtitles(subtitles)}

INSTRUCTIONS:
1. Group the transcript into 3-6 logical sections based on topic changes
2. For each section, use the [second] value from the FIRST line of that section as startTime
3. endTime = startTime of next section (or {duration} for last section)
4. Include a "summary" field with 2-3 sentences summarizing the entire video
5. Include a "tags" array with 3-5 relevant topic tags (lowercase, single words or short phrases like "docker", "web-development", "machine-learning")

EXAMPLE: If section starts at "[32] docker containers..." then startTime = 32

Return ONLY this exact JSON structure (no other text):
{{
  "summary": "A 2-3 sentence summary of the entire video content.",
  "tags": ["topic1", "topic2", "topic3"],
  "sections": [
    {{
      "title": "Section Title",
      "summary": "Brief summary of this section",
      "bullets": ["key point 1", "key point 2"],
      "startTime": 0,
      "endTime": 32
    }}
  ]
}}

CRITICAL: Response MUST be a JSON object with "summary", "tags", and "sections" keys."""


def parse_detection_output(raw_output: str) -> SectionDetectionResponse:
    """
    Parse detection output in either the object or the legacy bare-array shape.

    Raises:
        InvalidResponseFormatError: If no sections can be recovered
    """
    text = sanitize_model_text(raw_output)
    if text.startswith("["):
        payload: dict = {"sections": extract_json_array(text)}
    else:
        payload = extract_json_object(text)
        if "sections" not in payload:
            raise InvalidResponseFormatError()

    try:
        result = SectionDetectionResponse.model_validate(payload)
    except ValidationError as e:
        raise InvalidResponseFormatError() from e

    tags = [t.strip().lower() for t in result.tags if t and t.strip()]
    if ALWAYS_TAG not in tags:
        tags.insert(0, ALWAYS_TAG)
    return result.model_copy(update={"tags": tags})


async def detect_sections(
    ai: ModelFallbackClient,
    transcript: str | None = None,
    subtitles: list[SubtitleChunk] | None = None,
) -> SectionDetectionResponse:
    """Section a transcript, preferring real caption timestamps when given."""
    if subtitles:
        prompt = build_subtitles_prompt(subtitles)
    elif transcript:
        prompt = build_transcript_prompt(transcript)
    else:
        raise ValueError("Transcript or subtitles required")

    raw = await ai.complete(_SYSTEM_PROMPT, prompt)
    result = parse_detection_output(raw)
    logger.info(f"Detected {len(result.sections)} sections (subtitles={bool(subtitles)})")
    return result
