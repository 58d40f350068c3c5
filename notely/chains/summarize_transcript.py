"""Plain-prose summary of a video transcript."""

from notely.core.ai_client import ModelFallbackClient

_SYSTEM_PROMPT = "You summarize video transcripts accurately."


def build_summary_prompt(transcript: str) -> str:
    return f'''You are given a transcript of a YouTube video.

Task:
- Summarize the content in clear, simple English
- Keep it concise
- Do not add extra knowledge
- Do not invent details

Transcript:
"""
{transcript}
"""
'''


async def summarize_transcript(ai: ModelFallbackClient, transcript: str) -> str:
    summary = await ai.complete(_SYSTEM_PROMPT, build_summary_prompt(transcript))
    return summary.strip()
