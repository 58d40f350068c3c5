"""Regenerate a single section from the full transcript.

Surgical: only the given section is rewritten, other sections keep their edits.
"""

import json

from notely.core.ai_client import ModelFallbackClient
from notely.core.json_extract import parse_model_json
from notely.core.schemas_sections import LanguageVariant

_SYSTEM_PROMPT = "You are a note-taking assistant. You always respond with valid JSON only."


def build_regenerate_prompt(section: LanguageVariant, transcript: str) -> str:
    return f'''
You are regenerating ONE section of notes from a YouTube video.

Rules:
- Focus ONLY on this section's topic
- Do NOT introduce new topics
- Improve clarity and structure
- Keep it concise
- Return ONLY valid JSON
- Do NOT include explanations

Output format:
{{
  "title": string,
  "summary": string,
  "bullets": string[]
}}

Current section:
{json.dumps(section.model_dump(), indent=2, ensure_ascii=False)}

Full transcript (for context):
"""
{transcript}
"""
'''


async def regenerate_section(
    ai: ModelFallbackClient,
    section: LanguageVariant,
    transcript: str,
) -> LanguageVariant:
    """Return a fresh English variant for ``section``."""
    raw = await ai.complete(_SYSTEM_PROMPT, build_regenerate_prompt(section, transcript))
    return parse_model_json(raw, LanguageVariant)
