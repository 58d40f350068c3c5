"""Free-text note generation.

The model returns one JSON object with title, overview content, tags and
sections; ``normalize_note`` fills gaps so callers always get a complete
``GeneratedNote``.
"""

import time
from typing import Any

from notely.core.ai_client import ModelFallbackClient
from notely.core.json_extract import extract_json_object
from notely.core.schemas_ai import GeneratedNote, GeneratedSection

NOTE_SYSTEM_PROMPT = """You are Notely AI, an expert note-taking assistant. You create well-structured, comprehensive notes that are:
- Clear and scannable
- Actionable with specific details
- Organized logically
- Professional yet approachable

You always respond with valid JSON only, no markdown code blocks or extra text."""

DEFAULT_TITLE = "Generated Note"


def build_note_prompt(user_prompt: str) -> str:
    return f"""Create a comprehensive note based on this request:

"{user_prompt}"

Respond with this exact JSON structure:
{{
  "title": "Clear, specific title (max 60 chars)",
  "content": "Overview paragraph summarizing the topic (2-4 sentences)",
  "tags": ["tag1", "tag2", "tag3"],
  "sections": [
    {{
      "title": "Section Title",
      "summary": "Detailed explanation (2-4 sentences)",
      "bullets": ["Specific point 1", "Specific point 2", "Specific point 3"]
    }}
  ]
}}

Requirements:
1. Title: Descriptive, not generic (e.g., "React Hooks Best Practices" not "Notes")
2. Content: Provide context and overview
3. Sections: 2-4 sections, each with clear focus
4. Bullets: 3-5 actionable, specific points per section
5. Tags: 2-4 lowercase keywords
6. Be comprehensive but concise

Return ONLY valid JSON."""


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_note(payload: dict[str, Any], timestamp_ms: int | None = None) -> GeneratedNote:
    """Coerce a loosely shaped model payload into a ``GeneratedNote``."""
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)

    raw_sections = payload.get("sections")
    sections = []
    for i, raw in enumerate(raw_sections if isinstance(raw_sections, list) else []):
        if not isinstance(raw, dict):
            continue
        sections.append(
            GeneratedSection(
                id=f"section-{i}-{ts}",
                title=_text(raw.get("title")) or f"Section {i + 1}",
                summary=_text(raw.get("summary")),
                bullets=_strings(raw.get("bullets")),
            )
        )

    return GeneratedNote(
        title=_text(payload.get("title")) or DEFAULT_TITLE,
        content=_text(payload.get("content")),
        tags=[t.lower() for t in _strings(payload.get("tags"))],
        sections=sections,
    )


async def generate_note(ai: ModelFallbackClient, prompt: str) -> GeneratedNote:
    """Non-streaming note generation."""
    raw = await ai.complete(NOTE_SYSTEM_PROMPT, build_note_prompt(prompt))
    return normalize_note(extract_json_object(raw))
