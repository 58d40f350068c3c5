"""Render a section in another language or Hinglish tone.

Keeps meaning and structure exactly; only the language changes.
"""

import json

from notely.core.ai_client import ModelFallbackClient
from notely.core.json_extract import parse_model_json
from notely.core.logging import get_logger
from notely.core.schemas_sections import HinglishTone, Language, LanguageVariant

logger = get_logger(__name__)

_SYSTEM_PROMPT = "You are a multilingual note editor. You always respond with valid JSON only."

_LANGUAGE_INSTRUCTIONS = {
    Language.ENGLISH: "Rewrite this in clear, simple English. Make it natural and readable.",
    Language.HINDI: (
        "Rewrite this in clear, natural Hindi. Use conversational tone, avoid overly formal "
        "language. Write in Devanagari script."
    ),
}

HINGLISH_TONES = {
    HinglishTone.NEUTRAL: (
        "Use balanced, clean Hinglish suitable for study notes. Mix Hindi and English naturally. "
        "Keep technical terms in English when appropriate. Example: 'Is section mein hum dekhte "
        "hain ki load balancer ka role kya hota hai aur kaise traffic distribute hota hai.'"
    ),
    HinglishTone.CASUAL: (
        "Use casual, conversational Hinglish as spoken informally. Friendly tone, slightly relaxed. "
        "Good for quick understanding. Example: 'Yahan pe basically load balancer ka role samajhte "
        "hain aur yeh traffic kaise handle karta hai.'"
    ),
    HinglishTone.INTERVIEW: (
        "Use professional Hinglish suitable for interview preparation. Emphasize key English "
        "technical terms. Clear Hindi connectors. Optimized for recall. Example: 'Is section mein "
        "load balancer ke core concepts explain kiye gaye hain jaise traffic distribution, "
        "availability, aur scalability.'"
    ),
}


def build_transform_prompt(
    target: Language,
    section: LanguageVariant,
    tone: HinglishTone | None = None,
) -> str:
    """Build the user prompt for a language transform."""
    if target == Language.HINGLISH:
        instruction = (
            "Rewrite this in natural Indian Hinglish. Do NOT translate word by word. "
            "Sound like an Indian speaker explaining to a friend.\n\n"
            f"Tone:\n{HINGLISH_TONES[tone or HinglishTone.NEUTRAL]}"
        )
    else:
        instruction = _LANGUAGE_INSTRUCTIONS[target]

    return f"""{instruction}

Rules:
- Keep meaning exactly the same
- Keep structure (title, summary, bullets)
- Do not add new points
- Do not remove information
- Return ONLY valid JSON
- No emojis
- No explanations outside JSON

Output format:
{{
  "title": string,
  "summary": string,
  "bullets": string[]
}}

Input section:
{json.dumps(section.model_dump(), indent=2, ensure_ascii=False)}
"""


async def transform_section(
    ai: ModelFallbackClient,
    section: LanguageVariant,
    target: Language,
    tone: HinglishTone | None = None,
) -> LanguageVariant:
    """
    Transform one section variant into the target language.

    Raises:
        AIProviderError: If every candidate model fails
        InvalidResponseFormatError: If the model output is not a section object
    """
    raw = await ai.complete(_SYSTEM_PROMPT, build_transform_prompt(target, section, tone))
    variant = parse_model_json(raw, LanguageVariant)
    logger.info(f"Transformed section '{section.title}' to {target.value}{f'/{tone.value}' if tone else ''}")
    return variant
