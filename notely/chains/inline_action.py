"""Contextual, reversible rewrites applied to a selected span of text."""

from notely.core.ai_client import ModelFallbackClient

_SYSTEM_PROMPT = "You are a helpful writing assistant."

INLINE_INSTRUCTIONS = {
    "simplify": "Rewrite this in simpler, clearer language.",
    "expand": "Expand this with more detail, without adding new topics.",
    "example": "Add a short real-world example to explain this.",
}


def build_inline_prompt(action: str, text: str) -> str:
    return f'''
{INLINE_INSTRUCTIONS[action]}

Rules:
- Keep tone neutral
- Do not add emojis
- Do not change meaning
- Output only the rewritten text
- No markdown formatting
- No headings

Text:
"""
{text}
"""
'''


async def apply_inline_action(ai: ModelFallbackClient, action: str, text: str) -> str:
    """Run one inline action and return the rewritten text."""
    result = await ai.complete(_SYSTEM_PROMPT, build_inline_prompt(action, text))
    return result.strip()
