"""Conversational assistant for refining notes."""

from notely.core.ai_client import ModelFallbackClient
from notely.core.schemas_ai import ChatMessage

DEFAULT_SYSTEM_PROMPT = "You are Notely AI, a helpful note-taking assistant."

# Most recent turns kept in the prompt
MAX_HISTORY = 20


def build_conversation(messages: list[ChatMessage]) -> str:
    """Flatten chat history into a single prompt."""
    lines = [
        f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}"
        for m in messages[-MAX_HISTORY:]
        if m.content.strip()
    ]
    return "\n\n".join(lines)


async def assistant_reply(
    ai: ModelFallbackClient,
    messages: list[ChatMessage],
    context: str | None = None,
) -> str:
    system = f"You are Notely AI. Context: {context}" if context else DEFAULT_SYSTEM_PROMPT
    reply = await ai.complete(system, build_conversation(messages))
    return reply.strip()
