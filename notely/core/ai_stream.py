"""Server side of the note-generation event stream.

Yields SSE frames in a fixed order:
thinking(analyzing) → thinking(structuring) → thinking(generating) → chunk* →
thinking(finalizing) → complete, or a single ``error`` frame that ends the
stream.
"""

import asyncio
import json
from collections.abc import AsyncGenerator

from pydantic import BaseModel

from notely.chains.generate_note import NOTE_SYSTEM_PROMPT, build_note_prompt, normalize_note
from notely.core.ai_client import AIProviderError, ModelFallbackClient
from notely.core.json_extract import InvalidResponseFormatError, extract_json_object
from notely.core.logging import get_logger
from notely.core.schemas_ai import STEP_MESSAGES, ChunkEvent, CompleteEvent, ErrorEvent, ThinkingEvent

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _sse_event(event: BaseModel) -> str:
    """Format an event model as an SSE data line."""
    return f"data: {json.dumps(event.model_dump(mode='json'))}\n\n"


def _thinking(step: str) -> str:
    return _sse_event(ThinkingEvent(step=step, message=STEP_MESSAGES[step]))


async def stream_note_generation(
    ai: ModelFallbackClient,
    prompt: str,
    step_delay: float = 0.0,
) -> AsyncGenerator[str, None]:
    """Generate a note from ``prompt`` as SSE frames.

    Streaming failures before the first chunk fall back to a single
    non-streaming completion delivered as one chunk. Nothing is persisted.
    """
    user_prompt = build_note_prompt(prompt)

    try:
        yield _thinking("analyzing")
        await asyncio.sleep(step_delay)

        yield _thinking("structuring")
        model = await ai.select_model()
        await asyncio.sleep(step_delay)

        yield _thinking("generating")
        buffer = ""
        try:
            async for text in ai.stream(NOTE_SYSTEM_PROMPT, user_prompt, model):
                buffer += text
                yield _sse_event(ChunkEvent(content=text))
        except AIProviderError as e:
            if buffer:
                raise
            logger.warning(f"Streaming from {model} failed, falling back to completion: {e}")
            buffer = await ai.complete(NOTE_SYSTEM_PROMPT, user_prompt)
            yield _sse_event(ChunkEvent(content=buffer))

        yield _thinking("finalizing")
        note = normalize_note(extract_json_object(buffer))
        logger.info(f"Generated note '{note.title}' with {len(note.sections)} sections via {model}")
        yield _sse_event(CompleteEvent(data=note))

    except InvalidResponseFormatError as e:
        logger.warning(f"Generated note was not valid JSON: {e}")
        yield _sse_event(ErrorEvent(message=str(e)))
    except AIProviderError as e:
        logger.error(f"Note generation failed: {e}")
        yield _sse_event(ErrorEvent(message=str(e)))
    except Exception as e:
        logger.error(f"Note generation stream error: {e}", exc_info=True)
        yield _sse_event(ErrorEvent(message="Failed to generate note"))
