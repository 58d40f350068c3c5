"""AI endpoints: section transforms, inline actions, chat and note generation."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from notely.chains.assistant_chat import assistant_reply
from notely.chains.generate_note import generate_note
from notely.chains.inline_action import apply_inline_action
from notely.chains.regenerate_section import regenerate_section
from notely.chains.transform_section import transform_section
from notely.core.ai_client import AIProviderError, ModelFallbackClient, get_ai_client
from notely.core.ai_stream import SSE_HEADERS, stream_note_generation
from notely.core.config import Settings, get_settings
from notely.core.json_extract import InvalidResponseFormatError
from notely.core.logging import get_logger
from notely.core.schemas_ai import (
    ChatRequest,
    ChatResponse,
    GenerateNoteRequest,
    GenerateNoteResponse,
    InlineActionRequest,
    InlineActionResponse,
)
from notely.core.schemas_sections import LanguageVariant, RegenerateRequest, TransformRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/ai")


def _check_length(value: str, limit: int, label: str) -> None:
    if len(value) > limit:
        raise HTTPException(status_code=422, detail=f"{label} exceeds {limit} characters")


@router.post("/transform-language", response_model=LanguageVariant)
async def transform_language(
    request: TransformRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
) -> LanguageVariant:
    """Render a section in Hindi, Hinglish (with tone) or English."""
    try:
        return await transform_section(ai, request.section, request.target, request.tone)
    except (AIProviderError, InvalidResponseFormatError) as e:
        logger.error(f"Language transform to {request.target.value} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/regenerate-section", response_model=LanguageVariant)
async def regenerate(
    request: RegenerateRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> LanguageVariant:
    """Regenerate one section's English content from the full transcript."""
    _check_length(request.transcript, settings.MAX_TRANSCRIPT_CHARS, "Transcript")
    try:
        return await regenerate_section(ai, request.section, request.transcript)
    except (AIProviderError, InvalidResponseFormatError) as e:
        logger.error(f"Section regeneration failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/generate-note/stream")
async def generate_note_stream(
    request: GenerateNoteRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """
    Generate a note from a free-text prompt as Server-Sent Events.

    Events: thinking (analyzing, structuring, generating) → chunk* →
    thinking (finalizing) → complete, or a single error event.
    """
    _check_length(request.prompt, settings.MAX_PROMPT_CHARS, "Prompt")
    return StreamingResponse(
        stream_note_generation(ai, request.prompt, step_delay=settings.STREAM_STEP_DELAY_MS / 1000),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/generate-note", response_model=GenerateNoteResponse)
async def generate_note_once(
    request: GenerateNoteRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> GenerateNoteResponse:
    """Non-streaming note generation."""
    _check_length(request.prompt, settings.MAX_PROMPT_CHARS, "Prompt")
    try:
        note = await generate_note(ai, request.prompt)
    except (AIProviderError, InvalidResponseFormatError) as e:
        logger.error(f"Note generation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return GenerateNoteResponse(note=note)


@router.post("/inline", response_model=InlineActionResponse)
async def inline_action(
    request: InlineActionRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> InlineActionResponse:
    """Simplify, expand or add an example to a span of text."""
    _check_length(request.text, settings.MAX_PROMPT_CHARS, "Text")
    try:
        result = await apply_inline_action(ai, request.action, request.text)
    except AIProviderError as e:
        logger.error(f"Inline action '{request.action}' failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return InlineActionResponse(result=result)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
) -> ChatResponse:
    """Conversational assistant for refining notes."""
    try:
        message = await assistant_reply(ai, request.messages, request.context)
    except AIProviderError as e:
        logger.error(f"Chat failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return ChatResponse(message=message)
