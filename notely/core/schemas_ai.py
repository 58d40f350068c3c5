"""Pydantic schemas for AI endpoints and the generation event stream."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from notely.core.schemas_sections import Language


class GenerateNoteRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class GeneratedSection(BaseModel):
    id: str
    title: str
    summary: str = ""
    bullets: list[str] = Field(default_factory=list)
    language: Language = Language.ENGLISH


class GeneratedNote(BaseModel):
    """Normalized note produced by free-text generation."""

    title: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    sections: list[GeneratedSection] = Field(default_factory=list)


class GenerateNoteResponse(BaseModel):
    note: GeneratedNote


class InlineActionRequest(BaseModel):
    text: str = Field(..., min_length=1)
    action: Literal["simplify", "expand", "example"]


class InlineActionResponse(BaseModel):
    result: str


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)
    context: str | None = None


class ChatResponse(BaseModel):
    message: str
    role: Literal["assistant"] = "assistant"


# ============================================================================
# Stream events
# ============================================================================


# Thinking steps in stream order, with the message shown for each
THINKING_STEPS: list[tuple[str, str]] = [
    ("analyzing", "Understanding your request..."),
    ("structuring", "Planning note structure..."),
    ("generating", "Writing content..."),
    ("finalizing", "Polishing your note..."),
]
STEP_MESSAGES = dict(THINKING_STEPS)


class ThinkingEvent(BaseModel):
    type: Literal["thinking"] = "thinking"
    step: str
    message: str


class ChunkEvent(BaseModel):
    type: Literal["chunk"] = "chunk"
    content: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    data: GeneratedNote


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[ThinkingEvent, ChunkEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]
