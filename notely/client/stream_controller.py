"""Client side of the note-generation event stream.

State machine::

    idle → connecting → thinking → streaming → complete
              └──────────┴───────────┴──→ error
    cancel(): any in-progress state → idle

``generate`` never raises for transport, protocol or provider problems; it
returns ``None`` and leaves the reason in ``error`` / ``error_code``.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum

import httpx
from pydantic import TypeAdapter, ValidationError

from notely.client.api_client import NotelyAPIError, NotelyClient
from notely.core.json_extract import InvalidResponseFormatError, extract_json_object
from notely.core.logging import get_logger
from notely.core.schemas_ai import (
    THINKING_STEPS,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    GeneratedNote,
    StreamEvent,
    ThinkingEvent,
)

logger = get_logger(__name__)

GENERATE_STREAM_PATH = "/api/ai/generate-note/stream"

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    THINKING = "thinking"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"


class StepStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class ThinkingStep:
    id: str
    message: str = ""
    status: StepStatus = StepStatus.PENDING


def default_steps() -> list[ThinkingStep]:
    """Every step pending, with the message the server sends for it."""
    return [ThinkingStep(step_id, message) for step_id, message in THINKING_STEPS]


class StreamProtocolError(Exception):
    """The server sent something the controller cannot interpret."""


class AIStreamController:
    """Drives one note-generation stream at a time."""

    def __init__(self, client: NotelyClient, path: str = GENERATE_STREAM_PATH):
        self.client = client
        self.path = path
        self._task: asyncio.Task | None = None
        self._aborted: set[asyncio.Future] = set()
        self.reset()

    def reset(self) -> None:
        """Abort any running generation, return to ``idle`` and clear all output."""
        self.cancel()
        self.state = StreamState.IDLE
        self.steps = default_steps()
        self.buffer = ""
        self.result: GeneratedNote | None = None
        self.error: str | None = None
        self.error_code: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.state in (StreamState.CONNECTING, StreamState.THINKING, StreamState.STREAMING)

    def cancel(self) -> None:
        """Abort the running generation; ``generate`` then returns ``None``.

        Steps go back to pending. The buffer is kept until the next ``reset``.
        """
        task = self._task
        if task is not None and not task.done():
            self._aborted.add(task)
            task.cancel()
            self.state = StreamState.IDLE
            self.steps = default_steps()

    async def generate(self, prompt: str) -> GeneratedNote | None:
        """Run one generation and return the note, or ``None`` on cancel or error."""
        self.reset()
        self.state = StreamState.CONNECTING

        task = asyncio.ensure_future(self._consume(prompt))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._aborted:
                raise
            logger.debug("Generation cancelled by caller")
            if self._task is task:
                self.state = StreamState.IDLE
            return None
        except NotelyAPIError as e:
            self._fail(e.message, e.code)
        except (StreamProtocolError, InvalidResponseFormatError) as e:
            self._fail(str(e))
        except httpx.HTTPError as e:
            logger.warning(f"Generation stream transport error: {e}")
            self._fail(f"Connection failed: {e}")
        finally:
            self._aborted.discard(task)
            if self._task is task:
                self._task = None
        return None

    def _fail(self, message: str, code: str | None = None) -> None:
        self.state = StreamState.ERROR
        self.error = message
        self.error_code = code

    async def _consume(self, prompt: str) -> GeneratedNote | None:
        async with self.client.open_stream(self.path, {"prompt": prompt}) as response:
            async for data in iter_sse_data(response):
                note = self._apply(parse_event(data))
                if note is not None or self.state == StreamState.ERROR:
                    return note

        # Stream ended without a terminal event
        if self.buffer:
            try:
                note = GeneratedNote.model_validate(extract_json_object(self.buffer))
            except ValidationError as e:
                raise InvalidResponseFormatError() from e
            self._complete(note)
            return note
        raise StreamProtocolError("Stream ended before the note was complete")

    def _apply(self, event: ThinkingEvent | ChunkEvent | CompleteEvent | ErrorEvent) -> GeneratedNote | None:
        if isinstance(event, ThinkingEvent):
            self._activate_step(event.step, event.message)
            self.state = StreamState.THINKING
        elif isinstance(event, ChunkEvent):
            self.buffer += event.content
            self.state = StreamState.STREAMING
        elif isinstance(event, CompleteEvent):
            self._complete(event.data)
            return event.data
        else:
            self._fail(event.message)
        return None

    def _activate_step(self, step_id: str, message: str) -> None:
        index = next((i for i, step in enumerate(self.steps) if step.id == step_id), None)
        if index is None:
            raise StreamProtocolError(f"Unknown thinking step: {step_id}")
        for step in self.steps[:index]:
            step.status = StepStatus.COMPLETED
        self.steps[index].status = StepStatus.ACTIVE
        self.steps[index].message = message

    def _complete(self, note: GeneratedNote) -> None:
        for step in self.steps:
            step.status = StepStatus.COMPLETED
        self.result = note
        self.state = StreamState.COMPLETE


def parse_event(data: str) -> ThinkingEvent | ChunkEvent | CompleteEvent | ErrorEvent:
    """Decode one SSE ``data`` payload into a typed event."""
    try:
        return _event_adapter.validate_python(json.loads(data))
    except json.JSONDecodeError as e:
        raise StreamProtocolError("Malformed stream event") from e
    except ValidationError as e:
        raise StreamProtocolError("Unexpected stream event") from e


async def iter_sse_data(response: httpx.Response):
    """Yield the ``data`` payload of each SSE event (multi-line data joined by newlines)."""
    lines: list[str] = []
    async for line in response.aiter_lines():
        if not line:
            if lines:
                yield "\n".join(lines)
                lines = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            lines.append(line[5:].removeprefix(" "))
    if lines:
        yield "\n".join(lines)
