"""Pydantic schemas for note sections, language variants and transcript sectioning."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from notely.core.schemas_common import CamelModel


class Language(str, Enum):
    """Languages a section can be rendered in."""

    ENGLISH = "english"
    HINDI = "hindi"
    HINGLISH = "hinglish"


class HinglishTone(str, Enum):
    """Tone presets for Hinglish renderings."""

    NEUTRAL = "neutral"
    CASUAL = "casual"
    INTERVIEW = "interview"


class LanguageVariant(BaseModel):
    """One rendering of a section in one language/tone.

    Immutable, bullets included: AI actions replace a variant wholesale and
    manual edits produce a patched copy. ``bullets`` is a tuple in Python and
    a JSON array on the wire.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    summary: str = ""
    bullets: tuple[str, ...] = ()


# ============================================================================
# Transform / regenerate
# ============================================================================


class TransformRequest(BaseModel):
    """Request to render a section in another language or tone."""

    target: Language
    tone: HinglishTone | None = None
    section: LanguageVariant

    @model_validator(mode="after")
    def _tone_only_for_hinglish(self) -> "TransformRequest":
        if self.target == Language.HINGLISH and self.tone is None:
            self.tone = HinglishTone.NEUTRAL
        elif self.target != Language.HINGLISH:
            self.tone = None
        return self


class RegenerateRequest(BaseModel):
    """Request to regenerate one section from the full transcript."""

    section: LanguageVariant
    transcript: str = Field(..., min_length=1)


# ============================================================================
# Transcript sectioning
# ============================================================================


class SubtitleChunk(BaseModel):
    """One timestamped caption line."""

    text: str
    start: float = 0.0
    dur: float = 0.0


class SectionDetectionRequest(BaseModel):
    """Either a cleaned transcript or raw timestamped subtitles."""

    transcript: str | None = None
    subtitles: list[SubtitleChunk] | None = None

    @model_validator(mode="after")
    def _require_input(self) -> "SectionDetectionRequest":
        if not (self.transcript and self.transcript.strip()) and not self.subtitles:
            raise ValueError("Transcript or subtitles required")
        return self


class DetectedSection(CamelModel):
    """A section produced by transcript sectioning."""

    title: str
    summary: str = ""
    bullets: list[str] = Field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None


class SectionDetectionResponse(CamelModel):
    """Sections plus whole-video summary and tags."""

    sections: list[DetectedSection]
    summary: str = ""
    tags: list[str] = Field(default_factory=list)


class TranscriptRequest(BaseModel):
    url: str = Field(..., min_length=1)


class TranscriptResponse(CamelModel):
    transcript: str
    video_id: str
    subtitles: list[SubtitleChunk]


class SummaryRequest(BaseModel):
    transcript: str = Field(..., min_length=1)


class SummaryResponse(BaseModel):
    summary: str


class ExportMarkdownRequest(BaseModel):
    sections: list[LanguageVariant]
