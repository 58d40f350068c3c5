"""Transcript endpoints: caption fetch, sectioning, summary and Markdown export."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from notely.chains.detect_sections import detect_sections
from notely.chains.summarize_transcript import summarize_transcript
from notely.core.ai_client import (
    AIProviderError,
    ModelFallbackClient,
    get_ai_client,
    get_ai_client_with_server_fallback,
)
from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.config import Settings, get_settings
from notely.core.json_extract import InvalidResponseFormatError
from notely.core.logging import get_logger
from notely.core.markdown_export import to_markdown
from notely.core.schemas_sections import (
    ExportMarkdownRequest,
    SectionDetectionRequest,
    SectionDetectionResponse,
    SummaryRequest,
    SummaryResponse,
    TranscriptRequest,
    TranscriptResponse,
)
from notely.core.transcript import clean_transcript, extract_video_id
from notely.services.youtube_transcripts import (
    CaptionsNotFoundError,
    TranscriptFetchError,
    YouTubeTranscriptService,
    get_transcript_service,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post("/transcript", response_model=TranscriptResponse)
async def fetch_transcript(
    request: TranscriptRequest,
    auth: AuthContext = Depends(require_auth),
    service: YouTubeTranscriptService = Depends(get_transcript_service),
) -> TranscriptResponse:
    """Fetch captions for a YouTube URL as a cleaned transcript plus timestamped lines."""
    video_id = extract_video_id(request.url)
    if not video_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL")

    try:
        subtitles = await service.fetch_subtitles(video_id)
    except CaptionsNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TranscriptFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return TranscriptResponse(
        transcript=clean_transcript(subtitles),
        video_id=video_id,
        subtitles=subtitles,
    )


@router.post("/sections", response_model=SectionDetectionResponse)
async def sections(
    request: SectionDetectionRequest,
    ai: ModelFallbackClient = Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> SectionDetectionResponse:
    """Split a transcript (or timestamped captions) into titled sections."""
    transcript = clean_transcript([request.transcript]) if request.transcript else None
    size = len(transcript or "") + sum(len(s.text) for s in request.subtitles or [])
    if size > settings.MAX_TRANSCRIPT_CHARS:
        raise HTTPException(
            status_code=422,
            detail=f"Transcript exceeds {settings.MAX_TRANSCRIPT_CHARS} characters",
        )

    try:
        return await detect_sections(ai, transcript=transcript, subtitles=request.subtitles)
    except (AIProviderError, InvalidResponseFormatError) as e:
        logger.error(f"Section detection failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/summary", response_model=SummaryResponse)
async def summary(
    request: SummaryRequest,
    ai: ModelFallbackClient = Depends(get_ai_client_with_server_fallback),
    settings: Settings = Depends(get_settings),
) -> SummaryResponse:
    """Plain-prose summary of a transcript."""
    if len(request.transcript) > settings.MAX_TRANSCRIPT_CHARS:
        raise HTTPException(
            status_code=422,
            detail=f"Transcript exceeds {settings.MAX_TRANSCRIPT_CHARS} characters",
        )
    try:
        text = await summarize_transcript(ai, request.transcript)
    except AIProviderError as e:
        logger.error(f"Summary failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return SummaryResponse(summary=text)


@router.post("/export/markdown")
async def export_markdown(request: ExportMarkdownRequest) -> Response:
    """Download sections as a Markdown file."""
    return Response(
        content=to_markdown(request.sections),
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="notes.md"'},
    )
