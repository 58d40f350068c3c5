"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notely.api import router as api_router
from notely.core.ai_client import AIProviderError, APIKeyRequiredError
from notely.core.config import get_settings
from notely.core.json_extract import InvalidResponseFormatError
from notely.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Notely API",
    description="Notes from YouTube transcripts and prompts with multilingual AI transforms",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error body is {"error": <message>}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(APIKeyRequiredError)
async def api_key_required_handler(request: Request, exc: APIKeyRequiredError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": APIKeyRequiredError.code})


@app.exception_handler(AIProviderError)
async def ai_provider_error_handler(request: Request, exc: AIProviderError) -> JSONResponse:
    logger.error(f"Unhandled AI provider error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(InvalidResponseFormatError)
async def invalid_response_handler(request: Request, exc: InvalidResponseFormatError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


app.include_router(api_router, prefix="/api")
