import logging
from contextlib import asynccontextmanager
from typing import Any

from api.routes import analyze
from config import AppMode, Settings, get_settings
from fastapi import APIRouter, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

APP_VERSION = "1.0.0"
MAX_ECHOED_INPUT_CHARS = 400

settings = get_settings()


def _configure_logging(app_settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # Per-request chatter from the HTTP and Gemini client libraries.
    for noisy in ("httpx", "httpcore", "google_genai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


_configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Image Analyst %s starting (mode=%s)", APP_VERSION, settings.APP_MODE.value)
    logger.info(
        "Gemini models: analysis=%s image=%s timeout=%ss join_render_variants=%s",
        settings.ANALYSIS_MODEL,
        settings.IMAGE_MODEL,
        settings.API_TIMEOUT_SECONDS,
        settings.RENDER_JOIN_VARIANTS,
    )
    if not settings.save_enabled:
        logger.info("Saving to the spreadsheet endpoint is disabled")
    yield
    logger.info("Image Analyst stopped")


app = FastAPI(
    title="Image Analyst",
    description="Bilingual structured photo analysis and pose line-art rendering with Google Gemini",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
)


def _bounded(value: Any) -> Any:
    """
    Make a validation error detail JSON-safe.

    Details echo the offending input, which for ``/save`` can be a multi-MB
    base64 image or text with unpaired surrogates.
    """
    if isinstance(value, dict):
        return {str(key): _bounded(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_bounded(item) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value).encode("utf-8", errors="replace").decode("utf-8")
    if len(text) > MAX_ECHOED_INPUT_CHARS:
        return f"{text[:MAX_ECHOED_INPUT_CHARS]}…(truncated)"
    return text


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": _bounded(exc.errors())},
    )


if settings.APP_MODE == AppMode.DEV:
    from middleware import RequestLoggingMiddleware, configure_request_logging

    configure_request_logging(settings.LOG_LEVEL)
    app.add_middleware(RequestLoggingMiddleware)

# Added last so it wraps everything, including error responses.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(analyze.router)
app.include_router(api_v1)


@app.get("/")
async def root():
    return {"name": "Image Analyst API", "version": APP_VERSION, "docs": "/docs"}


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "mode": settings.APP_MODE.value,
        "ai_enabled": bool(settings.GOOGLE_API_KEY),
        "save_enabled": settings.save_enabled,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.APP_MODE == AppMode.DEV,
    )
