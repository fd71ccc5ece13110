from functools import lru_cache

from config import Settings, get_settings
from fastapi import Depends, HTTPException, status
from services.analysis import AnalysisRequestBuilder
from services.errors import MissingCredentialError
from services.gemini_client import create_gemini_client
from services.render import RenderRequestBuilder
from services.session import AnalysisSession


@lru_cache()
def _cached_gemini_client(api_key: str) -> object:
    return create_gemini_client(api_key)


def get_gemini_client(settings: Settings = Depends(get_settings)) -> object:
    """Shared Gemini client; 503 when no API key is configured."""
    try:
        return _cached_gemini_client(settings.GOOGLE_API_KEY)
    except MissingCredentialError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.public_message,
        )


def get_analysis_builder(
    client: object = Depends(get_gemini_client),
    settings: Settings = Depends(get_settings),
) -> AnalysisRequestBuilder:
    return AnalysisRequestBuilder(
        client, settings.ANALYSIS_MODEL, timeout=settings.API_TIMEOUT_SECONDS
    )


def get_render_builder(
    client: object = Depends(get_gemini_client),
    settings: Settings = Depends(get_settings),
) -> RenderRequestBuilder:
    return RenderRequestBuilder(
        client, settings.IMAGE_MODEL, timeout=settings.API_TIMEOUT_SECONDS
    )


def get_analysis_session(
    analyzer: AnalysisRequestBuilder = Depends(get_analysis_builder),
    renderer: RenderRequestBuilder = Depends(get_render_builder),
    settings: Settings = Depends(get_settings),
) -> AnalysisSession:
    """A fresh session per request; nothing is shared between requests."""
    return AnalysisSession(
        analyzer, renderer, join_render_variants=settings.RENDER_JOIN_VARIANTS
    )
