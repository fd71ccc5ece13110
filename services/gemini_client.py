"""
Google Gemini client construction and blocking-call helpers.

The API key is injected at construction time; builders receive a ready
client instead of looking credentials up on every call.
"""

import asyncio
import logging
from importlib import metadata as importlib_metadata
from typing import Callable, Optional, TypeVar

from services.errors import MissingCredentialError, ModelCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 120


def _package_version(pkg_name: str) -> str:
    try:
        return importlib_metadata.version(pkg_name)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def create_gemini_client(api_key: Optional[str]) -> "genai.Client":  # type: ignore # noqa: F821
    """Create a ``google.genai.Client`` or raise MissingCredentialError."""
    if not api_key or not api_key.strip():
        raise MissingCredentialError(
            "Google Gemini API key is not configured. Set GOOGLE_API_KEY in .env"
        )

    from google import genai

    client = genai.Client(api_key=api_key.strip())
    logger.info("Google Gemini client initialized (google-genai %s)", _package_version("google-genai"))
    return client


async def run_model_call(
    call: Callable[[], T],
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    description: str = "Gemini call",
) -> T:
    """
    Run a blocking SDK call in a worker thread with a timeout.

    Any failure (timeout, HTTP error, SDK error) is re-raised as ModelCallError.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(call), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("%s timed out after %ss", description, timeout)
        raise ModelCallError(f"{description} timed out after {timeout}s") from exc
    except Exception as exc:
        logger.warning("%s failed: %s", description, exc)
        raise ModelCallError(f"{description} failed: {exc}") from exc
