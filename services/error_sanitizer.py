"""Scrubbing of exception text before it is shown to API clients."""

import re
from typing import Optional

# Stack traces, source paths and home directories.
_INTERNAL_DETAIL = re.compile(
    r"traceback|\bfile\s+\".*?\.py\"|/home/|/users/|/root/|[a-z]:\\",
    re.IGNORECASE,
)
_GEMINI_API_KEY = re.compile(r"AIza[0-9A-Za-z_\-]{20,}")
_KEY_QUERY_PARAM = re.compile(r"([?&]key=)[^&\s]+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

DEFAULT_MAX_CHARS = 240


def sanitize_public_error_message(
    message: Optional[str],
    *,
    fallback: str = "Request failed.",
    max_chars: int = DEFAULT_MAX_CHARS,
) -> Optional[str]:
    """
    Return *message* in a form safe to show next to a failed stage.

    Gemini SDK and httpx errors may echo the request URL (including the API
    key), local file paths or a whole traceback. Messages exposing internals
    are replaced by *fallback*; keys are masked; long text is truncated.
    """
    if not message:
        return None

    text = message.encode("utf-8", errors="replace").decode("utf-8", errors="replace")
    text = _WHITESPACE.sub(" ", text).strip()
    if not text:
        return None
    if _INTERNAL_DETAIL.search(text):
        return fallback

    text = _KEY_QUERY_PARAM.sub(r"\1***", _GEMINI_API_KEY.sub("***", text))
    if len(text) > max_chars:
        return f"{text[:max_chars]}…"
    return text
