"""
Image payloads and upload validation.

Photos arrive either as multipart uploads (``/analyze``) or as data URLs
echoed back by the client (``/save``). Both end up as an ImagePayload: raw
bytes plus the MIME type the Gemini SDK and the save endpoint expect.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import NoReturn, Optional

from fastapi import HTTPException, status
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_DATA_URL_MIME_TYPE = "image/jpeg"
MAX_UPLOAD_SIZE_BYTES = 20 * 1024 * 1024
MIN_IMAGE_BYTES = 12
MIN_IMAGE_SIDE = 32
MAX_IMAGE_PIXELS = 40_000_000

# Magic-byte prefixes of the formats Gemini accepts as inline image parts.
# WEBP is matched separately: "RIFF" <size> "WEBP".
_MAGIC_PREFIXES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
)
SUPPORTED_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})

# Non-canonical names browsers and OS pickers send for the supported formats.
_MIME_SYNONYMS = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/jfif": "image/jpeg",
    "image/x-png": "image/png",
    "image/x-webp": "image/webp",
}

_DATA_URL_HEADER = re.compile(r"^data:(.*);base64,")


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes with their MIME type; pixel size is filled in once measured."""

    data: bytes
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_data_url(cls, value: str) -> "ImagePayload":
        """Decode ``data:<mime>;base64,<body>`` (or a bare base64 body)."""
        try:
            data = base64.b64decode(strip_data_url_header(value), validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Image is not valid base64 data")
        return cls(data=data, mime_type=data_url_mime_type(value))

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


def strip_data_url_header(value: str) -> str:
    value = value or ""
    _, comma, body = value.partition(",")
    return body if comma else value


def data_url_mime_type(value: str) -> str:
    match = _DATA_URL_HEADER.match(value or "")
    if match is None:
        return DEFAULT_DATA_URL_MIME_TYPE
    return match.group(1)


def normalize_image_mime_type(claimed_mime_type: str) -> str:
    """Lower-case, drop parameters and quotes, and map synonyms to canonical names."""
    cleaned = (claimed_mime_type or "").strip().strip("\"'")
    cleaned = cleaned.split(";", 1)[0].strip().lower()
    return _MIME_SYNONYMS.get(cleaned, cleaned)


def sniff_image_mime_type(content: bytes) -> Optional[str]:
    """Detect PNG, JPEG or WEBP from leading bytes; ``None`` for anything else."""
    for prefix, mime_type in _MAGIC_PREFIXES:
        if content.startswith(prefix):
            return mime_type
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


def read_image_dimensions(content: bytes) -> tuple[int, int]:
    """Decode *content* with Pillow and return ``(width, height)``."""
    with Image.open(BytesIO(content)) as image:
        return image.size


def measure_image(payload: ImagePayload) -> ImagePayload:
    if payload.width and payload.height:
        return payload
    width, height = read_image_dimensions(payload.data)
    return ImagePayload(data=payload.data, mime_type=payload.mime_type, width=width, height=height)


def _reject(detail: str) -> NoReturn:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_uploaded_image_payload(
    content: bytes,
    claimed_mime_type: Optional[str] = None,
    *,
    max_size_bytes: int = MAX_UPLOAD_SIZE_BYTES,
    min_side: int = MIN_IMAGE_SIDE,
    max_pixels: int = MAX_IMAGE_PIXELS,
) -> ImagePayload:
    """
    Check an uploaded photo and return it as a measured ImagePayload.

    The format is taken from the file's magic bytes, not from the client's
    Content-Type. Every rejection is an HTTP 400 with a readable detail.
    """
    if len(content) < MIN_IMAGE_BYTES:
        _reject("File too small to be a valid image")
    if len(content) > max_size_bytes:
        _reject(f"File too large. Maximum size is {max_size_bytes // (1024 * 1024)}MB")

    mime_type = sniff_image_mime_type(content)
    if mime_type not in SUPPORTED_MIME_TYPES:
        _reject("Invalid file type. Allowed: PNG, JPG, WEBP")

    claimed = normalize_image_mime_type(claimed_mime_type or "")
    if claimed in SUPPORTED_MIME_TYPES and claimed != mime_type:
        logger.info("Upload declared %s but contains %s", claimed, mime_type)

    try:
        width, height = read_image_dimensions(content)
    except Image.DecompressionBombError:
        _reject(f"Image is too large; the limit is {max_pixels} pixels.")
    except (UnidentifiedImageError, OSError, ValueError):
        _reject("Image could not be decoded; the file may be corrupted.")

    if min(width, height) < min_side:
        _reject(f"Image is too small ({width}x{height}); both sides must be at least {min_side}px.")
    if width * height > max_pixels:
        _reject(f"Image is too large ({width}x{height}); the limit is {max_pixels} pixels.")

    return ImagePayload(data=content, mime_type=mime_type, width=width, height=height)
