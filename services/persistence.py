"""
Spreadsheet persistence for analysis results.

Projects the Japanese analysis and source images into the flat JSON object
the save endpoint (a Google Apps Script web app) expects, and posts it once.
There is no retry or queue: a failure is reported to the caller and nothing
else happens.
"""

import logging
from typing import Dict, Optional

import httpx

from schemas.analysis import BilingualAnalysis, LanguageVariant
from schemas.save import SaveOutcome, SaveRequest
from services.errors import PersistenceFailure
from services.image_validation import ImagePayload

logger = logging.getLogger(__name__)

KEYWORD_SEPARATOR = ","
DEFAULT_SAVE_TIMEOUT_SECONDS = 30.0


def derive_keywords(variant: LanguageVariant) -> str:
    """Join vibe, artistic style, emotion and environment, dropping empty values."""
    candidates = [
        variant.visual_style.vibe,
        variant.visual_style.artistic_style,
        variant.emotional_profile.emotion,
        variant.scene.environment,
    ]
    return KEYWORD_SEPARATOR.join(value.strip() for value in candidates if value and value.strip())


def flatten_variant(variant: LanguageVariant) -> Dict[str, str]:
    """Every leaf field keyed as ``<SECTION>_<Field>``; the narrative prompt is excluded."""
    flattened: Dict[str, str] = {}
    for section, fields in variant.structure_data().items():
        for field, value in fields.items():
            flattened[f"{section}_{field}"] = value
    return flattened


def build_save_request(
    analysis: BilingualAnalysis,
    original_image: ImagePayload,
    face_image: Optional[ImagePayload] = None,
    instructions: str = "",
) -> SaveRequest:
    """Pure, deterministic projection of an analysis into a save request."""
    variant = analysis.japanese
    return SaveRequest(
        subject=variant.core_identity.age_gender,
        category=variant.visual_style.archetype,
        keywords=derive_keywords(variant),
        detail=variant.full_prompt,
        instructions=instructions or "",
        fields=flatten_variant(variant),
        image_data=original_image.to_base64(),
        image_mime_type=original_image.mime_type,
        face_image_data=face_image.to_base64() if face_image is not None else "",
        face_image_mime_type=face_image.mime_type if face_image is not None else "",
    )


async def _post_save_request(
    client: httpx.AsyncClient,
    endpoint: str,
    payload: Dict[str, str],
) -> None:
    try:
        response = await client.post(endpoint, json=payload)
    except httpx.HTTPError as exc:
        raise PersistenceFailure(str(exc) or exc.__class__.__name__) from exc

    try:
        body = response.json()
    except ValueError as exc:
        raise PersistenceFailure(
            f"Save endpoint returned a non-JSON response (HTTP {response.status_code})"
        ) from exc

    if not isinstance(body, dict) or body.get("status") != "success":
        message = body.get("message") if isinstance(body, dict) else None
        raise PersistenceFailure(message or "Unknown error from save endpoint")


async def submit_save_request(
    save_request: SaveRequest,
    endpoint: str,
    auth_token: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_SAVE_TIMEOUT_SECONDS,
) -> SaveOutcome:
    """
    Post *save_request* to *endpoint* and map the reply to a SaveOutcome.

    ``{"status": "success"}`` is a success; any other status, a transport
    error or an unparsable body is a failure carrying a message.
    """
    payload = save_request.to_payload(auth_token)
    logger.info(
        "Saving analysis: category=%.40s keywords=%.80s image_b64=%d chars",
        save_request.category,
        save_request.keywords,
        len(save_request.image_data),
    )

    try:
        if client is not None:
            await _post_save_request(client, endpoint, payload)
        else:
            # Apps Script web apps answer POSTs with a redirect to the result.
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned_client:
                await _post_save_request(owned_client, endpoint, payload)
    except PersistenceFailure as exc:
        logger.warning("Save failed: %s", exc)
        return SaveOutcome.failure(str(exc))

    logger.info("Analysis saved")
    return SaveOutcome.success()
