import logging
from typing import Optional

from api.dependencies import get_analysis_session
from config import Settings, get_settings
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from schemas.analysis import AnalysisStageResponse, PromptTextResponse
from schemas.render import RenderedImageResponse, RenderStageResponse
from schemas.save import INSTRUCTIONS_MAX_LENGTH, SaveBody, SaveOutcome
from schemas.stage import AnalyzeResponse
from services.image_validation import (
    MAX_UPLOAD_SIZE_BYTES,
    ImagePayload,
    validate_uploaded_image_payload,
)
from services.persistence import build_save_request, submit_save_request
from services.session import AnalysisSession, StageState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


async def _read_upload(upload: UploadFile) -> ImagePayload:
    # Read one byte past the limit so oversized uploads are detected without
    # buffering arbitrarily large bodies.
    content = await upload.read(MAX_UPLOAD_SIZE_BYTES + 1)
    return validate_uploaded_image_payload(content, upload.content_type)


def _analysis_stage_response(state: StageState) -> AnalysisStageResponse:
    analysis = state.result
    return AnalysisStageResponse(
        status=state.status.value,
        error_message=state.error_message,
        error_detail=state.error_detail,
        result=analysis,
        prompt_text=(
            PromptTextResponse(
                japanese=analysis.japanese.prompt_text(),
                english=analysis.english.prompt_text(),
            )
            if analysis is not None
            else None
        ),
    )


def _render_stage_response(state: StageState) -> RenderStageResponse:
    result = state.result
    return RenderStageResponse(
        status=state.status.value,
        error_message=state.error_message,
        error_detail=state.error_detail,
        images=(
            [RenderedImageResponse.from_image(image) for image in result.images.values()]
            if result is not None
            else []
        ),
        variant_errors=result.errors if result is not None else {},
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_image(
    image: UploadFile = File(..., description="Source photo (PNG, JPG or WEBP)"),
    face_image: Optional[UploadFile] = File(None, description="Optional face reference photo"),
    instructions: str = Form("", max_length=INSTRUCTIONS_MAX_LENGTH),
    session: AnalysisSession = Depends(get_analysis_session),
):
    """
    Analyze a photo and render its pose.

    The structured analysis and the two pose renderings run concurrently and
    report their outcomes independently.
    """
    source = await _read_upload(image)
    face = None
    if face_image is not None and face_image.filename:
        face = await _read_upload(face_image)

    await session.run(source, instructions.strip(), face)

    return AnalyzeResponse(
        aspect_ratio=session.aspect_ratio,
        analysis=_analysis_stage_response(session.analysis),
        render=_render_stage_response(session.render),
    )


@router.post("/save", response_model=SaveOutcome)
async def save_analysis(
    body: SaveBody,
    settings: Settings = Depends(get_settings),
):
    """Forward the Japanese analysis and source images to the spreadsheet endpoint."""
    if not settings.save_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Saving is not configured. Please set SAVE_ENDPOINT_URL in .env",
        )

    try:
        original = ImagePayload.from_data_url(body.image)
        face = ImagePayload.from_data_url(body.face_image) if body.face_image else None
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    save_request = build_save_request(body.analysis, original, face, body.instructions)
    return await submit_save_request(
        save_request,
        settings.SAVE_ENDPOINT_URL,
        settings.SAVE_AUTH_TOKEN,
        timeout=settings.SAVE_TIMEOUT_SECONDS,
    )
