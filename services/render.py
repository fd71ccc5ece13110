"""
Pose line-art rendering using Gemini image generation.

Two orthogonal axes shape each request: identity (direct pose source, or a
face/head swap from a second reference image) and style (detailed character
line art, or an abstract mannequin). User instructions are always appended
last as the highest-priority override.
"""

import asyncio
import base64
import logging
from typing import Iterable, List, Optional, Sequence

from schemas.render import AspectRatio, GeneratedImage, RenderResult, RenderVariant
from services.errors import ImageAnalystError, NoImageProducedError
from services.gemini_client import DEFAULT_TIMEOUT_SECONDS, run_model_call
from services.image_validation import ImagePayload
from services.prompts import (
    FACE_REFERENCE_LABEL,
    IDENTITY_DIRECT,
    IDENTITY_FACE_SWAP,
    POSE_SOURCE_LABEL,
    RENDER_OVERRIDE_TEMPLATE,
    RENDER_PROMPT_VERSION,
    STYLE_ABSTRACT,
    STYLE_DETAILED,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_RESULT_MIME_TYPE = "image/png"

_STYLE_TEMPLATES = {
    RenderVariant.DETAILED: STYLE_DETAILED,
    RenderVariant.ABSTRACT: STYLE_ABSTRACT,
}


class RenderRequestBuilder:
    """Builds image-to-image render requests and extracts the produced image."""

    IMAGE_MODALITIES: tuple[str, ...] = ("TEXT", "IMAGE")

    def __init__(
        self,
        client: object,
        model: str = DEFAULT_IMAGE_MODEL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._client = client
        self.model = model
        self.timeout = timeout

    @staticmethod
    def build_prompt(
        variant: RenderVariant,
        instructions: str = "",
        *,
        has_face_reference: bool = False,
    ) -> str:
        blocks = [
            IDENTITY_FACE_SWAP if has_face_reference else IDENTITY_DIRECT,
            _STYLE_TEMPLATES[RenderVariant(variant)],
        ]
        cleaned = (instructions or "").strip()
        if cleaned:
            blocks.append(RENDER_OVERRIDE_TEMPLATE.format(instructions=cleaned))
        return "\n\n".join(blocks)

    def build_contents(
        self,
        pose_image: ImagePayload,
        variant: RenderVariant,
        instructions: str = "",
        face_image: Optional[ImagePayload] = None,
    ) -> List[object]:
        """
        Order the request parts.

        With a face reference each image is preceded by its role label:
        [label 1, pose, label 2, face, prompt]. Otherwise [pose, prompt].
        """
        from google.genai import types

        prompt = self.build_prompt(
            variant, instructions, has_face_reference=face_image is not None
        )
        pose_part = types.Part.from_bytes(
            data=pose_image.data, mime_type=pose_image.mime_type
        )
        if face_image is None:
            return [pose_part, prompt]
        return [
            POSE_SOURCE_LABEL,
            pose_part,
            FACE_REFERENCE_LABEL,
            types.Part.from_bytes(data=face_image.data, mime_type=face_image.mime_type),
            prompt,
        ]

    @classmethod
    def build_config(cls, types_module: object, aspect_ratio: AspectRatio) -> object:
        config_kwargs: dict[str, object] = {
            "response_modalities": list(cls.IMAGE_MODALITIES)
        }
        image_config_cls = getattr(types_module, "ImageConfig", None)
        if image_config_cls is not None:
            config_kwargs["image_config"] = image_config_cls(
                aspect_ratio=AspectRatio(aspect_ratio).value
            )
        else:
            logger.warning(
                "Installed google-genai has no ImageConfig; aspect ratio hint %s dropped",
                aspect_ratio,
            )
        return types_module.GenerateContentConfig(**config_kwargs)

    @staticmethod
    def _iter_response_parts(response: object) -> Iterable[object]:
        """Yield candidate parts across SDK response layouts."""
        direct_parts = getattr(response, "parts", None)
        if direct_parts:
            yield from direct_parts

        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            parts = getattr(content, "parts", None) if content is not None else None
            if parts:
                yield from parts

    @classmethod
    def extract_image(cls, response: object) -> Optional[tuple[bytes, str]]:
        """Return ``(bytes, mime_type)`` of the first inline image part, if any."""
        for part in cls._iter_response_parts(response):
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            mime_type = getattr(inline_data, "mime_type", None) or DEFAULT_RESULT_MIME_TYPE
            return data, mime_type
        return None

    async def render(
        self,
        pose_image: ImagePayload,
        aspect_ratio: AspectRatio,
        variant: RenderVariant,
        instructions: str = "",
        face_image: Optional[ImagePayload] = None,
    ) -> GeneratedImage:
        from google.genai import types

        variant = RenderVariant(variant)
        contents = self.build_contents(pose_image, variant, instructions, face_image)
        config = self.build_config(types, aspect_ratio)

        logger.info(
            "Requesting %s render: model=%s prompt_version=%s aspect_ratio=%s face_reference=%s",
            variant.value,
            self.model,
            RENDER_PROMPT_VERSION,
            AspectRatio(aspect_ratio).value,
            face_image is not None,
        )

        response = await run_model_call(
            lambda: self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            ),
            timeout=self.timeout,
            description=f"{variant.value.capitalize()} render call",
        )

        extracted = self.extract_image(response)
        if extracted is None:
            reply = (getattr(response, "text", None) or "").strip()
            logger.warning(
                "No image in %s render response (text reply: %.120s)", variant.value, reply
            )
            raise NoImageProducedError(f"No image was generated for the {variant.value} pose.")

        data, mime_type = extracted
        logger.info("%s render received: mime=%s bytes=%d", variant.value, mime_type, len(data))
        return GeneratedImage(variant=variant, mime_type=mime_type, data=data)

    async def render_variants(
        self,
        pose_image: ImagePayload,
        aspect_ratio: AspectRatio,
        instructions: str = "",
        face_image: Optional[ImagePayload] = None,
        *,
        join: bool = True,
        variants: Sequence[RenderVariant] = (RenderVariant.DETAILED, RenderVariant.ABSTRACT),
    ) -> RenderResult:
        """
        Render every variant concurrently.

        Joined: the first failure fails the whole result and cancels the
        remaining requests. Independent: failures are recorded per variant and
        only an all-failed render raises.
        """
        tasks = [
            asyncio.create_task(
                self.render(pose_image, aspect_ratio, variant, instructions, face_image)
            )
            for variant in variants
        ]

        if join:
            try:
                images = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise
            return RenderResult(images={image.variant: image for image in images})

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        result = RenderResult()
        first_error: Optional[BaseException] = None
        for variant, outcome in zip(variants, outcomes):
            if isinstance(outcome, ImageAnalystError):
                logger.warning("%s render failed: %s", RenderVariant(variant).value, outcome)
                result.errors[RenderVariant(variant)] = str(outcome)
                first_error = first_error or outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.images[outcome.variant] = outcome

        if not result.images and first_error is not None:
            raise first_error
        return result
