"""
Structured bilingual image analysis using Gemini vision.

Sends the source image with a composed instruction block and a strict JSON
response schema, then validates the reply into a BilingualAnalysis. Both
languages come from one call so they share a single interpretation of the
image.
"""

import json
import logging
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from schemas.analysis import BilingualAnalysis, response_schema_for
from services.errors import SchemaViolationError
from services.gemini_client import DEFAULT_TIMEOUT_SECONDS, run_model_call
from services.image_validation import ImagePayload
from services.prompts import (
    ANALYSIS_PROMPT_VERSION,
    ANALYSIS_TASK,
    BEAUTY_FRAMING_POLICY,
    EMOTION_ARCHETYPES,
    LANGUAGE_RULES,
    SCENE_FACTUALITY_POLICY,
    USER_OVERRIDE_TEMPLATE,
)

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_MODEL = "gemini-2.5-flash"
MAX_REPORTED_SCHEMA_ERRORS = 5


def _strip_markdown_fences(text: str) -> str:
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text.strip()


def _summarize_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors()[:MAX_REPORTED_SCHEMA_ERRORS]:
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        problems.append(f"{location}: {item['msg']}")
    if error.error_count() > MAX_REPORTED_SCHEMA_ERRORS:
        problems.append(f"... {error.error_count() - MAX_REPORTED_SCHEMA_ERRORS} more")
    return "; ".join(problems)


class AnalysisRequestBuilder:
    """Builds analysis requests and normalizes their responses."""

    def __init__(
        self,
        client: object,
        model: str = DEFAULT_ANALYSIS_MODEL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._client = client
        self.model = model
        self.timeout = timeout

    @staticmethod
    def build_prompt(instructions: str = "") -> str:
        """
        Compose the instruction block.

        User instructions lead the block, verbatim, ahead of the task and
        every fixed policy.
        """
        blocks = []
        cleaned = (instructions or "").strip()
        if cleaned:
            blocks.append(USER_OVERRIDE_TEMPLATE.format(instructions=cleaned))
        blocks.extend(
            [
                ANALYSIS_TASK,
                BEAUTY_FRAMING_POLICY,
                SCENE_FACTUALITY_POLICY,
                EMOTION_ARCHETYPES,
                LANGUAGE_RULES,
            ]
        )
        return "\n\n".join(blocks)

    @staticmethod
    def response_schema() -> Dict[str, Any]:
        return response_schema_for(BilingualAnalysis)

    def build_contents(self, image: ImagePayload, instructions: str = "") -> List[object]:
        from google.genai import types

        return [
            types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
            self.build_prompt(instructions),
        ]

    def build_config(self) -> object:
        from google.genai import types

        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=self.response_schema(),
        )

    @staticmethod
    def parse_response(raw_text: str | None) -> BilingualAnalysis:
        """
        Validate the model's JSON reply.

        Missing fields, wrong types and empty bodies are contract violations;
        nothing is defaulted.
        """
        text = _strip_markdown_fences((raw_text or "").strip())
        if not text:
            raise SchemaViolationError("Analysis model returned an empty response")

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SchemaViolationError(
                f"Analysis response is not valid JSON: {exc}", raw_text=text
            ) from exc

        try:
            return BilingualAnalysis.model_validate(payload)
        except ValidationError as exc:
            raise SchemaViolationError(
                f"Analysis response does not match schema: {_summarize_validation_error(exc)}",
                raw_text=text,
            ) from exc

    async def analyze(self, image: ImagePayload, instructions: str = "") -> BilingualAnalysis:
        contents = self.build_contents(image, instructions)
        config = self.build_config()

        logger.info(
            "Requesting analysis: model=%s prompt_version=%s mime=%s image_bytes=%d instructions_chars=%d",
            self.model,
            ANALYSIS_PROMPT_VERSION,
            image.mime_type,
            len(image.data),
            len((instructions or "").strip()),
        )

        response = await run_model_call(
            lambda: self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            ),
            timeout=self.timeout,
            description="Analysis call",
        )

        analysis = self.parse_response(getattr(response, "text", None))
        logger.info(
            "Analysis received: archetype=%.40s fullPrompt=%d chars",
            analysis.english.visual_style.archetype,
            len(analysis.english.full_prompt),
        )
        return analysis
