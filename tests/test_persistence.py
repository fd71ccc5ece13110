"""
Tests for the save request projection and the spreadsheet endpoint client.
"""

import json

import httpx
import pytest

from schemas.analysis import LanguageVariant
from schemas.save import SaveOutcome
from services.image_validation import ImagePayload
from services.persistence import (
    build_save_request,
    derive_keywords,
    flatten_variant,
    submit_save_request,
)

SAVE_URL = "https://script.google.com/macros/s/test/exec"


def _variant_with(analysis_payload, **overrides) -> LanguageVariant:
    payload = analysis_payload["japanese"]
    payload["VISUAL_STYLE"]["Vibe"] = overrides.get("vibe", "a")
    payload["VISUAL_STYLE"]["Artistic_Style"] = overrides.get("artistic_style", "")
    payload["EMOTIONAL_PROFILE"]["Emotion"] = overrides.get("emotion", "b")
    payload["SCENE"]["Environment"] = overrides.get("environment", "")
    return LanguageVariant.model_validate(payload)


def _client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDeriveKeywords:
    def test_drops_empty_values(self, analysis_payload):
        assert derive_keywords(_variant_with(analysis_payload)) == "a,b"

    def test_drops_whitespace_only_values(self, analysis_payload):
        variant = _variant_with(analysis_payload, vibe="  ", environment=" cafe ")
        assert derive_keywords(variant) == "b,cafe"

    def test_joins_all_four_in_order(self, analysis):
        assert derive_keywords(analysis.japanese) == ",".join(
            [
                "カジュアルで温かい",
                "自然光ポートレート",
                "明るい喜び",
                "スターバックスのロゴ入りカップがあるカフェテラス",
            ]
        )

    def test_all_empty(self, analysis_payload):
        variant = _variant_with(analysis_payload, vibe="", emotion="")
        assert derive_keywords(variant) == ""


class TestFlattenVariant:
    def test_keys_are_section_prefixed(self, analysis):
        flattened = flatten_variant(analysis.japanese)

        assert flattened["HAIR_STYLE_Style"] == "ショートボブ"
        assert flattened["EMOTIONAL_PROFILE_Avoid"] == "暗い表情、硬い姿勢"
        assert flattened["SCENE_Aspect_Ratio"] == "9:16"

    def test_same_named_fields_do_not_collide(self, analysis):
        flattened = flatten_variant(analysis.japanese)

        assert flattened["EMOTIONAL_PROFILE_Expression"] == "明るい笑顔"
        assert flattened["FACE_FEATURES_Expression"] == "歯を見せた笑顔"

    def test_full_prompt_is_not_a_field(self, analysis):
        assert not any("fullPrompt" in key for key in flatten_variant(analysis.japanese))


class TestBuildSaveRequest:
    def test_projects_japanese_variant(self, analysis, sample_image):
        request = build_save_request(analysis, sample_image, instructions="short bob")

        assert request.subject == "20代半ばの日本人女性"
        assert request.category == "親しみやすい女の子"
        assert request.detail == analysis.japanese.full_prompt
        assert request.instructions == "short bob"
        assert request.image_data == sample_image.to_base64()
        assert not request.image_data.startswith("data:")
        assert request.image_mime_type == "image/png"
        assert request.face_image_data == ""
        assert request.face_image_mime_type == ""

    def test_includes_face_image(self, analysis, sample_image, face_image):
        request = build_save_request(analysis, sample_image, face_image)

        assert request.face_image_data == face_image.to_base64()
        assert request.face_image_mime_type == "image/png"

    def test_is_deterministic(self, analysis, sample_image):
        first = build_save_request(analysis, sample_image, instructions="x")
        second = build_save_request(analysis, sample_image, instructions="x")

        assert first == second
        assert first.to_payload("t") == second.to_payload("t")

    def test_payload_shape(self, analysis, sample_image):
        payload = build_save_request(analysis, sample_image).to_payload("secret-token")

        assert payload["token"] == "secret-token"
        assert payload["keywords"] == derive_keywords(analysis.japanese)
        assert payload["HAIR_STYLE_Color"] == "ダークブラウン"
        assert payload["imageData"] == sample_image.to_base64()
        assert payload["imageMimeType"] == "image/png"
        assert payload["faceImageData"] == ""
        assert all(isinstance(value, str) for value in payload.values())


class TestSubmitSaveRequest:
    @pytest.mark.asyncio
    async def test_success(self, analysis, sample_image):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "success"})

        save_request = build_save_request(analysis, sample_image)
        async with _client_for(handler) as client:
            outcome = await submit_save_request(save_request, SAVE_URL, "tok", client=client)

        assert outcome == SaveOutcome.success()
        assert outcome.ok
        assert captured["url"] == SAVE_URL
        assert captured["body"]["token"] == "tok"
        assert captured["body"]["subject"] == save_request.subject

    @pytest.mark.asyncio
    async def test_error_status_carries_message(self, analysis, sample_image):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "error", "message": "X"})

        async with _client_for(handler) as client:
            outcome = await submit_save_request(
                build_save_request(analysis, sample_image), SAVE_URL, "tok", client=client
            )

        assert outcome == SaveOutcome.failure("X")
        assert not outcome.ok

    @pytest.mark.asyncio
    async def test_error_status_without_message(self, analysis, sample_image):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "error"})

        async with _client_for(handler) as client:
            outcome = await submit_save_request(
                build_save_request(analysis, sample_image), SAVE_URL, "tok", client=client
            )

        assert outcome.status == "failure"
        assert outcome.message == "Unknown error from save endpoint"

    @pytest.mark.asyncio
    async def test_transport_error(self, analysis, sample_image):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client_for(handler) as client:
            outcome = await submit_save_request(
                build_save_request(analysis, sample_image), SAVE_URL, "tok", client=client
            )

        assert outcome == SaveOutcome.failure("connection refused")

    @pytest.mark.asyncio
    async def test_non_json_body(self, analysis, sample_image):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="<html>Internal error</html>")

        async with _client_for(handler) as client:
            outcome = await submit_save_request(
                build_save_request(analysis, sample_image), SAVE_URL, "tok", client=client
            )

        assert outcome.status == "failure"
        assert "HTTP 500" in outcome.message

    @pytest.mark.asyncio
    async def test_face_image_round_trips_through_payload(self, analysis, sample_image):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured.update(json.loads(request.content))
            return httpx.Response(200, json={"status": "success"})

        face = ImagePayload(data=b"face-bytes", mime_type="image/jpeg")
        async with _client_for(handler) as client:
            await submit_save_request(
                build_save_request(analysis, sample_image, face), SAVE_URL, "tok", client=client
            )

        assert captured["faceImageMimeType"] == "image/jpeg"
        assert captured["faceImageData"] == face.to_base64()
