"""
Test fixtures and configuration for pytest.
"""

import copy
import os
import sys
from io import BytesIO
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.image_validation import ImagePayload


ENGLISH_VARIANT = {
    "CORE_IDENTITY": {
        "Age_Gender": "Woman in her mid 20s",
        "Beauty_Characteristics": "Radiant, graceful features with clear skin",
        "Ethnicity": "Japanese",
        "Body_Type": "Slim and well-proportioned",
    },
    "VISUAL_STYLE": {
        "Archetype": "Girl next door",
        "Vibe": "Casual and warm",
        "Artistic_Style": "Natural light photography",
    },
    "EMOTIONAL_PROFILE": {
        "Emotion": "Cheerful joy",
        "Mood": "Light and carefree",
        "Expression": "Bright smile",
        "Avoid": "Gloomy look, stiff posture",
    },
    "FACE_FEATURES": {
        "Face_Shape": "Soft oval",
        "Eyes": "Large almond eyes looking at the camera",
        "Eyebrows": "Natural straight brows",
        "Nose": "Small, straight nose",
        "Lips": "Full lips with coral tint",
        "Makeup": "Light natural makeup",
        "Expression": "Smiling with teeth visible",
    },
    "HAIR_STYLE": {
        "Color": "Dark brown",
        "Style": "Short bob",
        "Bangs": "See-through bangs",
    },
    "BODY_FEATURES": {
        "Skin": "Fair, smooth skin",
        "Chest": "Modest neckline",
        "Hands_Limbs": "Right hand holding a cup",
    },
    "FASHION": {
        "Clothing": "White knit sweater",
        "Accessories": "Small gold earrings",
    },
    "SCENE": {
        "Environment": "Cafe terrace with a Starbucks logo on the cup",
        "Lighting": "Soft daylight",
        "Camera": "Eye-level medium shot, 50mm",
        "Orientation": "vertical",
        "Aspect_Ratio": "9:16",
    },
    "fullPrompt": "A cheerful young Japanese woman with a short bob sits on a cafe terrace.",
}

JAPANESE_VARIANT = {
    "CORE_IDENTITY": {
        "Age_Gender": "20代半ばの日本人女性",
        "Beauty_Characteristics": "透明感のある上品な美しさ",
        "Ethnicity": "日本人",
        "Body_Type": "スリムでバランスの良い体型",
    },
    "VISUAL_STYLE": {
        "Archetype": "親しみやすい女の子",
        "Vibe": "カジュアルで温かい",
        "Artistic_Style": "自然光ポートレート",
    },
    "EMOTIONAL_PROFILE": {
        "Emotion": "明るい喜び",
        "Mood": "軽やかで自由",
        "Expression": "明るい笑顔",
        "Avoid": "暗い表情、硬い姿勢",
    },
    "FACE_FEATURES": {
        "Face_Shape": "柔らかい卵型",
        "Eyes": "カメラを見つめる大きなアーモンド形の目",
        "Eyebrows": "自然なストレート眉",
        "Nose": "小さく通った鼻",
        "Lips": "コーラル色のふっくらした唇",
        "Makeup": "ナチュラルメイク",
        "Expression": "歯を見せた笑顔",
    },
    "HAIR_STYLE": {
        "Color": "ダークブラウン",
        "Style": "ショートボブ",
        "Bangs": "シースルーバング",
    },
    "BODY_FEATURES": {
        "Skin": "色白でなめらかな肌",
        "Chest": "控えめなネックライン",
        "Hands_Limbs": "右手でカップを持っている",
    },
    "FASHION": {
        "Clothing": "白いニットセーター",
        "Accessories": "小さなゴールドのピアス",
    },
    "SCENE": {
        "Environment": "スターバックスのロゴ入りカップがあるカフェテラス",
        "Lighting": "柔らかな昼光",
        "Camera": "目線の高さのミディアムショット、50mm",
        "Orientation": "縦向き",
        "Aspect_Ratio": "9:16",
    },
    "fullPrompt": "ショートボブの明るい日本人女性がカフェテラスに座っている。",
}


def _png_bytes(width: int, height: int, color: str = "white") -> bytes:
    img = Image.new("RGB", (width, height), color)
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes_factory():
    """Build PNG bytes of a given size."""
    return _png_bytes


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Generate sample PNG image bytes for testing."""
    return _png_bytes(100, 100, "red")


@pytest.fixture
def sample_image(sample_image_bytes) -> ImagePayload:
    return ImagePayload(data=sample_image_bytes, mime_type="image/png", width=100, height=100)


@pytest.fixture
def portrait_image() -> ImagePayload:
    """A 1080x1920 (9:16) source photo."""
    return ImagePayload(data=_png_bytes(1080, 1920), mime_type="image/png")


@pytest.fixture
def face_image() -> ImagePayload:
    return ImagePayload(data=_png_bytes(256, 256, "blue"), mime_type="image/png")


@pytest.fixture
def analysis_payload() -> dict:
    """A well-formed bilingual analysis as the model would return it."""
    return {
        "japanese": copy.deepcopy(JAPANESE_VARIANT),
        "english": copy.deepcopy(ENGLISH_VARIANT),
    }


@pytest.fixture
def analysis(analysis_payload):
    from schemas.analysis import BilingualAnalysis

    return BilingualAnalysis.model_validate(analysis_payload)


@pytest.fixture
def text_response():
    """Build a fake Gemini response carrying only text."""

    def _build(text):
        return SimpleNamespace(
            text=text,
            parts=[SimpleNamespace(text=text, inline_data=None)],
            candidates=None,
        )

    return _build


@pytest.fixture
def image_response():
    """Build a fake Gemini response with one inline image part."""

    def _build(data: bytes = b"\x89PNG-rendered", mime_type: str = "image/png"):
        return SimpleNamespace(
            text=None,
            parts=[
                SimpleNamespace(text="Here is your drawing.", inline_data=None),
                SimpleNamespace(
                    text=None,
                    inline_data=SimpleNamespace(data=data, mime_type=mime_type),
                ),
            ],
            candidates=None,
        )

    return _build


@pytest.fixture
def mock_gemini_client() -> MagicMock:
    """A stand-in for ``google.genai.Client``; tests set models.generate_content."""
    return MagicMock()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the FastAPI app; dependency overrides are cleared after each test."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
