"""Bilingual visual-analysis schemas.

The same pydantic models validate the model's JSON response and generate the
response schema sent with the request, so both always describe one shape.
JSON keys (aliases) follow the prompt vocabulary: UPPER_CASE sections and
Capitalized_Snake leaf fields.
"""

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class _AnalysisSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CoreIdentity(_AnalysisSection):
    age_gender: str = Field(..., alias="Age_Gender", description="Apparent age range and gender.")
    beauty_characteristics: str = Field(
        ...,
        alias="Beauty_Characteristics",
        description="Flattering description of the subject's overall beauty.",
    )
    ethnicity: str = Field(..., alias="Ethnicity", description="Apparent ethnicity.")
    body_type: str = Field(..., alias="Body_Type", description="Body type and build.")


class VisualStyle(_AnalysisSection):
    archetype: str = Field(..., alias="Archetype", description="Character archetype.")
    vibe: str = Field(..., alias="Vibe", description="Overall vibe or atmosphere.")
    artistic_style: str = Field(
        ..., alias="Artistic_Style", description="Photographic or artistic style."
    )


class EmotionalProfile(_AnalysisSection):
    emotion: str = Field(..., alias="Emotion", description="Dominant emotion.")
    mood: str = Field(..., alias="Mood", description="Mood of the scene and subject.")
    expression: str = Field(..., alias="Expression", description="Facial expression.")
    avoid: str = Field(
        ...,
        alias="Avoid",
        description="Traits or expressions that contradict this emotional profile.",
    )


class FaceFeatures(_AnalysisSection):
    face_shape: str = Field(..., alias="Face_Shape", description="Face shape.")
    eyes: str = Field(..., alias="Eyes", description="Eye shape, color and gaze.")
    eyebrows: str = Field(..., alias="Eyebrows", description="Eyebrow shape.")
    nose: str = Field(..., alias="Nose", description="Nose shape.")
    lips: str = Field(..., alias="Lips", description="Lip shape and color.")
    makeup: str = Field(..., alias="Makeup", description="Makeup details.")
    expression: str = Field(..., alias="Expression", description="Facial expression.")


class HairStyle(_AnalysisSection):
    color: str = Field(..., alias="Color", description="Hair color.")
    style: str = Field(..., alias="Style", description="Hairstyle and length.")
    bangs: str = Field(..., alias="Bangs", description="Bangs / fringe.")


class BodyFeatures(_AnalysisSection):
    skin: str = Field(..., alias="Skin", description="Skin tone and texture.")
    chest: str = Field(..., alias="Chest", description="Chest and neckline.")
    hands_limbs: str = Field(..., alias="Hands_Limbs", description="Hands, arms and legs.")


class Fashion(_AnalysisSection):
    clothing: str = Field(..., alias="Clothing", description="Clothing details.")
    accessories: str = Field(
        ..., alias="Accessories", description="Accessories such as glasses or jewelry."
    )


class Scene(_AnalysisSection):
    environment: str = Field(
        ...,
        alias="Environment",
        description="Background and location, naming visible brands, logos and places literally.",
    )
    lighting: str = Field(..., alias="Lighting", description="Lighting conditions.")
    camera: str = Field(..., alias="Camera", description="Camera angle, shot type and lens.")
    orientation: str = Field(
        ..., alias="Orientation", description="Image orientation (vertical/horizontal/square)."
    )
    aspect_ratio: str = Field(
        ..., alias="Aspect_Ratio", description="Aspect ratio such as 9:16 or 1:1."
    )


class LanguageVariant(_AnalysisSection):
    """One language's full structured description of the analyzed image."""

    core_identity: CoreIdentity = Field(..., alias="CORE_IDENTITY")
    visual_style: VisualStyle = Field(..., alias="VISUAL_STYLE")
    emotional_profile: EmotionalProfile = Field(..., alias="EMOTIONAL_PROFILE")
    face_features: FaceFeatures = Field(..., alias="FACE_FEATURES")
    hair_style: HairStyle = Field(..., alias="HAIR_STYLE")
    body_features: BodyFeatures = Field(..., alias="BODY_FEATURES")
    fashion: Fashion = Field(..., alias="FASHION")
    scene: Scene = Field(..., alias="SCENE")
    full_prompt: str = Field(
        ...,
        alias="fullPrompt",
        min_length=1,
        description="A cohesive narrative paragraph combining every detail above.",
    )

    def structure_data(self) -> Dict[str, Any]:
        """The structured sections as JSON-ready data, without the narrative prompt."""
        return self.model_dump(by_alias=True, exclude={"full_prompt"})

    def prompt_text(self) -> str:
        """Narrative prompt with an ``--ar`` suffix when the scene carries a ratio."""
        aspect_ratio = self.scene.aspect_ratio.strip()
        if aspect_ratio:
            return f"{self.full_prompt}\n\n--ar {aspect_ratio}"
        return self.full_prompt


class BilingualAnalysis(_AnalysisSection):
    japanese: LanguageVariant = Field(
        ..., description="The full analysis with every value written in Japanese."
    )
    english: LanguageVariant = Field(
        ..., description="The same analysis with every value written in English."
    )


def response_schema_for(model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Build a Gemini response schema (OpenAPI subset) from a pydantic model.

    Every field is listed as required; nested models become nested objects and
    everything else is a string.
    """
    properties: Dict[str, Any] = {}
    required = []
    for name, info in model.model_fields.items():
        key = info.alias or name
        annotation: Optional[Any] = info.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            prop = response_schema_for(annotation)
        else:
            prop = {"type": "STRING"}
        if info.description:
            prop["description"] = info.description
        properties[key] = prop
        required.append(key)
    return {"type": "OBJECT", "properties": properties, "required": required}


class PromptTextResponse(BaseModel):
    japanese: str
    english: str


class AnalysisStageResponse(BaseModel):
    status: str
    error_message: Optional[str] = None
    error_detail: Optional[str] = None
    result: Optional[BilingualAnalysis] = None
    prompt_text: Optional[PromptTextResponse] = None
