import base64
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    WIDE = "16:9"
    LANDSCAPE = "4:3"
    TALL = "9:16"
    PORTRAIT = "3:4"


class RenderVariant(str, Enum):
    DETAILED = "detailed"
    ABSTRACT = "abstract"


class GeneratedImage(BaseModel):
    """One rendered image, tagged with the variant that produced it."""

    variant: RenderVariant
    mime_type: str
    data: bytes

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class RenderResult(BaseModel):
    """
    Outcome of rendering both variants for one source image.

    ``errors`` is only populated when variants are tracked independently;
    a joined render either holds every variant or raises.
    """

    images: Dict[RenderVariant, GeneratedImage] = Field(default_factory=dict)
    errors: Dict[RenderVariant, str] = Field(default_factory=dict)

    @property
    def detailed(self) -> Optional[GeneratedImage]:
        return self.images.get(RenderVariant.DETAILED)

    @property
    def abstract(self) -> Optional[GeneratedImage]:
        return self.images.get(RenderVariant.ABSTRACT)


class RenderedImageResponse(BaseModel):
    variant: RenderVariant
    mime_type: str
    data_url: str

    @classmethod
    def from_image(cls, image: GeneratedImage) -> "RenderedImageResponse":
        return cls(
            variant=image.variant,
            mime_type=image.mime_type,
            data_url=image.to_data_url(),
        )


class RenderStageResponse(BaseModel):
    status: str
    error_message: Optional[str] = None
    error_detail: Optional[str] = None
    images: List[RenderedImageResponse] = Field(default_factory=list)
    variant_errors: Dict[RenderVariant, str] = Field(default_factory=dict)
