from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from schemas.analysis import BilingualAnalysis

INSTRUCTIONS_MAX_LENGTH = 2000


class SaveRequest(BaseModel):
    """
    Flat projection of the Japanese analysis plus the source images.

    Built once at save time; ``fields`` holds every analysis leaf keyed as
    ``<SECTION>_<Field>``.
    """

    subject: str
    category: str
    keywords: str
    detail: str
    instructions: str
    fields: Dict[str, str]
    image_data: str
    image_mime_type: str
    face_image_data: str = ""
    face_image_mime_type: str = ""

    def to_payload(self, auth_token: str) -> Dict[str, str]:
        """The JSON object posted to the save endpoint."""
        return {
            "token": auth_token,
            "subject": self.subject,
            "category": self.category,
            "keywords": self.keywords,
            "detail": self.detail,
            "instructions": self.instructions,
            **self.fields,
            "imageData": self.image_data,
            "imageMimeType": self.image_mime_type,
            "faceImageData": self.face_image_data,
            "faceImageMimeType": self.face_image_mime_type,
        }


class SaveOutcome(BaseModel):
    status: Literal["success", "failure"]
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls) -> "SaveOutcome":
        return cls(status="success")

    @classmethod
    def failure(cls, message: str) -> "SaveOutcome":
        return cls(status="failure", message=message)


class SaveBody(BaseModel):
    """Request body for saving an analysis to the spreadsheet endpoint."""

    analysis: BilingualAnalysis
    image: str = Field(..., min_length=1, description="Source image as a data URL or raw base64")
    face_image: Optional[str] = Field(None, description="Optional face reference as a data URL")
    instructions: str = Field("", max_length=INSTRUCTIONS_MAX_LENGTH)
