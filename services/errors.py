"""Error taxonomy for the analysis, render and save pipelines."""

from typing import Optional


class ImageAnalystError(Exception):
    """Base class for every failure surfaced by the service layer."""

    #: Short message safe to show to end users.
    public_message = "Request failed."


class MissingCredentialError(ImageAnalystError):
    """No Gemini API key was configured when a client was requested."""

    public_message = "AI generation is not configured. Please set GOOGLE_API_KEY in .env"


class ModelCallError(ImageAnalystError):
    """Transport, HTTP or timeout failure while calling a Gemini model."""

    public_message = "The AI service could not be reached."


class SchemaViolationError(ImageAnalystError):
    """The analysis response was empty or did not match the required shape."""

    public_message = "The AI service returned an invalid analysis."

    def __init__(self, message: str, *, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class NoImageProducedError(ImageAnalystError):
    """The image model answered without an inline image part."""

    public_message = "The AI service did not return an image."


class PersistenceFailure(ImageAnalystError):
    """The save endpoint reported a non-success status or was unreachable."""

    public_message = "Failed to save the analysis."
