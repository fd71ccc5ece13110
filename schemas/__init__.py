from .analysis import BilingualAnalysis, LanguageVariant, response_schema_for
from .render import AspectRatio, GeneratedImage, RenderResult, RenderVariant
from .save import SaveBody, SaveOutcome, SaveRequest
from .stage import AnalyzeResponse, StageStatus

__all__ = [
    "AnalyzeResponse",
    "AspectRatio",
    "BilingualAnalysis",
    "GeneratedImage",
    "LanguageVariant",
    "RenderResult",
    "RenderVariant",
    "SaveBody",
    "SaveOutcome",
    "SaveRequest",
    "StageStatus",
    "response_schema_for",
]
