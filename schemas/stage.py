from enum import Enum

from pydantic import BaseModel

from schemas.analysis import AnalysisStageResponse
from schemas.render import AspectRatio, RenderStageResponse


class StageStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AnalyzeResponse(BaseModel):
    """Snapshot of both pipelines after an analyze run has settled."""

    aspect_ratio: AspectRatio
    analysis: AnalysisStageResponse
    render: RenderStageResponse
