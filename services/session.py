"""
Per-image analysis session.

Holds two independent stage states (analysis, render), each one of
IDLE / IN_FLIGHT / SUCCEEDED / FAILED. A run starts both pipelines
concurrently; a failure in one never marks the other as failed. Starting a
new run (or resetting) cancels the previous run's tasks, and any result that
still arrives from an older run is discarded.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from schemas.analysis import BilingualAnalysis
from schemas.render import AspectRatio, RenderResult
from schemas.stage import StageStatus
from services.analysis import AnalysisRequestBuilder
from services.aspect_ratio import classify_image_aspect_ratio
from services.error_sanitizer import sanitize_public_error_message
from services.errors import ImageAnalystError
from services.image_validation import ImagePayload
from services.render import RenderRequestBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_FAILED_MESSAGE = "Failed to analyze image."
RENDER_FAILED_MESSAGE = "Failed to generate pose."


@dataclass(frozen=True)
class StageState(Generic[T]):
    status: StageStatus = StageStatus.IDLE
    result: Optional[T] = None
    error: Optional[ImageAnalystError] = None
    error_message: Optional[str] = None

    @classmethod
    def idle(cls) -> "StageState[T]":
        return cls()

    @classmethod
    def in_flight(cls) -> "StageState[T]":
        return cls(status=StageStatus.IN_FLIGHT)

    @classmethod
    def succeeded(cls, result: T) -> "StageState[T]":
        return cls(status=StageStatus.SUCCEEDED, result=result)

    @classmethod
    def failed(cls, error: ImageAnalystError, message: str) -> "StageState[T]":
        return cls(status=StageStatus.FAILED, error=error, error_message=message)

    @property
    def error_detail(self) -> Optional[str]:
        """Sanitized error text, safe to show next to ``error_message``."""
        if self.error is None:
            return None
        return sanitize_public_error_message(
            str(self.error), fallback=self.error.public_message
        )


class AnalysisSession:
    def __init__(
        self,
        analyzer: AnalysisRequestBuilder,
        renderer: RenderRequestBuilder,
        *,
        join_render_variants: bool = True,
    ):
        self._analyzer = analyzer
        self._renderer = renderer
        self.join_render_variants = join_render_variants

        self.analysis: StageState[BilingualAnalysis] = StageState.idle()
        self.render: StageState[RenderResult] = StageState.idle()
        self.aspect_ratio: Optional[AspectRatio] = None
        self.generation = 0
        self._tasks: List[asyncio.Task] = []

    @property
    def in_flight(self) -> bool:
        return StageStatus.IN_FLIGHT in (self.analysis.status, self.render.status)

    def reset(self) -> None:
        """Cancel in-flight work and return both stages to IDLE."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
        self._tasks = []
        self.generation += 1
        self.analysis = StageState.idle()
        self.render = StageState.idle()
        self.aspect_ratio = None

    async def run(
        self,
        image: ImagePayload,
        instructions: str = "",
        face_image: Optional[ImagePayload] = None,
    ) -> None:
        """
        Analyze *image* and render its pose, concurrently.

        Returns once both pipelines have settled (or were superseded by a
        newer run). Only unexpected programming errors propagate.
        """
        self.reset()
        generation = self.generation

        aspect_ratio = classify_image_aspect_ratio(image)
        self.aspect_ratio = aspect_ratio
        self.analysis = StageState.in_flight()
        self.render = StageState.in_flight()
        logger.info("Run %d started: aspect_ratio=%s", generation, aspect_ratio.value)

        tasks = [
            asyncio.create_task(self._run_analysis(generation, image, instructions)),
            asyncio.create_task(
                self._run_render(generation, image, aspect_ratio, instructions, face_image)
            ),
        ]
        self._tasks = tasks
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            # Cancelling the run cancels both pipelines.
            for task in tasks:
                task.cancel()
            if generation == self.generation:
                self.reset()
            raise

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

    def _publish(self, generation: int, stage: str, state: StageState) -> None:
        if generation != self.generation:
            logger.info("Discarding stale %s result from run %d", stage, generation)
            return
        setattr(self, stage, state)

    async def _run_analysis(
        self, generation: int, image: ImagePayload, instructions: str
    ) -> None:
        try:
            result = await self._analyzer.analyze(image, instructions)
        except ImageAnalystError as exc:
            logger.warning("Analysis failed (run %d): %s", generation, exc)
            self._publish(generation, "analysis", StageState.failed(exc, ANALYSIS_FAILED_MESSAGE))
            return
        self._publish(generation, "analysis", StageState.succeeded(result))

    async def _run_render(
        self,
        generation: int,
        image: ImagePayload,
        aspect_ratio: AspectRatio,
        instructions: str,
        face_image: Optional[ImagePayload],
    ) -> None:
        try:
            result = await self._renderer.render_variants(
                image,
                aspect_ratio,
                instructions,
                face_image,
                join=self.join_render_variants,
            )
        except ImageAnalystError as exc:
            logger.warning("Pose render failed (run %d): %s", generation, exc)
            self._publish(generation, "render", StageState.failed(exc, RENDER_FAILED_MESSAGE))
            return
        self._publish(generation, "render", StageState.succeeded(result))
