"""Barcode and photo resolution pipeline."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.domain.resolution import (
    TERMINAL_STAGES,
    ResolutionEvent,
    ResolutionOutcome,
    ResolutionStage,
    next_stage,
)
from health_scanner.errors import AnalysisFailedError, PersistenceError
from health_scanner.services.analysis import AnalysisService
from health_scanner.services.client_state import ClientStateService
from health_scanner.services.products import ProductSourceService

PRODUCT_FAILURE_MESSAGE = "Sorry, I couldn't find or analyze this product."
IMAGE_FAILURE_MESSAGE = "Sorry, I couldn't analyze this image."

_logger = logging.getLogger(__name__)


def _millis_clock() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class ResolutionService:
    """Resolves products through cache, product database and AI fallbacks."""

    product_source: ProductSourceService
    analysis_service: AnalysisService
    client_state: ClientStateService
    clock: Callable[[], int] = field(default=_millis_clock)

    async def lookup_barcode(self, client_id: str, barcode: str) -> ResolutionOutcome:
        """Resolve a barcode into an analysis, trying each stage in order."""
        barcode = barcode.strip()
        if not barcode:
            raise ValueError("Barcode must not be empty")

        stage = next_stage(ResolutionStage.IDLE, ResolutionEvent.START)
        trail = [stage]
        record: dict[str, object] | None = None
        analysis: ProductAnalysis | None = None
        from_cache = False

        while stage not in TERMINAL_STAGES:
            if stage is ResolutionStage.CACHE_CHECK:
                analysis = self.client_state.find_by_barcode(client_id, barcode)
                from_cache = analysis is not None
                event = (
                    ResolutionEvent.CACHE_HIT if from_cache else ResolutionEvent.CACHE_MISS
                )
            elif stage is ResolutionStage.SOURCE_LOOKUP:
                try:
                    record = await self.product_source.fetch(barcode)
                    event = ResolutionEvent.SOURCE_FOUND
                except Exception as exc:
                    _logger.warning(
                        "Product source failed for %s, falling back to web search: %s",
                        barcode,
                        exc,
                    )
                    event = ResolutionEvent.SOURCE_FAILED
            elif stage is ResolutionStage.AI_STRUCTURED:
                try:
                    analysis = await self.analysis_service.analyze_product(record or {})
                    event = ResolutionEvent.ANALYSIS_SUCCEEDED
                except AnalysisFailedError as exc:
                    _logger.warning(
                        "Structured analysis failed for %s: %s", barcode, exc.__cause__
                    )
                    event = ResolutionEvent.ANALYSIS_FAILED
            else:
                try:
                    analysis = await self.analysis_service.analyze_barcode(barcode)
                    event = ResolutionEvent.ANALYSIS_SUCCEEDED
                except AnalysisFailedError as exc:
                    _logger.error(
                        "Web search analysis failed for %s: %s", barcode, exc.__cause__
                    )
                    event = ResolutionEvent.ANALYSIS_FAILED
            stage = next_stage(stage, event)
            trail.append(stage)

        if stage is ResolutionStage.FAILED or analysis is None:
            return ResolutionOutcome(
                stage=ResolutionStage.FAILED,
                error_message=PRODUCT_FAILURE_MESSAGE,
                trail=tuple(trail),
            )

        if not from_cache:
            analysis = analysis.tagged(barcode, barcode)
            self._record(client_id, analysis)
        return ResolutionOutcome(
            stage=stage,
            analysis=analysis,
            from_cache=from_cache,
            trail=tuple(trail),
        )

    async def analyze_image(
        self, client_id: str, image_bytes: bytes, media_type: str | None = None
    ) -> ResolutionOutcome:
        """Resolve a product photo with a web-search analysis."""
        trail = (ResolutionStage.AI_WEB_SEARCH,)
        item_id = f"image-{self.clock()}"
        try:
            analysis = await self.analysis_service.analyze_image(image_bytes, media_type)
        except AnalysisFailedError as exc:
            _logger.error("Image analysis failed: %s", exc.__cause__ or exc)
            return ResolutionOutcome(
                stage=ResolutionStage.FAILED,
                error_message=IMAGE_FAILURE_MESSAGE,
                trail=trail + (ResolutionStage.FAILED,),
            )

        analysis = analysis.tagged(item_id)
        self._record(client_id, analysis)
        return ResolutionOutcome(
            stage=ResolutionStage.RESOLVED,
            analysis=analysis,
            trail=trail + (ResolutionStage.RESOLVED,),
        )

    def _record(self, client_id: str, analysis: ProductAnalysis) -> None:
        """Add a resolved analysis to history; storage failures do not undo it."""
        try:
            self.client_state.add_to_history(client_id, analysis)
        except PersistenceError:
            _logger.exception(
                "Failed to record %s in history for client %s", analysis.id, client_id
            )
