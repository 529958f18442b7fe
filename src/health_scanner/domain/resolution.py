"""Product resolution state machine.

Resolution walks a fixed fallback pipeline:

    IDLE -> CACHE_CHECK -> SOURCE_LOOKUP -> AI_STRUCTURED -> AI_WEB_SEARCH

ending in RESOLVED or FAILED. Transitions are pure; the service that drives
them performs the side effects for each stage it lands on.
"""

from dataclasses import dataclass, field
from enum import Enum

from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.errors import InvalidTransitionError


class ResolutionStage(str, Enum):
    """Pipeline stage of a resolution attempt."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    SOURCE_LOOKUP = "source_lookup"
    AI_STRUCTURED = "ai_structured"
    AI_WEB_SEARCH = "ai_web_search"
    RESOLVED = "resolved"
    FAILED = "failed"


class ResolutionEvent(str, Enum):
    """Outcome reported by the current stage."""

    START = "start"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    SOURCE_FOUND = "source_found"
    SOURCE_FAILED = "source_failed"
    ANALYSIS_SUCCEEDED = "analysis_succeeded"
    ANALYSIS_FAILED = "analysis_failed"


TERMINAL_STAGES = frozenset({ResolutionStage.RESOLVED, ResolutionStage.FAILED})

_TRANSITIONS: dict[tuple[ResolutionStage, ResolutionEvent], ResolutionStage] = {
    (ResolutionStage.IDLE, ResolutionEvent.START): ResolutionStage.CACHE_CHECK,
    (
        ResolutionStage.CACHE_CHECK,
        ResolutionEvent.CACHE_HIT,
    ): ResolutionStage.RESOLVED,
    (
        ResolutionStage.CACHE_CHECK,
        ResolutionEvent.CACHE_MISS,
    ): ResolutionStage.SOURCE_LOOKUP,
    (
        ResolutionStage.SOURCE_LOOKUP,
        ResolutionEvent.SOURCE_FOUND,
    ): ResolutionStage.AI_STRUCTURED,
    (
        ResolutionStage.SOURCE_LOOKUP,
        ResolutionEvent.SOURCE_FAILED,
    ): ResolutionStage.AI_WEB_SEARCH,
    (
        ResolutionStage.AI_STRUCTURED,
        ResolutionEvent.ANALYSIS_SUCCEEDED,
    ): ResolutionStage.RESOLVED,
    (
        ResolutionStage.AI_STRUCTURED,
        ResolutionEvent.ANALYSIS_FAILED,
    ): ResolutionStage.AI_WEB_SEARCH,
    (
        ResolutionStage.AI_WEB_SEARCH,
        ResolutionEvent.ANALYSIS_SUCCEEDED,
    ): ResolutionStage.RESOLVED,
    (
        ResolutionStage.AI_WEB_SEARCH,
        ResolutionEvent.ANALYSIS_FAILED,
    ): ResolutionStage.FAILED,
}


def next_stage(stage: ResolutionStage, event: ResolutionEvent) -> ResolutionStage:
    """Return the stage that follows `stage` when `event` occurs."""
    try:
        return _TRANSITIONS[(stage, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Event {event.value} is not valid in stage {stage.value}"
        ) from None


@dataclass(frozen=True)
class ResolutionOutcome:
    """Terminal result of a resolution attempt."""

    stage: ResolutionStage
    analysis: ProductAnalysis | None = None
    error_message: str | None = None
    from_cache: bool = False
    trail: tuple[ResolutionStage, ...] = field(default_factory=tuple)

    @property
    def resolved(self) -> bool:
        """Return True when an analysis was produced."""
        return self.stage is ResolutionStage.RESOLVED
