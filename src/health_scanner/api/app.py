"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status

from health_scanner.api.models import BarcodeLookupRequest, MealPlanRequest
from health_scanner.app_logging import configure_logging
from health_scanner.config import normalize_client_id
from health_scanner.containers import AppContainer
from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.domain.meal_plans import WeeklyPlan
from health_scanner.domain.profile import HealthGoals
from health_scanner.domain.resolution import ResolutionOutcome
from health_scanner.errors import MealPlanGenerationError, PersistenceWriteError

MEAL_PLAN_FAILURE_MESSAGE = "Sorry, I couldn't generate a meal plan."
SAVE_FAILURE_MESSAGE = "Sorry, I couldn't save your changes."


def client_id_header(x_client_id: str | None = Header(default=None)) -> str:
    """Resolve the calling client's id from the request headers."""
    return normalize_client_id(x_client_id)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def _container(request: Request) -> AppContainer:
        return request.app.state.container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/products/lookup", response_model_exclude_none=True)
    async def lookup_product(
        body: BarcodeLookupRequest,
        request: Request,
        client_id: str = Depends(client_id_header),
    ) -> ProductAnalysis:
        """Resolve a scanned or typed barcode."""
        barcode = body.barcode.strip()
        if not barcode:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Barcode must not be empty.",
            )
        outcome = await _container(request).resolution_service.lookup_barcode(
            client_id, barcode
        )
        return _analysis_or_error(outcome)

    @app.post("/products/image", response_model_exclude_none=True)
    async def analyze_image(
        request: Request,
        client_id: str = Depends(client_id_header),
    ) -> ProductAnalysis:
        """Identify and analyze a product from an uploaded photo."""
        image_bytes = await request.body()
        if not image_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Image body must not be empty.",
            )
        outcome = await _container(request).resolution_service.analyze_image(
            client_id, image_bytes, request.headers.get("content-type")
        )
        return _analysis_or_error(outcome)

    @app.get("/history", response_model_exclude_none=True)
    async def list_history(
        request: Request, client_id: str = Depends(client_id_header)
    ) -> list[ProductAnalysis]:
        """Return the scan history, most recent first."""
        return _container(request).client_state_service.get_history(client_id)

    @app.get("/history/{item_id}", response_model_exclude_none=True)
    async def history_item(
        item_id: str, request: Request, client_id: str = Depends(client_id_header)
    ) -> ProductAnalysis:
        """Return a single history entry."""
        item = _container(request).client_state_service.find_by_id(client_id, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return item

    @app.delete("/history")
    async def clear_history(
        request: Request, client_id: str = Depends(client_id_header)
    ) -> dict[str, str]:
        """Remove every history entry for the client."""
        try:
            _container(request).client_state_service.clear_history(client_id)
        except PersistenceWriteError:
            logger.exception("Failed to clear history for client %s", client_id)
            raise _save_failed() from None
        return {"status": "ok"}

    @app.get("/profile")
    async def get_profile(
        request: Request, client_id: str = Depends(client_id_header)
    ) -> HealthGoals:
        """Return the client's health goals."""
        return _container(request).client_state_service.get_goals(client_id)

    @app.put("/profile/goals")
    async def save_goals(
        goals: HealthGoals,
        request: Request,
        client_id: str = Depends(client_id_header),
    ) -> HealthGoals:
        """Save the client's health goals."""
        try:
            profile = _container(request).client_state_service.save_goals(
                client_id, goals
            )
        except PersistenceWriteError:
            logger.exception("Failed to save goals for client %s", client_id)
            raise _save_failed() from None
        return profile.goals

    @app.post("/meal-plans")
    async def generate_meal_plan(
        body: MealPlanRequest,
        request: Request,
        client_id: str = Depends(client_id_header),
    ) -> WeeklyPlan:
        """Generate a weekly meal plan from preferences and scan history."""
        state_container = _container(request)
        history = state_container.client_state_service.get_history(client_id)
        try:
            return await state_container.meal_plan_service.generate(
                history,
                body.goals,
                body.favorite_foods,
                body.restrictions,
            )
        except MealPlanGenerationError:
            logger.exception("Meal plan generation failed")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=MEAL_PLAN_FAILURE_MESSAGE,
            ) from None

    return app


def _analysis_or_error(outcome: ResolutionOutcome) -> ProductAnalysis:
    if outcome.analysis is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=outcome.error_message,
        )
    return outcome.analysis


def _save_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=SAVE_FAILURE_MESSAGE,
    )
