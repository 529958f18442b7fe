"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from health_scanner.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from health_scanner.adapters.openai_analysis_client import OpenAIAnalysisClient
from health_scanner.adapters.supabase_client_state_repository import (
    SupabaseClientStateRepository,
)
from health_scanner.config import Settings
from health_scanner.services.analysis import AnalysisService
from health_scanner.services.client_state import ClientStateService
from health_scanner.services.meal_plans import MealPlanService
from health_scanner.services.products import ProductSourceService
from health_scanner.services.resolution import ResolutionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    client_state_service: ClientStateService
    resolution_service: ResolutionService
    meal_plan_service: MealPlanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    client_state_service = ClientStateService(
        SupabaseClientStateRepository(supabase_client)
    )
    product_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.open_food_facts_base_url,
        user_agent=resolved_settings.open_food_facts_user_agent,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    openai_client = OpenAIAnalysisClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.request_timeout_seconds,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    analysis_service = AnalysisService(
        client=openai_client,
        analysis_model=resolved_settings.openai_analysis_model,
        search_model=resolved_settings.openai_search_model,
        placeholder_image_url=resolved_settings.placeholder_image_url,
    )
    resolution_service = ResolutionService(
        product_source=ProductSourceService(product_client),
        analysis_service=analysis_service,
        client_state=client_state_service,
    )
    meal_plan_service = MealPlanService(
        client=openai_client,
        model=resolved_settings.openai_meal_plan_model,
    )

    async def close_resources() -> None:
        await product_client.close()
        await openai_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        client_state_service=client_state_service,
        resolution_service=resolution_service,
        meal_plan_service=meal_plan_service,
        close_resources=close_resources,
    )
