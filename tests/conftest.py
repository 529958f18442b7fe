"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from health_scanner.adapters.open_food_facts_client import ProductSourceClient
from health_scanner.config import Settings
from health_scanner.containers import AppContainer
from health_scanner.domain.analysis import ProductAnalysis, Source
from health_scanner.domain.profile import UserProfile
from health_scanner.errors import PersistenceReadError, PersistenceWriteError
from health_scanner.services.analysis import (
    AnalysisClient,
    AnalysisService,
    GroundedText,
)
from health_scanner.services.client_state import (
    ClientStateRepository,
    ClientStateService,
)
from health_scanner.services.meal_plans import MealPlanService
from health_scanner.services.products import ProductSourceService
from health_scanner.services.resolution import ResolutionService

NUTELLA_BARCODE = "3017620422003"

NUTELLA_PRODUCT: dict[str, object] = {
    "code": NUTELLA_BARCODE,
    "product_name": "Nutella",
    "image_url": "https://images.openfoodfacts.org/nutella.jpg",
    "nutriments": {"energy-kcal_100g": 539, "sugars_100g": 56.3, "fat_100g": 30.9},
    "ingredients_text": "Sugar, palm oil, hazelnuts 13%, skimmed milk powder 8.7%",
}

NUTELLA_ANALYSIS: dict[str, object] = {
    "productName": "Nutella",
    "imageUrl": None,
    "score": 25,
    "recommendation": "High in sugar and saturated fat; enjoy occasionally.",
    "organizedData": {
        "calories": "539 kcal",
        "fat": "30.9g",
        "carbohydrates": "57.5g",
        "sugar": "56.3g",
        "protein": "6.3g",
        "ingredients": "Sugar, palm oil, hazelnuts",
    },
}

GROUNDED_TEXT = """Here is what I found:

```json
{
  "productName": "Oat Crunch Granola",
  "score": 68,
  "recommendation": "Good fibre content, watch the added sugar.",
  "organizedData": {"calories": "450 kcal", "sugar": "18g", "protein": "9g"}
}
```
"""


def make_meal(name: str) -> dict[str, object]:
    return {
        "name": name,
        "recipe": f"Prepare {name.lower()} and serve.",
        "nutrition": {
            "calories": "450 kcal",
            "protein": "30g",
            "fat": "12g",
            "carbohydrates": "50g",
        },
    }


def make_weekly_plan(
    days: list[str] | None = None,
) -> dict[str, object]:
    week = days or [
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ]
    return {
        "weeklyPlan": [
            {
                "day": day,
                "meals": {
                    "breakfast": make_meal("Overnight oats"),
                    "lunch": make_meal("Chicken salad"),
                    "dinner": make_meal("Salmon with rice"),
                },
            }
            for day in week
        ],
        "shoppingList": [
            {"item": "Rolled oats", "quantity": "1 kg", "category": "Pantry"},
            {"item": "Salmon fillets", "quantity": "7", "category": "Protein"},
        ],
    }


def make_analysis(item_id: str, name: str = "Product") -> ProductAnalysis:
    return ProductAnalysis(
        id=item_id,
        barcode=item_id,
        product_name=name,
        image_url="https://example.com/image.jpg",
        score=50,
        recommendation="Fine in moderation.",
        organized_data={"calories": "100 kcal"},
    )


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake LLM client returning queued results and recording prompts."""

    structured: list[dict[str, object] | Exception] = field(default_factory=list)
    grounded: list[GroundedText | Exception] = field(default_factory=list)
    structured_calls: list[dict[str, object]] = field(default_factory=list)
    grounded_calls: list[dict[str, object]] = field(default_factory=list)

    async def generate_structured(
        self,
        *,
        model: str,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.structured_calls.append(
            {"model": model, "prompt": prompt, "schema_name": schema_name}
        )
        if not self.structured:
            raise RuntimeError("No structured response queued")
        result = self.structured.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def generate_grounded(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str | None = None,
    ) -> GroundedText:
        self.grounded_calls.append(
            {"model": model, "prompt": prompt, "image_data_url": image_data_url}
        )
        if not self.grounded:
            raise RuntimeError("No grounded response queued")
        result = self.grounded.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def call_count(self) -> int:
        return len(self.structured_calls) + len(self.grounded_calls)


@dataclass
class FakeProductSourceClient(ProductSourceClient):
    """Fake product database keyed by barcode."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        self.calls.append(barcode)
        if self.error is not None:
            raise self.error
        product = self.products.get(barcode)
        if product is None:
            return None
        return {"code": barcode, "status": 1, "product": product}


@dataclass
class InMemoryClientStateRepository(ClientStateRepository):
    """In-memory client state repository for tests."""

    histories: dict[str, list[ProductAnalysis]] = field(default_factory=dict)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    fail_reads: bool = False
    history_read_failures: int = 0
    fail_writes: bool = False
    history_loads: int = 0
    history_saves: int = 0

    def load_history(self, client_id: str) -> list[ProductAnalysis]:
        self.history_loads += 1
        if self.history_read_failures > 0:
            self.history_read_failures -= 1
            raise PersistenceReadError("storage timed out")
        if self.fail_reads:
            raise PersistenceReadError("storage unavailable")
        return list(self.histories.get(client_id, []))

    def save_history(self, client_id: str, history: list[ProductAnalysis]) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("storage rejected write")
        self.history_saves += 1
        self.histories[client_id] = list(history)

    def load_profile(self, client_id: str) -> UserProfile | None:
        if self.fail_reads:
            raise PersistenceReadError("storage unavailable")
        return self.profiles.get(client_id)

    def save_profile(self, client_id: str, profile: UserProfile) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("storage rejected write")
        self.profiles[client_id] = profile


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def product_client() -> FakeProductSourceClient:
    return FakeProductSourceClient(products={NUTELLA_BARCODE: dict(NUTELLA_PRODUCT)})


@pytest.fixture
def state_repository() -> InMemoryClientStateRepository:
    return InMemoryClientStateRepository()


@pytest.fixture
def analysis_service(
    settings: Settings, analysis_client: FakeAnalysisClient
) -> AnalysisService:
    return AnalysisService(
        client=analysis_client,
        analysis_model=settings.openai_analysis_model,
        search_model=settings.openai_search_model,
        placeholder_image_url=settings.placeholder_image_url,
    )


@pytest.fixture
def client_state_service(
    state_repository: InMemoryClientStateRepository,
) -> ClientStateService:
    return ClientStateService(state_repository)


@pytest.fixture
def resolution_service(
    product_client: FakeProductSourceClient,
    analysis_service: AnalysisService,
    client_state_service: ClientStateService,
) -> ResolutionService:
    return ResolutionService(
        product_source=ProductSourceService(product_client),
        analysis_service=analysis_service,
        client_state=client_state_service,
        clock=lambda: 1700000000000,
    )


@pytest.fixture
def container(
    settings: Settings,
    analysis_client: FakeAnalysisClient,
    client_state_service: ClientStateService,
    resolution_service: ResolutionService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        client_state_service=client_state_service,
        resolution_service=resolution_service,
        meal_plan_service=MealPlanService(
            client=analysis_client, model=settings.openai_meal_plan_model
        ),
        close_resources=close_resources,
    )


def grounded(text: str = GROUNDED_TEXT, uris: list[str] | None = None) -> GroundedText:
    return GroundedText(
        text=text,
        citations=[
            Source(title=f"Source {index}", uri=uri)
            for index, uri in enumerate(uris or [])
        ],
    )
