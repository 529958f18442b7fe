"""Request bodies accepted by the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BarcodeLookupRequest(BaseModel):
    """Barcode from a scan or manual entry."""

    barcode: str


class MealPlanRequest(BaseModel):
    """Free-text preferences for meal planning."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    goals: str = Field(min_length=1)
    favorite_foods: str = ""
    restrictions: str = ""
