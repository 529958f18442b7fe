"""Boundary records for the product database."""

from pydantic import BaseModel, ConfigDict


class SourceProduct(BaseModel):
    """Fields of a product record the pipeline relies on."""

    model_config = ConfigDict(extra="allow")

    nutriments: dict[str, object] | None = None
    ingredients_text: str | None = None

    def has_nutrients(self) -> bool:
        """Return True when the nutrient table has any entries."""
        return bool(self.nutriments)

    def has_ingredients(self) -> bool:
        """Return True when an ingredient listing is present."""
        return bool(self.ingredients_text and self.ingredients_text.strip())


class SourceLookupResponse(BaseModel):
    """Envelope returned by the product database."""

    model_config = ConfigDict(extra="ignore")

    status: int = 0
    product: SourceProduct | None = None
