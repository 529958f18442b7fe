"""Product analysis models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)


class Source(BaseModel):
    """Web page cited by a grounded analysis."""

    model_config = _CAMEL_CONFIG

    title: str = ""
    uri: str


class ProductAnalysis(BaseModel):
    """Health analysis for a single food product."""

    model_config = _CAMEL_CONFIG

    id: str
    barcode: str | None = None
    product_name: str
    image_url: str
    score: float = Field(ge=0, le=100)
    recommendation: str
    organized_data: dict[str, str | int | float]
    sources: list[Source] | None = None

    def tagged(self, item_id: str, barcode: str | None = None) -> "ProductAnalysis":
        """Return a copy carrying the resolved id and barcode."""
        return self.model_copy(update={"id": item_id, "barcode": barcode})


class AnalysisPayload(BaseModel):
    """Model output for a product analysis, before it is tagged."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_name: str = Field(min_length=1)
    image_url: str | None = None
    score: float = Field(ge=0, le=100)
    recommendation: str
    organized_data: dict[str, str | int | float | None]

    def to_analysis(
        self,
        *,
        image_url: str,
        sources: list[Source] | None = None,
    ) -> ProductAnalysis:
        """Build an untagged analysis with the resolved image reference."""
        organized = {
            key: value
            for key, value in self.organized_data.items()
            if value is not None
        }
        return ProductAnalysis(
            id="",
            product_name=self.product_name,
            image_url=image_url,
            score=self.score,
            recommendation=self.recommendation,
            organized_data=organized,
            sources=sources,
        )
