"""Product database lookups."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from health_scanner.adapters.open_food_facts_client import ProductSourceClient
from health_scanner.domain.products import SourceLookupResponse
from health_scanner.errors import IncompleteProductDataError, ProductNotFoundError

_logger = logging.getLogger(__name__)


@dataclass
class ProductSourceService:
    """Fetches raw product records and rejects unusable ones."""

    client: ProductSourceClient

    async def fetch(self, barcode: str) -> dict[str, object]:
        """Return the raw product record for a barcode.

        Raises ProductNotFoundError when the database has no product and
        IncompleteProductDataError when the product lacks both a nutrient
        table and an ingredient listing.
        """
        payload = await self.client.get_product(barcode)
        if payload is None:
            raise ProductNotFoundError(f"Product {barcode} not found")

        try:
            lookup = SourceLookupResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProductNotFoundError(
                f"Product {barcode} returned an unreadable record"
            ) from exc
        raw_product = payload.get("product")
        if lookup.status != 1 or lookup.product is None or not raw_product:
            raise ProductNotFoundError(f"Product {barcode} not found")

        if not lookup.product.has_nutrients() and not lookup.product.has_ingredients():
            raise IncompleteProductDataError(
                f"Product {barcode} has no nutrients or ingredients"
            )

        _logger.info("Product source hit: barcode=%s", barcode)
        return raw_product
