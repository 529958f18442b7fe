"""Tests for the product database service."""

import asyncio
from dataclasses import dataclass

import pytest

from health_scanner.adapters.open_food_facts_client import ProductSourceClient
from health_scanner.domain.products import SourceProduct
from health_scanner.errors import (
    IncompleteProductDataError,
    ProductNotFoundError,
    ProductSourceError,
)
from health_scanner.services.products import ProductSourceService
from tests.conftest import NUTELLA_BARCODE, NUTELLA_PRODUCT, FakeProductSourceClient


@dataclass
class StaticPayloadClient(ProductSourceClient):
    payload: dict[str, object] | None

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        return self.payload


def test_fetch_returns_raw_product_unmodified() -> None:
    service = ProductSourceService(
        FakeProductSourceClient(products={NUTELLA_BARCODE: dict(NUTELLA_PRODUCT)})
    )

    record = asyncio.run(service.fetch(NUTELLA_BARCODE))

    assert record == NUTELLA_PRODUCT


def test_fetch_raises_not_found_for_unknown_barcode() -> None:
    service = ProductSourceService(FakeProductSourceClient())

    with pytest.raises(ProductNotFoundError):
        asyncio.run(service.fetch("0000000000000"))


def test_fetch_raises_not_found_for_status_zero() -> None:
    service = ProductSourceService(
        StaticPayloadClient({"status": 0, "status_verbose": "product not found"})
    )

    with pytest.raises(ProductNotFoundError):
        asyncio.run(service.fetch("123"))


def test_fetch_raises_incomplete_without_nutrients_or_ingredients() -> None:
    service = ProductSourceService(
        StaticPayloadClient(
            {
                "status": 1,
                "product": {
                    "product_name": "Mystery bar",
                    "nutriments": {},
                    "ingredients_text": "  ",
                },
            }
        )
    )

    with pytest.raises(IncompleteProductDataError) as exc_info:
        asyncio.run(service.fetch("123"))

    assert isinstance(exc_info.value, ProductSourceError)


def test_fetch_accepts_ingredients_without_nutrients() -> None:
    product = {"product_name": "Plain oats", "ingredients_text": "Whole grain oats"}
    service = ProductSourceService(StaticPayloadClient({"status": 1, "product": product}))

    record = asyncio.run(service.fetch("123"))

    assert record == product


def test_fetch_rejects_malformed_payload() -> None:
    service = ProductSourceService(
        StaticPayloadClient({"status": "unknown", "product": "not-a-record"})
    )

    with pytest.raises(ProductNotFoundError):
        asyncio.run(service.fetch("123"))


def test_source_product_declares_only_completeness_fields() -> None:
    product = SourceProduct.model_validate(NUTELLA_PRODUCT)

    assert set(SourceProduct.model_fields) == {"nutriments", "ingredients_text"}
    assert product.has_nutrients()
    assert product.has_ingredients()
