"""Product health analysis using LLMs."""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Protocol

from health_scanner.domain.analysis import AnalysisPayload, ProductAnalysis, Source
from health_scanner.errors import AnalysisFailedError
from health_scanner.services.json_extraction import extract_json

_NUTRIENT_FIELDS = (
    "calories",
    "fat",
    "carbohydrates",
    "sugar",
    "protein",
    "ingredients",
)

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "productName": {"type": "string"},
        "imageUrl": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "score": {
            "type": "number",
            "description": "Health score from 0 to 100, 100 is healthiest.",
        },
        "recommendation": {"type": "string"},
        "organizedData": {
            "type": "object",
            "description": (
                "Key nutritional facts. Values should be strings (e.g., '10g')."
            ),
            "properties": {
                name: {"anyOf": [{"type": "string"}, {"type": "null"}]}
                for name in _NUTRIENT_FIELDS
            },
            "required": list(_NUTRIENT_FIELDS),
            "additionalProperties": False,
        },
    },
    "required": [
        "productName",
        "imageUrl",
        "score",
        "recommendation",
        "organizedData",
    ],
    "additionalProperties": False,
}

_RESPONSE_SHAPE = (
    '{ "productName": "...", "imageUrl": "...", "score": ..., '
    '"recommendation": "...", "organizedData": { "calories": "...", '
    '"fat": "...", "carbohydrates": "...", "sugar": "...", "protein": "...", '
    '"ingredients": "..." } }'
)

_SCORING_RULES = (
    "The score should be a health score from 0 to 100, where 100 is healthiest. "
    "The organizedData values should be strings (e.g., '10g'). "
    "Set imageUrl to a product image URL you found, or null."
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroundedText:
    """Free-form model output with the web citations it was grounded on."""

    text: str
    citations: list[Source] = field(default_factory=list)


class AnalysisClient(Protocol):
    """Interface for LLM text generation."""

    async def generate_structured(
        self,
        *,
        model: str,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return a JSON object conforming to `schema`."""

    async def generate_grounded(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str | None = None,
    ) -> GroundedText:
        """Return free-form text produced with live web search enabled."""


@dataclass
class AnalysisService:
    """Builds analysis prompts and validates model output."""

    client: AnalysisClient
    analysis_model: str
    search_model: str
    placeholder_image_url: str

    async def analyze_product(self, record: dict[str, object]) -> ProductAnalysis:
        """Analyze a raw product database record with schema-constrained output."""
        prompt = (
            "You are an expert food nutritionist. Based on the following data for "
            "a food product, provide a detailed analysis. The data is: "
            f"{json.dumps(record, default=str, ensure_ascii=False)}. "
            "Your response must be a single JSON object adhering to the provided "
            "schema. 'productName' and 'imageUrl' should be extracted from the data."
        )
        try:
            raw = await self.client.generate_structured(
                model=self.analysis_model,
                prompt=prompt,
                schema=ANALYSIS_SCHEMA,
                schema_name="product_analysis",
            )
            payload = AnalysisPayload.model_validate(raw)
        except Exception as exc:
            raise AnalysisFailedError("Structured product analysis failed") from exc

        image_url = (
            _non_empty(record.get("image_url"))
            or _non_empty(payload.image_url)
            or self.placeholder_image_url
        )
        return payload.to_analysis(image_url=image_url)

    async def analyze_barcode(self, barcode: str) -> ProductAnalysis:
        """Find and analyze a product by barcode using web search."""
        prompt = (
            "Using web search, find nutritional information for the food product "
            f"with barcode: {barcode}. After finding the data, act as an expert "
            "food nutritionist. Your response must be a single JSON object with "
            f"the following structure: {_RESPONSE_SHAPE}. {_SCORING_RULES}"
        )
        payload, sources = await self._grounded_analysis(prompt, image_data_url=None)
        image_url = _non_empty(payload.image_url) or self.placeholder_image_url
        return payload.to_analysis(image_url=image_url, sources=sources)

    async def analyze_image(
        self, image_bytes: bytes, media_type: str | None = None
    ) -> ProductAnalysis:
        """Identify a product from a photo and analyze it using web search."""
        if not image_bytes:
            raise AnalysisFailedError("Image is empty")
        data_url = _to_data_url(image_bytes, media_type)
        prompt = (
            "From the provided image of a food product, identify the product. "
            "Then, use this identification to search the web for its nutritional "
            "information. After finding the data, act as an expert food "
            "nutritionist. Your response must be a single JSON object with the "
            f"following structure: {_RESPONSE_SHAPE}. {_SCORING_RULES}"
        )
        payload, sources = await self._grounded_analysis(
            prompt, image_data_url=data_url
        )
        image_url = _non_empty(payload.image_url) or data_url
        return payload.to_analysis(image_url=image_url, sources=sources)

    async def _grounded_analysis(
        self, prompt: str, *, image_data_url: str | None
    ) -> tuple[AnalysisPayload, list[Source]]:
        """Run a web-search generation and validate the JSON it contains."""
        try:
            grounded = await self.client.generate_grounded(
                model=self.search_model,
                prompt=prompt,
                image_data_url=image_data_url,
            )
            payload = AnalysisPayload.model_validate_json(extract_json(grounded.text))
        except Exception as exc:
            raise AnalysisFailedError("Web search product analysis failed") from exc

        sources = [source for source in grounded.citations if source.uri]
        _logger.info(
            "Grounded analysis parsed: product=%s sources=%s",
            payload.product_name,
            len(sources),
        )
        return payload, sources


def _non_empty(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _to_data_url(image_bytes: bytes, media_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _image_media_type(media_type)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type or _detect_mime_type(image_bytes)};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"


def _image_media_type(media_type: str | None) -> str | None:
    """Return the bare image MIME type from a Content-Type value, if any."""
    if not media_type:
        return None
    bare = media_type.split(";")[0].strip().lower()
    return bare if bare.startswith("image/") else None
