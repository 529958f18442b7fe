"""OpenAI Responses API client for product analysis."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from health_scanner.domain.analysis import Source
from health_scanner.services.analysis import AnalysisClient, GroundedText


@dataclass
class OpenAIAnalysisClient(AnalysisClient):
    """Analysis client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        *,
        timeout_seconds: float,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIAnalysisClient":
        """Create an OpenAI analysis client without automatic retries."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key, timeout=timeout_seconds, max_retries=0
            ),
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def generate_structured(
        self,
        *,
        model: str,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload = self._base_payload(model, prompt, image_data_url)
        request_payload["text"] = {
            "format": {
                "type": "json_schema",
                "name": schema_name,
                "strict": True,
                "schema": schema,
            }
        }
        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def generate_grounded(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str | None = None,
    ) -> GroundedText:
        """Call OpenAI Responses API with the web search tool enabled."""
        request_payload = self._base_payload(model, prompt, image_data_url)
        request_payload["tools"] = [{"type": "web_search"}]
        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return GroundedText(text=output_text, citations=_url_citations(response))

    def _base_payload(
        self, model: str, prompt: str, image_data_url: str | None
    ) -> dict[str, object]:
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}
        return request_payload


def _url_citations(response: object) -> list[Source]:
    """Collect unique url_citation annotations from message output items."""
    citations: list[Source] = []
    seen: set[str] = set()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", None) or []:
            for annotation in getattr(part, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                url = getattr(annotation, "url", None)
                if not url or url in seen:
                    continue
                seen.add(url)
                citations.append(
                    Source(title=getattr(annotation, "title", None) or "", uri=url)
                )
    return citations
