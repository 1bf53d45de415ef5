"""OpenAI Responses API client for care plan generation."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from gleam_backend.services.plans import PlanClient


@dataclass
class OpenAIPlanClient(PlanClient):
    """Plan generation backed by OpenAI Responses API."""

    client: AsyncOpenAI
    temperature: float | None = 0.4
    max_output_tokens: int = 600

    @classmethod
    def create(cls, api_key: str) -> "OpenAIPlanClient":
        """Create an OpenAI plan client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": instructions,
            "input": prompt,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "care_plan",
                    "strict": True,
                    "schema": schema,
                }
            },
            "max_output_tokens": self.max_output_tokens,
            "store": False,
        }
        if self.temperature is not None:
            request_payload["temperature"] = self.temperature

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        await self.client.close()
