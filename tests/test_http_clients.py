"""Tests for OpenAI-backed oracle adapters."""

import asyncio
import json

import pytest

from gleam_backend.adapters.openai_analysis_client import OpenAIAnalysisClient
from gleam_backend.adapters.openai_plan_client import OpenAIPlanClient


class _FakeResponses:
    def __init__(self, output: str) -> None:
        self.output = output
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output})()


class _FakeOpenAI:
    def __init__(self, output: str) -> None:
        self.responses = _FakeResponses(output)


def test_openai_analysis_client_sends_image_and_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"whitenessScore": 70}))
    client = OpenAIAnalysisClient(client=fake)

    result = asyncio.run(
        client.analyze(
            model="gpt-4o-mini",
            instructions="Be kind",
            prompt="Analyze",
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            schema={"type": "object"},
        )
    )

    assert result == {"whitenessScore": 70}
    payload = fake.responses.last_payload
    assert payload["text"]["format"]["name"] == "scan_result"
    assert payload["input"][0]["content"][1]["type"] == "input_image"
    assert payload["temperature"] == 0.2


def test_openai_plan_client_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"plan": {}}))
    client = OpenAIPlanClient(client=fake)

    result = asyncio.run(
        client.generate(
            model="gpt-4o-mini",
            instructions="Plan",
            prompt="History",
            schema={"type": "object"},
        )
    )

    assert result == {"plan": {}}
    assert fake.responses.last_payload["input"] == "History"


def test_openai_plan_client_rejects_empty_output() -> None:
    client = OpenAIPlanClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.generate(
                model="gpt-4o-mini", instructions="", prompt="", schema={}
            )
        )
