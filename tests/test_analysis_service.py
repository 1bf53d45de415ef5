"""Tests for the analysis service."""

import asyncio
import base64

import pytest

from gleam_backend.errors import GenerationFailed, InvalidInput
from gleam_backend.services.analysis import (
    AnalysisContext,
    AnalysisService,
    _to_data_url,
    build_analysis_prompt,
    decode_image,
)
from tests.conftest import FakeAnalysisClient


def test_analysis_service_returns_validated_result() -> None:
    client = FakeAnalysisClient()
    service = AnalysisService(client=client, model="gpt-4o-mini")

    result = asyncio.run(service.analyze(b"\x89PNG\r\n\x1a\nrest", AnalysisContext()))

    assert result.whiteness_score == 72
    assert result.detected_issues[0].severity == "medium"
    assert client.calls[0]["image_data_url"].startswith("data:image/png;base64,")


def test_analysis_service_rejects_invalid_output() -> None:
    client = FakeAnalysisClient(payload={"whitenessScore": 140, "shade": "A2"})
    service = AnalysisService(client=client, model="gpt-4o-mini")

    with pytest.raises(GenerationFailed):
        asyncio.run(service.analyze(b"img", AnalysisContext()))


def test_analysis_service_wraps_client_errors() -> None:
    client = FakeAnalysisClient(error=ValueError("bad json"))
    service = AnalysisService(client=client, model="gpt-4o-mini")

    with pytest.raises(GenerationFailed):
        asyncio.run(service.analyze(b"img", AnalysisContext()))


def test_fractional_score_and_severity_case_are_normalized() -> None:
    payload = FakeAnalysisClient().payload | {
        "whitenessScore": 71.6,
        "detectedIssues": [{"key": "plaque", "severity": "HIGH", "notes": ""}],
    }
    service = AnalysisService(
        client=FakeAnalysisClient(payload=payload), model="gpt-4o-mini"
    )

    result = asyncio.run(service.analyze(b"img", AnalysisContext()))

    assert result.whiteness_score == 72
    assert result.detected_issues[0].severity == "high"


def test_context_from_raw_cleans_inputs() -> None:
    context = AnalysisContext.from_raw(
        [" coffee ", "", 3, "tea"],
        ["one", "two", " ", "three", "four", "five", "six"],
        [["coffee", " "], "oops", [], ["tea"], ["cola"], ["smoking"], ["red_wine"]],
    )

    assert context.tags == ["coffee", "tea"]
    assert context.previous_takeaways == ["one", "two", "three", "four", "five"]
    assert context.tag_history == [["coffee"], [], [], ["tea"], ["cola"]]


def test_prompt_for_first_scan_mentions_baseline() -> None:
    prompt = build_analysis_prompt(AnalysisContext())

    assert "No lifestyle tags were selected." in prompt
    assert "treat this scan as a baseline" in prompt
    assert "This is the first personal takeaway" in prompt


def test_prompt_highlights_avoided_and_overused_tags() -> None:
    context = AnalysisContext(
        tags=["coffee"],
        previous_takeaways=["Sip smarter"],
        tag_history=[["coffee"], ["coffee", "tea"], ["coffee"], []],
    )

    prompt = build_analysis_prompt(context)

    assert "Scan 4: no lifestyle tags selected" in prompt
    assert "Tag usage counts out of the last 4 scans: coffee: 3/4" in prompt
    assert "Celebrate streaks avoiding: red wine, cola & soda." in prompt
    assert "Call out overused tags with gentle guidance: coffee (3)." in prompt
    assert "Avoid repeating these recent personal takeaways: Sip smarter." in prompt


def test_decode_image_accepts_data_url() -> None:
    encoded = base64.b64encode(b"pixels").decode()

    assert decode_image(encoded) == b"pixels"
    assert decode_image(f"data:image/jpeg;base64,{encoded}") == b"pixels"


def test_decode_image_rejects_garbage() -> None:
    with pytest.raises(InvalidInput):
        decode_image("not base64!!")


def test_to_data_url_defaults_to_jpeg() -> None:
    assert _to_data_url(b"unknown").startswith("data:image/jpeg;base64,")
