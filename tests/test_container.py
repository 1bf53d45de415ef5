"""Tests for container wiring."""

import asyncio

from gleam_backend.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.plan_service.min_scans == settings.min_scans_for_plan
    assert container.scan_service.max_limit == 100
    asyncio.run(container.close_resources())
