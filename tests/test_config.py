"""Tests for configuration and auth helpers."""

import pytest

from gleam_backend.config import parse_allowed_origins
from gleam_backend.errors import Unauthorized
from gleam_backend.services.auth import AuthService
from tests.conftest import FakeTokenVerifier


def test_parse_allowed_origins() -> None:
    assert parse_allowed_origins(None) == ["*"]
    assert parse_allowed_origins(" * ") == ["*"]
    assert parse_allowed_origins("https://a.app/, https://b.app,,") == [
        "https://a.app",
        "https://b.app",
    ]


def test_auth_service_strips_token() -> None:
    service = AuthService(FakeTokenVerifier())

    assert service.authenticate(" token-a ") == "user-a"


@pytest.mark.parametrize("token", [None, "", "   ", "unknown"])
def test_auth_service_rejects_blank_and_unknown_tokens(token: str | None) -> None:
    service = AuthService(FakeTokenVerifier())

    with pytest.raises(Unauthorized):
        service.authenticate(token)
