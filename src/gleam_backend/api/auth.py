"""Bearer token dependency."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

if TYPE_CHECKING:
    from gleam_backend.containers import AppContainer

_bearer = HTTPBearer(auto_error=False)


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Resolve the caller's user id or raise `Unauthorized`."""
    container: AppContainer = request.app.state.container
    token = credentials.credentials if credentials else None
    user_id = container.auth_service.authenticate(token)
    request.state.user_id = user_id
    return user_id
