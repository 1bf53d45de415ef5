"""Personalized plan endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from gleam_backend.api.auth import require_user
from gleam_backend.api.schemas import PlanResponse

if TYPE_CHECKING:
    from gleam_backend.containers import AppContainer

router = APIRouter(prefix="/plan", tags=["plan"])


async def _plan_for(request: Request, user_id: str) -> PlanResponse:
    container: AppContainer = request.app.state.container
    outcome = await container.plan_service.get_plan(user_id)
    return PlanResponse.from_outcome(outcome)


@router.post("")
async def request_plan(
    request: Request, user_id: str = Depends(require_user)
) -> PlanResponse:
    """Return the caller's plan, generating one when it is due.

    History context is read from storage; any request body is ignored.
    """
    return await _plan_for(request, user_id)


@router.get("/latest")
async def latest_plan(
    request: Request, user_id: str = Depends(require_user)
) -> PlanResponse:
    """Read-oriented variant of the plan request."""
    return await _plan_for(request, user_id)
