"""Scan history endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request

from gleam_backend.api.auth import require_user
from gleam_backend.api.schemas import DeleteResponse, HistoryItem, HistoryResponse

if TYPE_CHECKING:
    from gleam_backend.containers import AppContainer

router = APIRouter(prefix="/history", tags=["history"])


@router.get("")
async def list_history(
    request: Request,
    limit: int | None = Query(default=None),
    user_id: str = Depends(require_user),
) -> HistoryResponse:
    """Return the caller's scans, newest first."""
    container: AppContainer = request.app.state.container
    records = container.scan_service.list_history(user_id, limit)
    return HistoryResponse(items=[HistoryItem.from_record(r) for r in records])


@router.get("/latest")
async def latest_scan(
    request: Request, user_id: str = Depends(require_user)
) -> HistoryItem:
    """Return the caller's most recent scan."""
    container: AppContainer = request.app.state.container
    return HistoryItem.from_record(container.scan_service.latest(user_id))


@router.delete("")
async def delete_scan(
    request: Request,
    scan_id: UUID = Query(alias="id"),
    user_id: str = Depends(require_user),
) -> DeleteResponse:
    """Delete one of the caller's scans."""
    container: AppContainer = request.app.state.container
    container.scan_service.delete_scan(user_id, scan_id)
    return DeleteResponse(success=True)
