"""Scan analysis endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from gleam_backend.api.auth import require_user
from gleam_backend.api.schemas import AnalyzeRequest, AnalyzeResponse, StreakPayload
from gleam_backend.errors import InvalidInput
from gleam_backend.services.analysis import AnalysisContext, decode_image

if TYPE_CHECKING:
    from gleam_backend.containers import AppContainer

router = APIRouter(tags=["scans"])


@router.post("/analyze")
async def analyze(
    body: AnalyzeRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> AnalyzeResponse:
    """Analyze a smile photo, store the result and advance the streak."""
    container: AppContainer = request.app.state.container
    if not body.image:
        raise InvalidInput("Missing or invalid 'image' field")
    image_bytes = decode_image(body.image)
    context = AnalysisContext.from_raw(
        body.tags, body.previous_takeaways, body.tag_history
    )
    result = await container.analysis_service.analyze(
        image_bytes, context, owner_id=user_id
    )
    record, streak = container.scan_service.record_scan(user_id, result, context.tags)
    return AnalyzeResponse(
        id=record.id,
        result=record.result,
        context_tags=record.context_tags,
        created_at=record.created_at,
        streak=StreakPayload.from_state(streak),
    )
