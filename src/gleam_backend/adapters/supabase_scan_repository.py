"""Supabase-backed scan record repository."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from gleam_backend.adapters.supabase_errors import execute
from gleam_backend.domain.scans import ScanRecord, ScanResult
from gleam_backend.errors import StorageError
from gleam_backend.services.scans import ScanRepository

_logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, owner_id, sequence, created_at, whiteness_score, shade, detected_issues, "
    "confidence, referral_needed, disclaimer, personal_takeaway, context_tags"
)


@dataclass
class SupabaseScanRepository(ScanRepository):
    """Supabase implementation for scan persistence."""

    client: Client

    def insert(
        self, owner_id: str, result: ScanResult, context_tags: list[str]
    ) -> ScanRecord:
        """Insert a scan; id, sequence and created_at are assigned by the database."""
        payload = {
            "owner_id": owner_id,
            "whiteness_score": result.whiteness_score,
            "shade": result.shade,
            "detected_issues": [
                issue.model_dump(mode="json") for issue in result.detected_issues
            ],
            "confidence": result.confidence,
            "referral_needed": result.referral_needed,
            "disclaimer": result.disclaimer,
            "personal_takeaway": result.personal_takeaway,
            "context_tags": context_tags,
        }
        response = execute(
            self.client.table("scan_results").insert(payload), "insert_scan"
        )
        if not response.data:
            raise StorageError("insert_scan")
        return _parse_row(response.data[0])

    def list_recent(self, owner_id: str, limit: int) -> list[ScanRecord]:
        """Return scans newest first."""
        response = execute(
            self.client.table("scan_results")
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .order("created_at", desc=True)
            .order("sequence", desc=True)
            .limit(limit),
            "list_scans",
        )
        return [_parse_row(row) for row in response.data or []]

    def delete(self, owner_id: str, scan_id: UUID) -> bool:
        """Delete a scan owned by the user."""
        response = execute(
            self.client.table("scan_results")
            .delete()
            .eq("owner_id", owner_id)
            .eq("id", str(scan_id)),
            "delete_scan",
        )
        return bool(response.data)

    def count(self, owner_id: str) -> int:
        """Return the exact number of stored scans."""
        response = execute(
            self.client.table("scan_results")
            .select("id", count="exact")
            .eq("owner_id", owner_id)
            .limit(1),
            "count_scans",
        )
        return int(response.count or 0)


def _parse_row(row: dict[str, object]) -> ScanRecord:
    created_at_raw = row.get("created_at")
    if not isinstance(created_at_raw, str) or not created_at_raw:
        _logger.error("Scan row has no created_at", extra={"scan_id": row.get("id")})
        raise StorageError("parse_scan")
    created_at = datetime.fromisoformat(created_at_raw)
    result = ScanResult.model_validate(
        {
            "whiteness_score": row.get("whiteness_score", 0),
            "shade": row.get("shade") or "unknown",
            "detected_issues": row.get("detected_issues") or [],
            "confidence": row.get("confidence", 0.0),
            "referral_needed": bool(row.get("referral_needed", False)),
            "disclaimer": row.get("disclaimer") or "",
            "personal_takeaway": row.get("personal_takeaway") or "",
        }
    )
    return ScanRecord(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        created_at=created_at,
        result=result,
        context_tags=list(row.get("context_tags") or []),
        sequence=int(row.get("sequence") or 0),
    )
