"""Stable digests of plan input history."""

import hashlib
import json

from gleam_backend.domain.plans import PlanHistorySnapshot


def canonical_history(snapshot: list[PlanHistorySnapshot]) -> list[dict[str, object]]:
    """Return an order-preserving, key-sorted representation of the snapshot."""
    return [
        {
            "whitenessScore": entry.whiteness_score,
            "shade": entry.shade,
            "detectedIssues": [
                {"key": issue.key, "severity": issue.severity, "notes": issue.notes}
                for issue in sorted(
                    entry.detected_issues,
                    key=lambda issue: (issue.key, issue.severity),
                )
            ],
            "lifestyleTags": sorted(set(entry.lifestyle_tags)),
            "personalTakeaway": entry.personal_takeaway,
        }
        for entry in snapshot
    ]


def compute_history_hash(snapshot: list[PlanHistorySnapshot]) -> str:
    """Return a SHA-256 hex digest of the snapshot used for a plan."""
    serialized = json.dumps(
        canonical_history(snapshot),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
