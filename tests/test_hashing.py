"""Tests for history hashing."""

from datetime import UTC, datetime

from gleam_backend.domain.plans import PlanHistorySnapshot
from gleam_backend.domain.scans import DetectedIssue
from gleam_backend.services.hashing import compute_history_hash


def _snapshot(
    issues: list[DetectedIssue], takeaway: str = "Bright!"
) -> PlanHistorySnapshot:
    return PlanHistorySnapshot(
        captured_at=datetime(2025, 3, 1, tzinfo=UTC),
        whiteness_score=70,
        shade="A2",
        detected_issues=issues,
        lifestyle_tags=["tea", "coffee"],
        personal_takeaway=takeaway,
    )


def test_hash_ignores_issue_order() -> None:
    stain = DetectedIssue(key="staining", severity="high", notes="")
    plaque = DetectedIssue(key="plaque", severity="low", notes="")

    first = compute_history_hash([_snapshot([stain, plaque])])
    second = compute_history_hash([_snapshot([plaque, stain])])

    assert first == second
    assert len(first) == 64


def test_hash_changes_with_takeaway_and_order() -> None:
    a = _snapshot([], "Bright!")
    b = _snapshot([], "Shine on")

    assert compute_history_hash([a]) != compute_history_hash([b])
    assert compute_history_hash([a, b]) != compute_history_hash([b, a])
