"""Domain models for scan analysis results."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]


class DetectedIssue(BaseModel):
    """Single focus area reported by the analysis oracle."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    severity: Severity
    notes: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ScanResult(BaseModel):
    """Structured output of a smile analysis."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    whiteness_score: int = Field(ge=0, le=100)
    shade: str = Field(min_length=1)
    detected_issues: list[DetectedIssue] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    referral_needed: bool = False
    disclaimer: str = ""
    personal_takeaway: str = ""

    @field_validator("whiteness_score", mode="before")
    @classmethod
    def _round_score(cls, value: object) -> object:
        if isinstance(value, float):
            return round(value)
        return value


@dataclass(frozen=True)
class ScanRecord:
    """Persisted scan owned by a single user. Immutable once stored."""

    id: UUID
    owner_id: str
    created_at: datetime
    result: ScanResult
    context_tags: list[str]
    sequence: int = 0
