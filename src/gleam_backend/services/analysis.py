"""Smile analysis via a vision model."""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from gleam_backend.domain.lifestyle import summarize_tag_usage, tag_label
from gleam_backend.domain.scans import ScanResult
from gleam_backend.errors import GenerationFailed, InvalidInput
from gleam_backend.services.oracle import call_oracle

_logger = logging.getLogger(__name__)

MAX_PREVIOUS_TAKEAWAYS = 5
MAX_TAG_HISTORY = 5

_ISSUE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "key": {"type": "string"},
        "severity": {"type": "string", "enum": ["low", "medium", "high"]},
        "notes": {"type": "string"},
    },
    "required": ["key", "severity", "notes"],
    "additionalProperties": False,
}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "whitenessScore": {"type": "integer", "minimum": 0, "maximum": 100},
        "shade": {"type": "string"},
        "detectedIssues": {"type": "array", "items": _ISSUE_SCHEMA},
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "referralNeeded": {"type": "boolean"},
        "disclaimer": {"type": "string"},
        "personalTakeaway": {"type": "string"},
    },
    "required": [
        "whitenessScore",
        "shade",
        "detectedIssues",
        "confidence",
        "referralNeeded",
        "disclaimer",
        "personalTakeaway",
    ],
    "additionalProperties": False,
}

ANALYSIS_INSTRUCTIONS = "\n".join(
    [
        "You are Gleam's virtual cosmetic dental designer. Study each smile "
        "photo, evaluate whitening opportunities, and deliver precise coaching "
        "in an uplifting tone.",
        "Guidance:",
        "- Use Vita shade codes like A2 and keep it to one value.",
        "- Use lifestyle tags (coffee, wine, etc.) throughout the analysis.",
        "- Keep the personal takeaway energetic and concise, roughly 10 words.",
        "  Fold in lifestyle tags and avoid repeating recent takeaways.",
        "- Praise zero-use streaks and coach frequent tags.",
        "  If no history exists, focus on sustaining bright habits.",
        "- Keep each detected issue concise with key, severity, and next step.",
        "- Set referralNeeded to true only when clinical follow-up is needed.",
        "- Keep the disclaimer short and in plain language (max 22 words).",
        "- Ensure confidence stays within 0.0 to 1.0 and reflects certainty.",
    ]
)


class AnalysisClient(Protocol):
    """Interface for the vision analysis oracle."""

    async def analyze(
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        image_data_url: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return raw structured analysis data."""


@dataclass(frozen=True)
class AnalysisContext:
    """Lifestyle context sent along with a photo."""

    tags: list[str] = field(default_factory=list)
    previous_takeaways: list[str] = field(default_factory=list)
    tag_history: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_raw(
        cls,
        tags: object,
        previous_takeaways: object,
        tag_history: object,
    ) -> "AnalysisContext":
        """Build a context from loosely typed request fields."""
        return cls(
            tags=_clean_strings(tags),
            previous_takeaways=_clean_strings(previous_takeaways)[
                :MAX_PREVIOUS_TAKEAWAYS
            ],
            tag_history=[
                _clean_strings(entry) if isinstance(entry, list) else []
                for entry in (tag_history if isinstance(tag_history, list) else [])[
                    :MAX_TAG_HISTORY
                ]
            ],
        )


@dataclass
class AnalysisService:
    """Prepares analysis prompts and validates oracle output."""

    client: AnalysisClient
    model: str
    timeout_seconds: float = 30.0

    async def analyze(
        self,
        image_bytes: bytes,
        context: AnalysisContext,
        owner_id: str | None = None,
    ) -> ScanResult:
        """Score a smile photo."""
        _logger.info(
            "Processing dental scan analysis",
            extra={
                "user_id": owner_id,
                "tags": context.tags,
                "previous_takeaways": len(context.previous_takeaways),
                "tag_history_samples": len(context.tag_history),
            },
        )
        raw = await call_oracle(
            self.client.analyze(
                model=self.model,
                instructions=ANALYSIS_INSTRUCTIONS,
                prompt=build_analysis_prompt(context),
                image_data_url=_to_data_url(image_bytes),
                schema=ANALYSIS_SCHEMA,
            ),
            timeout_seconds=self.timeout_seconds,
            operation="analyze",
            owner_id=owner_id,
        )
        try:
            result = ScanResult.model_validate(raw)
        except ValidationError as exc:
            _logger.warning(
                "Analysis output failed validation", extra={"user_id": owner_id}
            )
            raise GenerationFailed("Invalid analysis output") from exc
        _logger.info(
            "Analysis completed",
            extra={
                "user_id": owner_id,
                "whiteness_score": result.whiteness_score,
                "confidence": result.confidence,
            },
        )
        return result


def build_analysis_prompt(context: AnalysisContext) -> str:
    """Compose the user prompt from lifestyle context."""
    parts = [
        "Analyze this teeth photo for whitening insights. "
        "Provide shade score, focus areas, and confidence level."
    ]
    if context.tags:
        parts.append(f"Lifestyle tags to weigh: {', '.join(context.tags)}.")
    else:
        parts.append("No lifestyle tags were selected.")

    if context.tag_history:
        lines = []
        for index, entry in enumerate(context.tag_history, start=1):
            if entry:
                labels = ", ".join(tag_label(tag) for tag in entry)
                lines.append(f"Scan {index}: {labels}")
            else:
                lines.append(f"Scan {index}: no lifestyle tags selected")
        parts.append(f"Lifestyle tag history (latest first): {' | '.join(lines)}.")
    else:
        parts.append(
            "No recorded lifestyle tag history yet; treat this scan as a baseline."
        )

    usage = summarize_tag_usage(context.tag_history)
    if usage.samples:
        parts.append(
            f"Tag usage counts out of the last {usage.samples} scans: "
            f"{usage.summary()}."
        )
    avoided = usage.avoided[:2]
    if avoided:
        parts.append(f"Celebrate streaks avoiding: {', '.join(avoided)}.")
    overused = usage.overused[:2]
    if overused:
        listed = ", ".join(f"{label} ({count})" for label, count in overused)
        parts.append(f"Call out overused tags with gentle guidance: {listed}.")

    if context.previous_takeaways:
        parts.append(
            "Avoid repeating these recent personal takeaways: "
            f"{' | '.join(context.previous_takeaways)}."
        )
    else:
        parts.append("This is the first personal takeaway for this streak.")
    return " ".join(parts)


def decode_image(encoded: str) -> bytes:
    """Decode a base64 image, accepting an optional data URL prefix."""
    payload = encoded.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", maxsplit=1)[1]
    if not payload:
        raise InvalidInput("Missing or invalid 'image' field")
    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInput("Missing or invalid 'image' field") from exc
    if not image_bytes:
        raise InvalidInput("Missing or invalid 'image' field")
    return image_bytes


def _clean_strings(values: object) -> list[str]:
    if not isinstance(values, list):
        return []
    return [
        value.strip() for value in values if isinstance(value, str) and value.strip()
    ]


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
