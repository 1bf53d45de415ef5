"""Lifestyle tag catalogue and usage summaries."""

import math
from dataclasses import dataclass

LIFESTYLE_TAG_LABELS: dict[str, str] = {
    "coffee": "coffee",
    "red_wine": "red wine",
    "cola": "cola & soda",
    "tea": "tea",
    "smoking": "smoking",
}

KNOWN_LIFESTYLE_TAG_IDS = list(LIFESTYLE_TAG_LABELS)


def tag_label(tag_id: str) -> str:
    """Return a friendly label, falling back to the raw id."""
    return LIFESTYLE_TAG_LABELS.get(tag_id, tag_id)


@dataclass(frozen=True)
class TagUsage:
    """How often each known tag appeared across a run of scans."""

    counts: dict[str, int]
    samples: int

    @property
    def avoided(self) -> list[str]:
        """Labels of known tags that never appeared."""
        if self.samples == 0:
            return []
        return [tag_label(tag) for tag, count in self.counts.items() if count == 0]

    @property
    def overused(self) -> list[tuple[str, int]]:
        """Labels and counts of tags present in at least half the scans."""
        if self.samples == 0:
            return []
        threshold = max(2, math.ceil(self.samples * 0.5))
        return [
            (tag_label(tag), count)
            for tag, count in self.counts.items()
            if count >= threshold
        ]

    def summary(self) -> str:
        if self.samples == 0:
            return ""
        return ", ".join(
            f"{tag_label(tag)}: {count}/{self.samples}"
            for tag, count in self.counts.items()
        )


def summarize_tag_usage(tag_history: list[list[str]]) -> TagUsage:
    """Count known tags per scan, ignoring duplicates within a scan."""
    counts = dict.fromkeys(KNOWN_LIFESTYLE_TAG_IDS, 0)
    for entry in tag_history:
        for tag in set(entry):
            if tag in counts:
                counts[tag] += 1
    return TagUsage(counts=counts, samples=len(tag_history))
