"""Core immutable data structures used throughout headerlabels."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying the label tokens of a single message."""

    labels: tuple[str, ...]
    has_other_category: bool
    has_allowed_category: bool
    has_needs_category_flag: bool
    has_category_label: bool


@dataclass(frozen=True)
class ItemResult:
    """Outcome of processing a single thread."""

    thread_id: str
    status: str  # "labeled" | "skipped" | "error"
    labels: tuple[str, ...] = ()
    marked_processed: bool = False
    reason: str | None = None


@dataclass
class RunMetrics:
    """Counters aggregated over one primary or reconciliation run."""

    processed: int = 0
    labeled: int = 0
    skipped: int = 0
    failures: int = 0
    marked_processed: int = 0
    label_attachments: dict[str, int] = field(default_factory=dict)

    def record(self, result: ItemResult) -> None:
        self.processed += 1
        if result.status == "error":
            self.failures += 1
            return
        if result.status == "skipped":
            self.skipped += 1
        else:
            self.labeled += 1
        for label in result.labels:
            self.label_attachments[label] = self.label_attachments.get(label, 0) + 1
        if result.marked_processed:
            self.marked_processed += 1


@dataclass(frozen=True)
class MaildirAccount:
    """Configured maildir account."""

    name: str
    path: Path


__all__ = [
    "ClassificationResult",
    "ItemResult",
    "RunMetrics",
    "MaildirAccount",
]
