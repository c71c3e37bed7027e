"""Primary and reconciliation passes over a mailbox."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .classifier import Classifier
from .headers import extract_header
from .labels import LabelCache
from .ports import LabelProvider, Mailbox, ThreadHandle
from .types import ClassificationResult, ItemResult, RunMetrics

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADER = "X-GitHub-Labels"
DEFAULT_PAGE_SIZE = 50

ThreadHandler = Callable[[ThreadHandle, LabelCache], ItemResult]


@dataclass(frozen=True)
class RunSettings:
    """Options shared by both passes."""

    processed_label: str
    header: str = DEFAULT_HEADER
    query: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    prewarm_labels: bool = False
    dry_run: bool = False


def label_term(name: str, *, negated: bool = False) -> str:
    """Return a ``label:`` search term, quoting names that need it."""

    value = name
    if any(char.isspace() or char in "\"'\\" for char in name):
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        value = f'"{escaped}"'
    return f"{'-' if negated else ''}label:{value}"


def build_query(base: str, *terms: str) -> str:
    return " ".join(part for part in (base.strip(), *terms) if part)


class Tagger:
    """Classify threads and attach the resulting labels.

    The primary pass looks at threads without the processed marker and may set
    it. The reconciliation pass revisits marked threads and only adds labels, so
    it can be repeated freely after the allow-list or fallback policy changes.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        labels: LabelProvider,
        classifier: Classifier,
        settings: RunSettings,
        *,
        name: str = "default",
    ) -> None:
        self._mailbox = mailbox
        self._labels = labels
        self._classifier = classifier
        self.settings = settings
        self.name = name

    @property
    def primary_query(self) -> str:
        return build_query(
            self.settings.query,
            label_term(self.settings.processed_label, negated=True),
        )

    @property
    def reconcile_query(self) -> str:
        return build_query(self.settings.query, label_term(self.settings.processed_label))

    def run(self) -> RunMetrics:
        """Run the primary pass and return its counters."""

        cache = LabelCache(self._labels)
        if self.settings.prewarm_labels:
            cache.warm()
        metrics = self._drive(self.primary_query, self.process_thread, cache, consumes=True)
        LOGGER.info(
            "Primary pass for '%s': processed=%s labeled=%s marked=%s failures=%s",
            self.name,
            metrics.processed,
            metrics.labeled,
            metrics.marked_processed,
            metrics.failures,
        )
        return metrics

    def reconcile(self) -> RunMetrics:
        """Re-apply labels to already processed threads."""

        cache = LabelCache(self._labels)
        metrics = self._drive(self.reconcile_query, self.reconcile_thread, cache, consumes=False)
        LOGGER.info(
            "Reconciliation for '%s': processed=%s labeled=%s failures=%s",
            self.name,
            metrics.processed,
            metrics.labeled,
            metrics.failures,
        )
        return metrics

    def classify_thread(self, thread: ThreadHandle) -> ClassificationResult | None:
        """Classify the most recent message of ``thread``; None without a header."""

        messages = thread.messages()
        if not messages:
            return None
        value = extract_header(messages[-1], self.settings.header)
        return self._classifier.classify_header(value)

    def process_thread(self, thread: ThreadHandle, cache: LabelCache) -> ItemResult:
        thread_id = thread.id
        try:
            result = self.classify_thread(thread)
            labels = result.labels if result else ()
            mark = self._classifier.should_mark_processed(result)
            self._attach(thread, labels, cache)
            if mark:
                self._attach(thread, (self.settings.processed_label,), cache)
        except Exception as exc:
            LOGGER.exception("Failed to process thread %s (account=%s)", thread_id, self.name)
            return ItemResult(thread_id=thread_id, status="error", reason=str(exc))

        if result is None:
            LOGGER.debug("No %s header on thread %s", self.settings.header, thread_id)
        return ItemResult(
            thread_id=thread_id,
            status="labeled" if labels else "skipped",
            labels=labels,
            marked_processed=mark,
        )

    def reconcile_thread(self, thread: ThreadHandle, cache: LabelCache) -> ItemResult:
        thread_id = thread.id
        try:
            result = self.classify_thread(thread)
            labels = result.labels if result else ()
            self._attach(thread, labels, cache)
        except Exception as exc:
            LOGGER.exception("Failed to reconcile thread %s (account=%s)", thread_id, self.name)
            return ItemResult(thread_id=thread_id, status="error", reason=str(exc))
        return ItemResult(
            thread_id=thread_id,
            status="labeled" if labels else "skipped",
            labels=labels,
        )

    def _attach(self, thread: ThreadHandle, names: Iterable[str], cache: LabelCache) -> None:
        for name in names:
            if self.settings.dry_run:
                LOGGER.info("Dry-run: would attach '%s' to %s", name, thread.id)
                continue
            thread.add_label(cache.get_or_create(name))

    def _drive(
        self,
        query: str,
        handler: ThreadHandler,
        cache: LabelCache,
        *,
        consumes: bool,
    ) -> RunMetrics:
        metrics = RunMetrics()
        seen: set[str] = set()
        offset = 0
        page_size = self.settings.page_size
        while True:
            page = self._mailbox.search(query, offset, page_size)
            if not page:
                break
            fresh = 0
            consumed = 0
            for thread in page:
                thread_id = thread.id
                if thread_id in seen:
                    continue
                seen.add(thread_id)
                fresh += 1
                result = handler(thread, cache)
                metrics.record(result)
                if consumes and result.marked_processed and not self.settings.dry_run:
                    consumed += 1
            if not fresh:
                # search has not caught up with our own label changes yet
                offset += len(page)
                continue
            # marked threads drop out of the live result set
            offset += len(page) - consumed
        return metrics


__all__ = ["RunSettings", "Tagger", "build_query", "label_term"]
