"""Classification of header label tokens into output labels and flags."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from .matcher import AllowList, format_label, is_allowed
from .tokenizer import DEFAULT_DELIMITERS, tokenize
from .types import ClassificationResult

DEFAULT_CATEGORY_PREFIX = "sig/"
DEFAULT_NEEDS_FLAG = "needs-sig"
DEFAULT_LABEL_PREFIX = "GitHub/"

# Receives None when the message has no label header at all.
ProcessedPolicy = Callable[[ClassificationResult | None], bool]


def mark_when_categorized(result: ClassificationResult | None) -> bool:
    """Processed once a category is present and nothing asks for one."""

    if result is None:
        return False
    return result.has_category_label and not result.has_needs_category_flag


def mark_always(_result: ClassificationResult | None) -> bool:
    """Processed after the first look, whatever the outcome."""

    return True


PROCESSED_POLICIES: dict[str, ProcessedPolicy] = {
    "categorized": mark_when_categorized,
    "always": mark_always,
}


def default_fallback_label(label_prefix: str, category_prefix: str) -> str:
    """Return ``<label_prefix>other-<namespace>`` (``GitHub/other-sig``)."""

    namespace = category_prefix.strip().rstrip("/")
    return f"{label_prefix}other-{namespace}"


def dedupe_tokens(tokens: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling seen."""

    seen: set[str] = set()
    unique: list[str] = []
    for token in tokens:
        folded = token.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        unique.append(token)
    return unique


def classify(
    tokens: Iterable[str],
    patterns: Sequence[str],
    category_prefix: str = DEFAULT_CATEGORY_PREFIX,
    needs_flag: str = DEFAULT_NEEDS_FLAG,
    *,
    label_prefix: str = DEFAULT_LABEL_PREFIX,
    nested_labels: bool = True,
    fallback_label: str | None = None,
) -> ClassificationResult:
    """Classify a token sequence against an allow-list.

    Every allowed token becomes an output label, whether or not it lives in the
    category namespace. When category tokens are present but none of them is
    allowed, the fallback label is added so the message is still flagged.
    """

    folded_prefix = category_prefix.casefold()
    folded_needs = needs_flag.casefold()
    labels: list[str] = []
    has_other = False
    has_allowed = False
    has_needs = False
    has_category = False

    for token in dedupe_tokens(tokens):
        folded = token.casefold()
        allowed = is_allowed(token, patterns)
        if folded == folded_needs:
            has_needs = True
        if folded_prefix and folded.startswith(folded_prefix):
            has_category = True
            if allowed:
                has_allowed = True
            else:
                has_other = True
        if allowed:
            label = format_label(token, label_prefix, nested=nested_labels)
            if label not in labels:
                labels.append(label)

    if has_other and not has_allowed:
        fallback = fallback_label or default_fallback_label(label_prefix, category_prefix)
        if fallback not in labels:
            labels.append(fallback)

    return ClassificationResult(
        labels=tuple(labels),
        has_other_category=has_other,
        has_allowed_category=has_allowed,
        has_needs_category_flag=has_needs,
        has_category_label=has_category,
    )


class Classifier:
    """Configured classifier shared by the primary and reconciliation passes."""

    def __init__(
        self,
        allow: AllowList | Iterable[str],
        *,
        category_prefix: str = DEFAULT_CATEGORY_PREFIX,
        needs_flag: str = DEFAULT_NEEDS_FLAG,
        label_prefix: str = DEFAULT_LABEL_PREFIX,
        nested_labels: bool = True,
        fallback_label: str | None = None,
        delimiters: str = DEFAULT_DELIMITERS,
        processed_policy: ProcessedPolicy = mark_when_categorized,
    ) -> None:
        self.allow = allow if isinstance(allow, AllowList) else AllowList.from_iterable(allow)
        self.category_prefix = category_prefix
        self.needs_flag = needs_flag
        self.label_prefix = label_prefix
        self.nested_labels = nested_labels
        self.fallback_label = fallback_label or default_fallback_label(
            label_prefix, category_prefix
        )
        self.delimiters = delimiters
        self._processed_policy = processed_policy

    def classify(self, tokens: Iterable[str]) -> ClassificationResult:
        return classify(
            tokens,
            self.allow.patterns,
            self.category_prefix,
            self.needs_flag,
            label_prefix=self.label_prefix,
            nested_labels=self.nested_labels,
            fallback_label=self.fallback_label,
        )

    def classify_header(self, value: str | None) -> ClassificationResult | None:
        """Tokenize and classify a header value; None when there is nothing to classify."""

        if value is None:
            return None
        return self.classify(tokenize(value, self.delimiters))

    def should_mark_processed(self, result: ClassificationResult | None) -> bool:
        return self._processed_policy(result)


__all__ = [
    "Classifier",
    "PROCESSED_POLICIES",
    "ProcessedPolicy",
    "classify",
    "dedupe_tokens",
    "default_fallback_label",
    "mark_always",
    "mark_when_categorized",
]
