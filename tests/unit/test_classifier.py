from __future__ import annotations

from headerlabels.classifier import (
    Classifier,
    classify,
    dedupe_tokens,
    default_fallback_label,
    mark_always,
    mark_when_categorized,
)
from headerlabels.matcher import FULLWIDTH_SLASH
from headerlabels.types import ClassificationResult


def test_duplicates_collapse_to_first_seen_casing():
    result = classify(["Kind/Bug", "kind/bug"], ["kind/bug"])

    assert result.labels == ("GitHub/Kind/Bug",)


def test_dedupe_tokens_preserves_order():
    assert dedupe_tokens(["b", "A", "a", "B", "c"]) == ["b", "A", "c"]


def test_unknown_category_gets_fallback_label_only():
    result = classify(["sig/unknown"], ["kind/bug"])

    assert result.has_category_label is True
    assert result.has_other_category is True
    assert result.has_allowed_category is False
    assert result.labels == ("GitHub/other-sig",)


def test_allowed_category_suppresses_fallback():
    result = classify(["sig/node", "sig/unknown"], ["sig/node"])

    assert result.has_allowed_category is True
    assert result.has_other_category is True
    assert result.labels == ("GitHub/sig/node",)


def test_needs_flag_keeps_labels_but_blocks_processed_marker():
    result = classify(["needs-sig", "sig/node"], ["sig/node"])

    assert result.labels == ("GitHub/sig/node",)
    assert result.has_needs_category_flag is True
    assert mark_when_categorized(result) is False


def test_needs_flag_match_is_case_insensitive():
    result = classify(["Needs-SIG"], [])

    assert result.has_needs_category_flag is True
    assert result.has_category_label is False


def test_allowed_tokens_outside_category_namespace_become_labels():
    result = classify(["kind/bug", "area/kubelet", "lgtm"], ["kind/*", "lgtm"])

    assert result.labels == ("GitHub/kind/bug", "GitHub/lgtm")
    assert result.has_category_label is False
    assert mark_when_categorized(result) is False


def test_category_message_without_needs_flag_is_processed():
    result = classify(["kind/bug", "sig/node"], ["kind/bug", "sig/node"])

    assert result == ClassificationResult(
        labels=("GitHub/kind/bug", "GitHub/sig/node"),
        has_other_category=False,
        has_allowed_category=True,
        has_needs_category_flag=False,
        has_category_label=True,
    )
    assert mark_when_categorized(result) is True


def test_classification_is_repeatable():
    tokens = ["sig/unknown", "Kind/Bug", "needs-sig", "kind/bug"]
    patterns = ["kind/*"]

    assert classify(tokens, patterns) == classify(tokens, patterns)


def test_category_prefix_match_ignores_case():
    result = classify(["SIG/Node"], ["sig/node"])

    assert result.has_allowed_category is True
    assert result.labels == ("GitHub/SIG/Node",)


def test_custom_prefixes_and_fallback():
    result = classify(
        ["team/unknown"],
        [],
        "team/",
        "needs-team",
        label_prefix="gh:",
        fallback_label="gh:triage",
    )

    assert result.labels == ("gh:triage",)


def test_default_fallback_label():
    assert default_fallback_label("GitHub/", "sig/") == "GitHub/other-sig"
    assert default_fallback_label("", "area/") == "other-area"


def test_processed_policies_for_missing_header():
    assert mark_when_categorized(None) is False
    assert mark_always(None) is True


def test_classifier_bundles_configuration():
    classifier = Classifier(["sig/node"], nested_labels=False, delimiters=";")

    result = classifier.classify_header("sig/node; sig/storage")

    assert result is not None
    assert result.labels == (f"GitHub/sig{FULLWIDTH_SLASH}node",)
    assert classifier.fallback_label == "GitHub/other-sig"
    assert classifier.should_mark_processed(result) is True


def test_classifier_returns_none_without_header():
    classifier = Classifier(["kind/bug"], processed_policy=mark_always)

    assert classifier.classify_header(None) is None
    assert classifier.should_mark_processed(None) is True
