from __future__ import annotations

import pytest

from headerlabels.matcher import FULLWIDTH_SLASH, AllowList, format_label, is_allowed


@pytest.mark.parametrize(
    "token, expected",
    [
        ("sig/docs", True),
        ("sig/docs/subarea", True),
        # literal string prefix, not a path segment boundary
        ("sig/docsite", True),
        ("sig/documentation-other", False),
        ("sig/doc", False),
    ],
)
def test_prefix_glob_uses_literal_string_prefix(token: str, expected: bool) -> None:
    assert is_allowed(token, ["sig/docs*"]) is expected


def test_exact_patterns_do_not_prefix_match():
    assert is_allowed("kind/bug", ["kind/bug"]) is True
    assert is_allowed("kind/bug-fix", ["kind/bug"]) is False


def test_matching_is_case_insensitive_and_trims_patterns():
    assert is_allowed("Kind/BUG", ["  kind/bug  "]) is True
    assert is_allowed("SIG/Node/x", ["sig/NODE*"]) is True


def test_empty_patterns_are_skipped():
    assert is_allowed("kind/bug", ["", "   "]) is False
    assert is_allowed("kind/bug", []) is False


def test_bare_glob_allows_everything():
    assert is_allowed("anything/at/all", ["*"]) is True


def test_allow_list_wraps_patterns():
    allow = AllowList.from_iterable(["kind/*", "sig/node"])

    assert allow.allows("kind/flake")
    assert not allow.allows("sig/storage")
    assert len(allow) == 2


def test_format_label_keeps_original_casing():
    assert format_label("Kind/Bug", "GitHub/") == "GitHub/Kind/Bug"


def test_format_label_flattens_slashes_when_nesting_disabled():
    label = format_label("sig/node", "GitHub/", nested=False)

    assert label == f"GitHub/sig{FULLWIDTH_SLASH}node"
