from __future__ import annotations

from headerlabels.headers import canonical_header_name, extract_header, unfold_header


class FakeMessage:
    def __init__(self, headers: dict[str, str] | None = None, raw: str = "") -> None:
        self.headers = headers or {}
        self.raw = raw
        self.lookups: list[str] = []
        self.raw_reads = 0

    def header(self, name: str) -> str | None:
        self.lookups.append(name)
        return self.headers.get(name)

    def raw_text(self) -> str:
        self.raw_reads += 1
        return self.raw


def test_direct_lookup_wins_without_reading_raw_text():
    message = FakeMessage({"X-Category-Labels": "  kind/bug "})

    assert extract_header(message, "X-Category-Labels") == "kind/bug"
    assert message.raw_reads == 0


def test_case_sensitive_provider_is_retried_with_canonical_name():
    message = FakeMessage({"X-Category-Labels": "kind/bug"})

    assert extract_header(message, "x-category-labels") == "kind/bug"
    assert message.lookups == ["x-category-labels", "X-Category-Labels"]


def test_folded_header_is_recovered_from_raw_text():
    raw = (
        "From: bot@example.com\n"
        "X-Category-Labels: kind/bug,\n"
        " sig/node\n"
        "Subject: hello\n"
        "\n"
        "body\n"
    )

    assert extract_header(FakeMessage(raw=raw), "X-Category-Labels") == "kind/bug, sig/node"


def test_tab_continuations_and_crlf_line_endings():
    raw = "X-Category-Labels: kind/bug;\r\n\t\tsig/node;\r\n   area/api\r\nSubject: x\r\n\r\n"

    assert unfold_header(raw, "X-Category-Labels") == "kind/bug; sig/node; area/api"


def test_only_cr_lf_line_breaks_split_the_header_block():
    raw = "X-Category-Labels: kind/bug\x0csig/node area/api\nSubject: x\n\n"

    assert unfold_header(raw, "X-Category-Labels") == "kind/bug\x0csig/node area/api"


def test_raw_match_is_case_insensitive_and_allows_space_before_colon():
    raw = "x-category-labels : kind/bug\n\n"

    assert unfold_header(raw, "X-Category-Labels") == "kind/bug"


def test_value_may_start_on_continuation_line():
    raw = "X-Category-Labels:\n sig/node\n\n"

    assert unfold_header(raw, "X-Category-Labels") == "sig/node"


def test_absent_or_empty_header_is_none():
    assert extract_header(FakeMessage(raw="Subject: x\n\nbody"), "X-Category-Labels") is None
    assert extract_header(FakeMessage(raw="X-Category-Labels:   \n\n"), "X-Category-Labels") is None


def test_empty_direct_value_falls_back_to_raw_text():
    message = FakeMessage({"X-Category-Labels": ""}, raw="X-Category-Labels: sig/node\n\n")

    assert extract_header(message, "X-Category-Labels") == "sig/node"


def test_body_lines_are_not_headers():
    raw = "Subject: x\n\nX-Category-Labels: kind/bug\n"

    assert unfold_header(raw, "X-Category-Labels") is None


def test_similar_header_names_do_not_match():
    raw = "X-Category-Labels-Old: kind/bug\nX-Category-Labels: sig/node\n\n"

    assert unfold_header(raw, "X-Category-Labels") == "sig/node"


def test_canonical_header_name():
    assert canonical_header_name("x-github-labels") == "X-Github-Labels"
    assert canonical_header_name("SUBJECT") == "Subject"
