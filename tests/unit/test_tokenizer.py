from __future__ import annotations

import types

from headerlabels.tokenizer import iter_tokens, tokenize


def test_splits_on_every_delimiter_and_trims():
    assert tokenize("a; b,c", ";,") == ["a", "b", "c"]


def test_delimiters_inside_quotes_are_literal():
    assert tokenize('"a;b", c', ";,") == ["a;b", "c"]


def test_doubled_quote_inside_quotes_is_literal_quote():
    assert tokenize('"a""b"', ";") == ['a"b']


def test_empty_and_missing_input_yield_nothing():
    assert tokenize("", ";,") == []
    assert tokenize(None, ";,") == []
    assert tokenize(" ; ,, ", ";,") == []


def test_trailing_delimiter_produces_no_empty_token():
    assert tokenize("kind/bug;sig/node;", ";,") == ["kind/bug", "sig/node"]


def test_unterminated_quote_runs_to_end_of_input():
    assert tokenize('kind/bug, "sig/a;b', ";,") == ["kind/bug", "sig/a;b"]


def test_tokens_keep_inner_spaces_and_colons():
    assert tokenize("area/kube proxy; lgtm: yes", ";") == ["area/kube proxy", "lgtm: yes"]


def test_only_configured_delimiters_split():
    assert tokenize("a,b;c", ";") == ["a,b", "c"]


def test_iter_tokens_is_lazy():
    tokens = iter_tokens("a;b", ";")

    assert isinstance(tokens, types.GeneratorType)
    assert next(tokens) == "a"
    assert list(tokens) == ["b"]
