"""Quote-aware splitting of delimiter-separated label strings."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

DEFAULT_DELIMITERS = ";,"
QUOTE = '"'


def iter_tokens(text: str, delimiters: Iterable[str] = DEFAULT_DELIMITERS) -> Iterator[str]:
    """Yield trimmed, non-empty tokens from ``text`` in encounter order.

    Delimiters only split outside double-quoted spans. Inside quotes a doubled
    quote (``""``) is a literal quote character. An unterminated quote runs to
    the end of the input.
    """

    separators = frozenset(delimiters)
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(text)

    while index < length:
        char = text[index]
        if char == QUOTE:
            if in_quotes and index + 1 < length and text[index + 1] == QUOTE:
                current.append(QUOTE)
                index += 2
                continue
            in_quotes = not in_quotes
        elif char in separators and not in_quotes:
            token = "".join(current).strip()
            if token:
                yield token
            current = []
        else:
            current.append(char)
        index += 1

    token = "".join(current).strip()
    if token:
        yield token


def tokenize(text: str | None, delimiters: Iterable[str] = DEFAULT_DELIMITERS) -> list[str]:
    """Return all tokens of ``text`` as a list (empty for None or blank input)."""

    if not text:
        return []
    return list(iter_tokens(text, delimiters))


__all__ = ["DEFAULT_DELIMITERS", "iter_tokens", "tokenize"]
