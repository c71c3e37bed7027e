"""Allow-list matching of label tokens against exact and prefix patterns."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

GLOB = "*"
FULLWIDTH_SLASH = "／"


def is_allowed(token: str, patterns: Iterable[str]) -> bool:
    """Return True if ``token`` matches any pattern.

    Matching is case-insensitive. A pattern ending in ``*`` is a literal string
    prefix, so ``sig/docs*`` matches ``sig/docs/sub`` and also
    ``sig/docsite``. A bare ``*`` matches every token.
    """

    folded = token.casefold()
    for raw in patterns:
        pattern = raw.strip().casefold()
        if not pattern:
            continue
        if pattern.endswith(GLOB):
            if folded.startswith(pattern[: -len(GLOB)]):
                return True
        elif folded == pattern:
            return True
    return False


def format_label(token: str, prefix: str, *, nested: bool = True) -> str:
    """Return the output label name for an allowed token."""

    name = token if nested else token.replace("/", FULLWIDTH_SLASH)
    return f"{prefix}{name}"


@dataclass(frozen=True)
class AllowList:
    """Ordered, immutable pattern set."""

    patterns: tuple[str, ...] = ()

    @classmethod
    def from_iterable(cls, patterns: Iterable[str]) -> AllowList:
        return cls(tuple(str(pattern) for pattern in patterns))

    def allows(self, token: str) -> bool:
        return is_allowed(token, self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)


__all__ = ["AllowList", "FULLWIDTH_SLASH", "format_label", "is_allowed"]
