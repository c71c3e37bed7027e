"""Header lookup with a fallback to unfolding the raw message text."""

from __future__ import annotations

import logging
import re

from .ports import MessageHandle

LOGGER = logging.getLogger(__name__)


def extract_header(message: MessageHandle, name: str) -> str | None:
    """Return the value of header ``name`` or None when it is missing or empty.

    Providers are not guaranteed to fold header names, so the direct lookup is
    tried with the name as given and with its canonical title-case form. When
    neither yields a value the raw message is scanned and RFC 5322 folded
    continuation lines are joined back together.
    """

    for candidate in _name_variants(name):
        value = _clean(message.header(candidate))
        if value is not None:
            return value

    LOGGER.debug("Header %s not exposed directly; scanning raw message", name)
    return unfold_header(message.raw_text(), name)


def unfold_header(raw_text: str, name: str) -> str | None:
    """Return the first occurrence of ``name`` in the header block of ``raw_text``."""

    pattern = re.compile(rf"^{re.escape(name)}\s*:", re.IGNORECASE)
    parts: list[str] | None = None
    for line in re.split(r"\r?\n", raw_text):
        if parts is not None:
            if line[:1] in (" ", "\t"):
                parts.append(line.strip())
                continue
            break
        if not line.strip():
            # end of the header block
            break
        match = pattern.match(line)
        if match:
            parts = [line[match.end() :].strip()]

    if parts is None:
        return None
    return _clean(" ".join(part for part in parts if part))


def canonical_header_name(name: str) -> str:
    """Return ``name`` in Title-Case form (``x-github-labels`` -> ``X-Github-Labels``)."""

    return "-".join(part.capitalize() for part in name.strip().split("-"))


def _name_variants(name: str) -> list[str]:
    variants = [name]
    canonical = canonical_header_name(name)
    if canonical != name:
        variants.append(canonical)
    return variants


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["extract_header", "unfold_header", "canonical_header_name"]
