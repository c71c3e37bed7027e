"""Interfaces the classification core expects from mailbox and label providers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

# Providers hand out label handles; the core never looks inside them.
LabelHandle = Any


class MessageHandle(Protocol):
    """A single message inside a thread."""

    def header(self, name: str) -> str | None:
        """Return the named header, or None when the provider lacks it."""

    def raw_text(self) -> str:
        """Return the full raw RFC 5322 text of the message."""


class ThreadHandle(Protocol):
    """A conversation returned by a mailbox search."""

    @property
    def id(self) -> str: ...

    def messages(self) -> Sequence[MessageHandle]:
        """Return messages in arrival order (oldest first)."""

    def add_label(self, label: LabelHandle) -> None:
        """Attach a label; attaching an existing label must be a no-op."""


class Mailbox(Protocol):
    """Search provider returning pages of threads."""

    def search(self, query: str, offset: int, page_size: int) -> Sequence[ThreadHandle]: ...


class LabelProvider(Protocol):
    """Get-or-create access to labels by exact name."""

    def get_by_name(self, name: str) -> LabelHandle | None: ...

    def create(self, name: str) -> LabelHandle: ...

    def all_labels(self) -> Mapping[str, LabelHandle]: ...


__all__ = [
    "LabelHandle",
    "LabelProvider",
    "Mailbox",
    "MessageHandle",
    "ThreadHandle",
]
