"""Maildir-backed implementation of the mailbox and thread interfaces."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path

from .dovecot import DovecotKeywords, KeywordLabel
from .maildir import (
    MaildirError,
    flag_message,
    has_keyword_flag,
    list_messages,
    message_base,
    read_headers,
    read_raw_text,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelTerm:
    """One ``label:NAME`` or ``-label:NAME`` search term."""

    name: str
    negated: bool = False


def parse_query(query: str) -> list[LabelTerm]:
    """Parse a whitespace-separated search query into label terms."""

    try:
        words = shlex.split(query or "")
    except ValueError as exc:
        raise MaildirError(f"Malformed search query {query!r}: {exc}") from exc

    terms: list[LabelTerm] = []
    for word in words:
        negated = word.startswith("-")
        body = word[1:] if negated else word
        key, sep, value = body.partition(":")
        if not sep or key.lower() != "label" or not value:
            raise MaildirError(f"Unsupported search term: {word!r}")
        terms.append(LabelTerm(name=value, negated=negated))
    return terms


class MaildirMessage:
    """A message file; headers are parsed lazily on first lookup."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._headers: EmailMessage | None = None

    def header(self, name: str) -> str | None:
        if self._headers is None:
            self._headers = read_headers(self.path)
        value = self._headers.get(name)
        if value is None:
            return None
        return str(value)

    def raw_text(self) -> str:
        return read_raw_text(self.path)


class MaildirThread:
    """A single maildir message presented as a one-message thread."""

    def __init__(self, path: Path, maildir: Path) -> None:
        self.path = Path(path)
        self._maildir = maildir

    @property
    def id(self) -> str:
        return message_base(self.path.name)

    def messages(self) -> list[MaildirMessage]:
        return [MaildirMessage(self.path)]

    def add_label(self, label: KeywordLabel) -> None:
        new_path = flag_message(self.path, self._maildir, label.letter)
        if new_path != self.path:
            LOGGER.debug("Flagged %s with '%s' (%s)", self.id, label.name, label.letter)
        self.path = new_path

    def has_label(self, label: KeywordLabel) -> bool:
        return has_keyword_flag(self.path.name, label.letter)

    def __repr__(self) -> str:
        return f"MaildirThread({self.path})"


class MaildirMailbox:
    """Search a maildir using Dovecot keywords as labels."""

    def __init__(self, maildir: Path, keywords: DovecotKeywords | None = None) -> None:
        self.maildir = maildir.expanduser()
        self.keywords = keywords or DovecotKeywords(self.maildir)

    def search(self, query: str, offset: int, page_size: int) -> list[MaildirThread]:
        if offset < 0 or page_size <= 0:
            raise MaildirError(f"Invalid page request: offset={offset} size={page_size}")
        terms = parse_query(query)
        letters: list[tuple[str | None, bool]] = []
        for term in terms:
            label = self.keywords.get_by_name(term.name)
            letters.append((label.letter if label else None, term.negated))

        matches = [
            path for path in list_messages(self.maildir) if _matches(path.name, letters)
        ]
        return [MaildirThread(path, self.maildir) for path in matches[offset : offset + page_size]]


def _matches(filename: str, letters: list[tuple[str | None, bool]]) -> bool:
    for letter, negated in letters:
        present = letter is not None and has_keyword_flag(filename, letter)
        if present == negated:
            return False
    return True


__all__ = [
    "LabelTerm",
    "MaildirMailbox",
    "MaildirMessage",
    "MaildirThread",
    "parse_query",
]
