"""Dovecot keyword registry exposed as a label provider."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .labels import LabelError, LabelExistsError

KEYWORDS_FILENAME: Final = "dovecot-keywords"
_MAX_KEYWORDS: Final = 26


@dataclass(frozen=True)
class KeywordLabel:
    """A keyword registered in dovecot-keywords and its maildir flag letter."""

    name: str
    letter: str


class DovecotKeywords:
    """Manage the dovecot-keywords file for a maildir."""

    def __init__(self, maildir: Path) -> None:
        self._maildir = maildir.expanduser()
        self._path = self._maildir / KEYWORDS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def get_by_name(self, name: str) -> KeywordLabel | None:
        """Return the registered keyword with exactly this name, if any."""

        for idx, existing in self._load().items():
            if existing == name:
                return KeywordLabel(name=name, letter=self._index_to_letter(idx))
        return None

    def create(self, name: str) -> KeywordLabel:
        """Register ``name`` in the first free slot."""

        _validate_name(name)
        existing = self._load()
        if name in existing.values():
            raise LabelExistsError(f"Keyword already registered: {name}")

        for idx in range(_MAX_KEYWORDS):
            if idx not in existing:
                existing[idx] = name
                self._save(existing)
                return KeywordLabel(name=name, letter=self._index_to_letter(idx))

        raise LabelError(f"No free keyword slots in {KEYWORDS_FILENAME} for '{name}'")

    def all_labels(self) -> dict[str, KeywordLabel]:
        return {
            name: KeywordLabel(name=name, letter=self._index_to_letter(idx))
            for idx, name in sorted(self._load().items())
        }

    def _load(self) -> dict[int, str]:
        """Parse the dovecot-keywords file into {index: name}."""

        if not self._path.exists():
            return {}

        result: dict[int, str] = {}
        for raw_line in self._path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or " " not in line:
                continue
            idx_str, name = line.split(" ", 1)
            try:
                idx = int(idx_str)
            except ValueError:
                continue
            if 0 <= idx < _MAX_KEYWORDS:
                result[idx] = name
        return result

    def _save(self, keywords: dict[int, str]) -> None:
        """Persist the provided keyword map back to disk."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"{idx} {name}" for idx, name in sorted(keywords.items())]
        self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    @staticmethod
    def _index_to_letter(idx: int) -> str:
        return chr(ord("a") + idx)


def _validate_name(name: str) -> None:
    if not name or name != name.strip() or "\n" in name:
        raise LabelError(f"Invalid keyword name: {name!r}")


__all__ = ["DovecotKeywords", "KEYWORDS_FILENAME", "KeywordLabel"]
