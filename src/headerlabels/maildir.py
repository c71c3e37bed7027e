"""Helpers for interacting with maildir structures and messages."""

from __future__ import annotations

import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesHeaderParser
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MAILDIR_SUBDIRS = ("cur", "new", "tmp")
INFO_SEPARATOR = ":2,"


class MaildirError(RuntimeError):
    """Raised when maildir operations fail."""


def ensure_maildir_structure(maildir: Path) -> None:
    """Ensure the maildir root and its cur/new/tmp subdirectories exist."""

    root = maildir.expanduser()
    _ensure_dir(root)
    for subdir in MAILDIR_SUBDIRS:
        _ensure_dir(root / subdir)


def inbox_new_dir(maildir: Path) -> Path:
    """Return the path to the new/ directory."""

    return maildir.expanduser() / "new"


def inbox_cur_dir(maildir: Path) -> Path:
    """Return the path to the cur/ directory."""

    return maildir.expanduser() / "cur"


def list_messages(maildir: Path) -> list[Path]:
    """Return message files from new/ and cur/ ordered by delivery name."""

    root = maildir.expanduser()
    if not root.is_dir():
        raise MaildirError(f"Maildir does not exist: {root}")
    paths: list[Path] = []
    for directory in (inbox_new_dir(root), inbox_cur_dir(root)):
        if not directory.is_dir():
            continue
        paths.extend(
            entry
            for entry in directory.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )
    return sorted(paths, key=lambda path: (message_base(path.name), path.name))


def read_headers(path: Path) -> EmailMessage:
    """Parse only the header block of a message file."""

    file_path = Path(path)
    if not file_path.is_file():
        raise MaildirError(f"Message file does not exist: {file_path}")
    parser = BytesHeaderParser(policy=policy.default)
    with file_path.open("rb") as handle:
        return parser.parse(handle)


def read_raw_text(path: Path) -> str:
    """Return the message file decoded as text."""

    file_path = Path(path)
    try:
        return file_path.read_bytes().decode("utf-8", errors="replace")
    except FileNotFoundError as exc:
        raise MaildirError(f"Message file does not exist: {file_path}") from exc


def message_base(filename: str) -> str:
    """Return the unique part of a maildir filename, without the info section."""

    base, _, _ = parse_maildir_info(filename)
    return base


def parse_maildir_info(filename: str) -> tuple[str, str, str]:
    """Return (base, standard_flags, keyword_flags) parsed from filename."""

    if INFO_SEPARATOR not in filename:
        return filename, "", ""
    base, flag_section = filename.rsplit(INFO_SEPARATOR, 1)
    standard_flags = "".join(char for char in flag_section if char.isupper())
    keyword_flags = "".join(char for char in flag_section if char.islower())
    return base, standard_flags, keyword_flags


def build_maildir_filename(base: str, standard_flags: str, keyword_flags: str) -> str:
    """Reconstruct a maildir filename, sorting flags for determinism."""

    sorted_standard = "".join(sorted(set(standard_flags)))
    sorted_keywords = "".join(sorted(set(keyword_flags)))
    return f"{base}{INFO_SEPARATOR}{sorted_standard}{sorted_keywords}"


def add_keyword_flag(filename: str, letter: str) -> str:
    """Add a keyword flag letter to a filename."""

    if not letter:
        return filename
    base, standard_flags, keyword_flags = parse_maildir_info(filename)
    if letter in keyword_flags:
        return filename
    return build_maildir_filename(base, standard_flags, keyword_flags + letter)


def has_keyword_flag(filename: str, letter: str) -> bool:
    """Return True if filename contains the provided keyword letter."""

    if not letter:
        return False
    _, _, keyword_flags = parse_maildir_info(filename)
    return letter in keyword_flags


def flag_message(path: Path, maildir: Path, letter: str) -> Path:
    """Tag a message with a keyword letter and return its (possibly new) path.

    Messages still in new/ are moved to cur/ since only cur/ entries carry flags.
    """

    source = Path(path)
    destination_dir = inbox_cur_dir(maildir)
    new_name = add_keyword_flag(source.name, letter)
    if new_name == source.name and source.parent == destination_dir:
        return source

    target = destination_dir / new_name
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        source.replace(target)
    except FileNotFoundError as exc:
        raise MaildirError(f"Message disappeared while flagging: {source}") from exc
    except OSError as exc:  # pragma: no cover - filesystem failure
        raise MaildirError(f"Failed to flag message {source}: {exc}") from exc
    return target


def _ensure_dir(path: Path) -> None:
    """Create a directory tree and log when it did not already exist."""

    try:
        path.mkdir(parents=True, exist_ok=False)
    except FileExistsError:
        return
    LOGGER.info("Created maildir folder %s", path)


__all__ = [
    "MAILDIR_SUBDIRS",
    "MaildirError",
    "add_keyword_flag",
    "build_maildir_filename",
    "ensure_maildir_structure",
    "flag_message",
    "has_keyword_flag",
    "inbox_cur_dir",
    "inbox_new_dir",
    "list_messages",
    "message_base",
    "parse_maildir_info",
    "read_headers",
    "read_raw_text",
]
