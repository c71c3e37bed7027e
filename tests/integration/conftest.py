from __future__ import annotations

from pathlib import Path

import pytest

from headerlabels.dovecot import DovecotKeywords
from headerlabels.maildir import (
    ensure_maildir_structure,
    inbox_new_dir,
    list_messages,
    parse_maildir_info,
)

MESSAGE_TEMPLATE = (
    "From: notifications@github.com\n"
    "To: me@example.com\n"
    "{header}"
    "Subject: {subject}\n"
    "Message-ID: <{subject}@github.com>\n"
    "\n"
    "Notification body.\n"
)


@pytest.fixture()
def maildir(tmp_path: Path) -> Path:
    root = tmp_path / "Maildir"
    ensure_maildir_structure(root)
    return root


def deliver(maildir: Path, name: str, header_block: str | None) -> Path:
    """Write a notification into new/ with an optional raw X-GitHub-Labels block."""

    header = f"X-GitHub-Labels: {header_block}\n" if header_block is not None else ""
    path = inbox_new_dir(maildir) / name
    path.write_text(MESSAGE_TEMPLATE.format(header=header, subject=name), encoding="utf-8")
    return path


def labels_by_message(maildir: Path) -> dict[str, set[str]]:
    """Return {message base name: attached keyword names}."""

    names = {label.letter: name for name, label in DovecotKeywords(maildir).all_labels().items()}
    result: dict[str, set[str]] = {}
    for path in list_messages(maildir):
        base, _, keywords = parse_maildir_info(path.name)
        result[base] = {names[letter] for letter in keywords if letter in names}
    return result
