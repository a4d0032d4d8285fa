"""Note identifiers and the year/month sharded storage layout.

An identifier is a slug of the note title followed by the creation time as a
14-digit UTC timestamp::

    generate_id("My Note Title", datetime(2025, 1, 22, 22, 30, 45, tzinfo=timezone.utc))
    # -> "my-note-title-20250122223045"

The storage path only looks at the trailing 14 characters of the id, so the
directory a note lives in never depends on its stored ``created`` field::

    resolve_path(Path("/vault"), "my-note-20250122223045")
    # -> Path("/vault/2025/01/my-note-20250122223045.md")
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from weave.errors import InvalidIdentifierError

NOTE_EXTENSION = ".md"
TIMESTAMP_LENGTH = 14

_NON_SLUG_RE = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN_RE = re.compile(r"-+")


def to_utc(ts: datetime) -> datetime:
    """Convert *ts* to UTC; naive values are taken to already be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def slugify(title: str) -> str:
    s = title.lower().replace(" ", "-")
    s = _NON_SLUG_RE.sub("", s)
    s = _HYPHEN_RUN_RE.sub("-", s)
    return s.strip("-")


def format_timestamp(ts: datetime) -> str:
    # strftime("%Y") does not zero-pad years below 1000 on every platform
    ts = to_utc(ts)
    return f"{ts.year:04d}{ts:%m%d%H%M%S}"


def generate_id(title: str, timestamp: datetime) -> str:
    """Return ``{slug}-{YYYYMMDDhhmmss}``, or the bare timestamp when the slug is empty."""
    slug = slugify(title)
    ts = format_timestamp(timestamp)
    if not slug:
        return ts
    return f"{slug}-{ts}"


def resolve_path(vault_root: Path | str, note_id: str) -> Path:
    """Map *note_id* to ``{vault_root}/{YYYY}/{MM}/{note_id}.md``.

    Raises :class:`~weave.errors.InvalidIdentifierError` when the id is too
    short to carry a timestamp, or when it could address a file outside the
    shard directory.
    """
    if len(note_id) < TIMESTAMP_LENGTH:
        raise InvalidIdentifierError(note_id, f"shorter than {TIMESTAMP_LENGTH} characters")
    if "/" in note_id or "\\" in note_id or note_id.startswith("."):
        raise InvalidIdentifierError(note_id, "must not contain path separators or start with '.'")

    timestamp = note_id[-TIMESTAMP_LENGTH:]
    year, month = timestamp[0:4], timestamp[4:6]
    return Path(vault_root) / year / month / f"{note_id}{NOTE_EXTENSION}"
