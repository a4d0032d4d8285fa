"""Encode a :class:`~weave.note.Note` to its markdown file text and back.

File layout::

    ---
    id: my-note-20250122223045
    title: My Note
    tags: [a, b]
    created: 2025-01-22T22:30:45+00:00
    modified: 2025-01-22T22:30:45+00:00
    links: [other-20240101000000]
    ---

    Body text

Empty ``tags`` / ``links`` and unset timestamps are left out of the
frontmatter.  Metadata values must never contain a line consisting of
``---`` on its own; that is not checked here.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

import yaml

from weave.errors import MalformedInputError, MalformedMetadataError
from weave.ids import to_utc
from weave.note import Note

DELIMITER = "---"

_OPENING = DELIMITER + "\n"
_CLOSING = "\n" + DELIMITER + "\n"


class _FrontmatterDumper(yaml.SafeDumper):
    """Block-style mapping with ``[a, b]`` flow-style lists and ``T``-separated timestamps."""


def _represent_list(dumper: yaml.SafeDumper, data: list[Any]) -> yaml.SequenceNode:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


def _represent_datetime(dumper: yaml.SafeDumper, data: datetime) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:timestamp", data.isoformat())


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    # a raw NEL inside quotes is folded to a space on load; double quotes escape it
    style = '"' if "\x85" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


_FrontmatterDumper.add_representer(list, _represent_list)
_FrontmatterDumper.add_representer(datetime, _represent_datetime)
_FrontmatterDumper.add_representer(str, _represent_str)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _frontmatter(note: Note) -> dict[str, Any]:
    meta: dict[str, Any] = {"id": note.id, "title": note.title}
    if note.tags:
        meta["tags"] = list(note.tags)
    if note.created is not None:
        meta["created"] = to_utc(note.created)
    if note.modified is not None:
        meta["modified"] = to_utc(note.modified)
    if note.links:
        meta["links"] = list(note.links)
    return meta


def encode(note: Note) -> bytes:
    """Serialise *note* to UTF-8 file content ending in a single newline."""
    fm_text = yaml.dump(
        _frontmatter(note),
        Dumper=_FrontmatterDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    )

    parts = [_OPENING, fm_text, _OPENING]
    if note.body:
        parts.append("\n")
        parts.append(note.body)
        if not note.body.endswith("\n"):
            parts.append("\n")
    else:
        parts.append("\n")
    return "".join(parts).encode("utf-8")


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _split(text: str) -> tuple[str, str]:
    """Return ``(frontmatter_text, body)`` or raise :class:`MalformedInputError`."""
    if not text.startswith(_OPENING):
        raise MalformedInputError("missing frontmatter: input does not start with '---'")

    end = text.find(_CLOSING, len(_OPENING) - 1)
    if end != -1:
        body = text[end + len(_CLOSING) :]
    elif text.endswith(_CLOSING[:-1]):
        # closing delimiter on the last line without a trailing newline
        end = len(text) - len(_CLOSING) + 1
        body = ""
    else:
        raise MalformedInputError("malformed frontmatter: closing '---' not found")

    fm_text = text[len(_OPENING) : end + 1]
    if body.startswith("\n"):
        body = body[1:]
    if body.endswith("\n"):
        body = body[:-1]
    return fm_text, body


def _text_field(meta: dict[str, Any], key: str) -> str:
    value = meta.get(key)
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        raise MalformedMetadataError(f"{key}: expected a string, got {type(value).__name__}")
    return str(value)


def _list_field(meta: dict[str, Any], key: str) -> list[str]:
    value = meta.get(key) or []
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",") if v.strip()]
    if not isinstance(value, list):
        raise MalformedMetadataError(f"{key}: expected a list, got {type(value).__name__}")
    items: list[str] = []
    for item in value:
        if item is None or isinstance(item, (list, dict)):
            raise MalformedMetadataError(f"{key}: invalid entry {item!r}")
        items.append(str(item))
    return items


def _timestamp_field(meta: dict[str, Any], key: str) -> datetime | None:
    value = meta.get(key)
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return to_utc(datetime.fromisoformat(value))
        except ValueError as exc:
            raise MalformedMetadataError(f"{key}: invalid timestamp {value!r}") from exc
    raise MalformedMetadataError(f"{key}: expected a timestamp, got {type(value).__name__}")


def decode(data: bytes | str) -> Note:
    """Parse file content produced by :func:`encode` (or written by hand).

    CR-LF line endings are accepted.  At most one newline is stripped from
    each end of the body.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedInputError(f"not valid UTF-8: {exc}") from exc
    else:
        text = data
    text = text.replace("\r\n", "\n")

    fm_text, body = _split(text)

    try:
        meta = yaml.safe_load(fm_text) or {}
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(f"unmarshal frontmatter: {exc}") from exc
    if not isinstance(meta, dict):
        raise MalformedMetadataError(f"frontmatter must be a mapping, got {type(meta).__name__}")

    return Note(
        id=_text_field(meta, "id"),
        title=_text_field(meta, "title"),
        body=body,
        tags=_list_field(meta, "tags"),
        created=_timestamp_field(meta, "created"),
        modified=_timestamp_field(meta, "modified"),
        links=_list_field(meta, "links"),
    )
