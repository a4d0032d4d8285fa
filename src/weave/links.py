"""Typed ``[[WikiLink]]`` references inside note bodies.

Supported forms::

    [[target]]
    [[target|label]]
    [[type::target]]
    [[type::target|label]]

A link without ``type::`` has the default type ``linksTo``.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LINK_TYPE = "linksTo"

_OPEN = "[["
_CLOSE = "]]"


@dataclass(frozen=True)
class Link:
    id: str
    type: str = DEFAULT_LINK_TYPE
    label: str = ""

    def format(self) -> str:
        return format_link(self.id, self.type, self.label)


def format_link(note_id: str, link_type: str = "", label: str = "") -> str:
    """Render a reference as ``[[...]]`` text, omitting the default type and an empty label."""
    if not link_type:
        link_type = DEFAULT_LINK_TYPE

    core = note_id if link_type == DEFAULT_LINK_TYPE else f"{link_type}::{note_id}"
    if label:
        core = f"{core}|{label}"
    return f"{_OPEN}{core}{_CLOSE}"


def _parse_content(content: str) -> Link | None:
    left, sep, label = content.partition("|")
    if not sep:
        label = ""

    link_type, sep, target = left.partition("::")
    if sep:
        if not link_type or not target:
            return None
        return Link(id=target, type=link_type, label=label)

    if not left:
        return None
    return Link(id=left, label=label)


def parse_links(body: str) -> list[Link]:
    """Return every well-formed link in *body*, left to right.

    Brackets do not nest: an empty ``[[]]`` or a pair whose content contains
    another ``[[`` is skipped, and scanning resumes after its ``]]``.  An
    unterminated ``[[`` ends the scan.
    """
    result: list[Link] = []
    start = 0
    while True:
        open_at = body.find(_OPEN, start)
        if open_at == -1:
            break
        close_at = body.find(_CLOSE, open_at + len(_OPEN))
        if close_at == -1:
            break

        content = body[open_at + len(_OPEN) : close_at]
        start = close_at + len(_CLOSE)
        if not content or _OPEN in content:
            continue

        link = _parse_content(content)
        if link is not None:
            result.append(link)
    return result
