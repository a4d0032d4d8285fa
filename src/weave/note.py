"""Core Note dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from weave.links import Link


@dataclass
class Note:
    """A single markdown note in the vault."""

    id: str = ""
    title: str = ""
    body: str = ""
    tags: list[str] = field(default_factory=list)
    created: datetime | None = None
    modified: datetime | None = None
    #: Declared references stored in the frontmatter (not scanned from the body)
    links: list[str] = field(default_factory=list)

    def inline_links(self) -> list["Link"]:
        """Return the ``[[...]]`` references written in the body."""
        from weave.links import parse_links

        return parse_links(self.body)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "tags": self.tags,
            "created": self.created.isoformat() if self.created else None,
            "modified": self.modified.isoformat() if self.modified else None,
            "links": self.links,
        }
