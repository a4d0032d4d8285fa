"""weave: plain-text notes with YAML frontmatter, stored in a sharded vault."""

from weave.codec import decode, encode
from weave.errors import (
    DecodeError,
    InvalidIdentifierError,
    MalformedInputError,
    MalformedMetadataError,
    NoteExistsError,
    NoteNotFoundError,
    StorageError,
    WalkError,
    WeaveError,
)
from weave.ids import generate_id, resolve_path, slugify
from weave.links import DEFAULT_LINK_TYPE, Link, format_link, parse_links
from weave.note import Note
from weave.store import ListFailure, ListResult, NoteStore

__version__ = "0.1.0"

__all__ = [
    "Note",
    "NoteStore",
    "ListResult",
    "ListFailure",
    "encode",
    "decode",
    "generate_id",
    "resolve_path",
    "slugify",
    "Link",
    "DEFAULT_LINK_TYPE",
    "format_link",
    "parse_links",
    "WeaveError",
    "NoteNotFoundError",
    "NoteExistsError",
    "InvalidIdentifierError",
    "MalformedInputError",
    "MalformedMetadataError",
    "DecodeError",
    "StorageError",
    "WalkError",
]
