"""Exception hierarchy shared by the codec, the path deriver and the store."""

from __future__ import annotations

from pathlib import Path


class WeaveError(Exception):
    """Base class for every error raised by :mod:`weave`."""


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class InvalidIdentifierError(WeaveError, ValueError):
    def __init__(self, note_id: str, reason: str) -> None:
        super().__init__(f"invalid note id {note_id!r}: {reason}")
        self.note_id = note_id
        self.reason = reason


class InvalidTimestampError(WeaveError, ValueError):
    """An update would move ``modified`` before ``created``."""


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class CodecError(WeaveError):
    """Raised by :func:`weave.codec.decode` when the text cannot be parsed."""


class MalformedInputError(CodecError):
    """The ``---`` framing around the metadata block is missing."""


class MalformedMetadataError(CodecError):
    """The metadata block does not parse into the note field set."""


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class NoteNotFoundError(WeaveError):
    def __init__(self, note_id: str, path: Path) -> None:
        super().__init__(f"note {note_id!r} not found at {path}")
        self.note_id = note_id
        self.path = path


class NoteExistsError(WeaveError):
    def __init__(self, note_id: str, path: Path) -> None:
        super().__init__(f"note {note_id!r} already exists at {path}")
        self.note_id = note_id
        self.path = path


class DecodeError(WeaveError):
    """A stored file could not be decoded; the codec error is the ``__cause__``."""

    def __init__(self, path: Path, cause: CodecError) -> None:
        super().__init__(f"decode {path}: {cause}")
        self.path = path


class StorageError(WeaveError):
    """An :class:`OSError` raised while touching the vault, tagged with the operation."""

    def __init__(self, op: str, path: Path, cause: OSError) -> None:
        super().__init__(f"{op} {path}: {cause}")
        self.op = op
        self.path = path


class WalkError(WeaveError):
    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"walk {path}: {cause}")
        self.path = path


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(WeaveError):
    pass
