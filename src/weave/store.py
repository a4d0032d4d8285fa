"""NoteStore: create / read / update / delete / list notes on disk.

There is no in-memory index; every call goes to the filesystem, so results
always reflect what is on disk.  Writes go through a ``{target}.tmp`` sibling
that is renamed over the target, so a reader sees either the old file or the
new one and never a partial write.

No locking is done: two writers racing on the same id both succeed and the
last rename wins.  Callers needing multi-writer safety must serialise access
themselves.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from weave.codec import decode, encode
from weave.errors import (
    CodecError,
    DecodeError,
    InvalidTimestampError,
    NoteExistsError,
    NoteNotFoundError,
    StorageError,
    WalkError,
    WeaveError,
)
from weave.ids import NOTE_EXTENSION, generate_id, resolve_path, to_utc
from weave.note import Note

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True)
class ListFailure:
    """A file (or directory) that :meth:`NoteStore.list_notes` could not load."""

    path: Path
    error: WeaveError


class ListResult(NamedTuple):
    notes: list[Note]
    errors: list[ListFailure]


class NoteStore:
    """Notes persisted as ``{vault}/{YYYY}/{MM}/{id}.md`` files."""

    def __init__(self, vault_dir: Path | str) -> None:
        self.vault_dir = Path(vault_dir)

    def path_for(self, note_id: str) -> Path:
        return resolve_path(self.vault_dir, note_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, note: Note, timestamp: datetime) -> str:
        """Persist *note* under a new id derived from its title and *timestamp*.

        The id and both timestamps on *note* are ignored and replaced.  Raises
        :class:`NoteExistsError` if a note with the same id is already stored.
        """
        note_id = generate_id(note.title, timestamp)
        ts = to_utc(timestamp)
        stored = replace(note, id=note_id, created=ts, modified=ts)

        path = self.path_for(note_id)
        if path.exists():
            raise NoteExistsError(note_id, path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError("create directories", path.parent, exc) from exc

        _write_atomic(path, encode(stored))
        logger.debug("Created note %s at %s", note_id, path)
        return note_id

    def read(self, note_id: str) -> Note:
        path = self.path_for(note_id)
        return _load(path, note_id)

    def update(self, note_id: str, note: Note, timestamp: datetime) -> None:
        """Overwrite the stored note with *note*, keeping its id and ``created``.

        Whatever ``created`` the caller passes is ignored; the stored value is
        re-read from disk.  ``modified`` becomes *timestamp*.
        """
        path = self.path_for(note_id)
        existing = _load(path, note_id)

        ts = to_utc(timestamp)
        if existing.created is not None and ts < existing.created:
            raise InvalidTimestampError(
                f"update of {note_id!r} at {ts.isoformat()} precedes creation at {existing.created.isoformat()}"
            )

        stored = replace(note, id=note_id, created=existing.created, modified=ts)
        _write_atomic(path, encode(stored))
        logger.debug("Updated note %s at %s", note_id, path)

    def delete(self, note_id: str) -> None:
        path = self.path_for(note_id)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise NoteNotFoundError(note_id, path) from exc
        except OSError as exc:
            raise StorageError("remove file", path, exc) from exc
        logger.debug("Deleted note %s at %s", note_id, path)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_notes(self) -> ListResult:
        """Load every note in the vault, best effort.

        A file that cannot be read or decoded is reported in ``errors`` and
        the walk carries on, so one corrupt note never hides the rest.  A
        vault directory that does not exist yet lists as empty.
        """
        result = ListResult(notes=[], errors=[])
        if not self.vault_dir.exists():
            return result

        def _on_walk_error(exc: OSError) -> None:
            where = Path(exc.filename) if exc.filename else self.vault_dir
            _record(result, where, WalkError(where, exc))

        for dirpath, dirnames, filenames in os.walk(self.vault_dir, onerror=_on_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.suffix != NOTE_EXTENSION or not path.is_file():
                    continue
                try:
                    result.notes.append(_load(path, path.stem))
                except WeaveError as exc:
                    _record(result, path, exc)
        return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _record(result: ListResult, path: Path, error: WeaveError) -> None:
    logger.warning("Skipping %s: %s", path, error)
    result.errors.append(ListFailure(path=path, error=error))


def _load(path: Path, note_id: str) -> Note:
    try:
        data = path.read_bytes()
    except FileNotFoundError as exc:
        raise NoteNotFoundError(note_id, path) from exc
    except OSError as exc:
        raise StorageError("read file", path, exc) from exc

    try:
        return decode(data)
    except CodecError as exc:
        raise DecodeError(path, exc) from exc


def _write_atomic(path: Path, data: bytes) -> None:
    """Write *data* to ``{path}.tmp`` then rename it over *path*."""
    tmp = path.with_name(path.name + TEMP_SUFFIX)
    try:
        with tmp.open("wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise StorageError("write temp file", tmp, exc) from exc

    try:
        tmp.replace(path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise StorageError("rename file", path, exc) from exc
