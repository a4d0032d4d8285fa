"""Unit tests for weave.store.NoteStore."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from weave.codec import encode
from weave.errors import (
    DecodeError,
    InvalidIdentifierError,
    InvalidTimestampError,
    MalformedInputError,
    NoteExistsError,
    NoteNotFoundError,
    StorageError,
    WalkError,
)
from weave.note import Note
from weave.store import ListResult, NoteStore

T0 = datetime(2025, 1, 22, 22, 30, 45, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)


@pytest.fixture()
def store(tmp_path: Path) -> NoteStore:
    return NoteStore(tmp_path / "vault")


def _make(store: NoteStore, title: str = "My Note", ts: datetime = T0, **fields) -> str:
    return store.create(Note(title=title, **fields), ts)


# ---------------------------------------------------------------------------
# create()
# ---------------------------------------------------------------------------


class TestCreate:
    def test_returns_derived_id(self, store: NoteStore):
        assert _make(store, "My Note Title") == "my-note-title-20250122223045"

    def test_file_written_at_sharded_path(self, store: NoteStore):
        note_id = _make(store)
        path = store.vault_dir / "2025" / "01" / f"{note_id}.md"
        assert path.is_file()
        assert store.path_for(note_id) == path

    def test_sets_id_and_timestamps(self, store: NoteStore):
        note_id = _make(store, body="hello", tags=["a"])
        note = store.read(note_id)
        assert note.id == note_id
        assert note.created == T0
        assert note.modified == T0
        assert note.body == "hello"
        assert note.tags == ["a"]

    def test_caller_values_ignored(self, store: NoteStore):
        supplied = Note(id="bogus", title="T", created=T1, modified=T1)
        note_id = store.create(supplied, T0)
        stored = store.read(note_id)
        assert stored.id == note_id
        assert stored.created == T0

    def test_caller_note_not_mutated(self, store: NoteStore):
        note = Note(title="Untouched")
        store.create(note, T0)
        assert note.id == ""
        assert note.created is None

    def test_local_timestamp_stored_as_utc(self, store: NoteStore):
        local = T0.astimezone(timezone(timedelta(hours=-5)))
        note_id = _make(store, ts=local)
        assert note_id.endswith("20250122223045")
        assert store.read(note_id).created == T0

    def test_empty_title_uses_bare_timestamp(self, store: NoteStore):
        assert _make(store, "") == "20250122223045"

    def test_collision_rejected(self, store: NoteStore):
        note_id = _make(store, body="first")
        with pytest.raises(NoteExistsError):
            _make(store, body="second")
        assert store.read(note_id).body == "first"

    def test_no_temp_file_left(self, store: NoteStore):
        note_id = _make(store)
        shard = store.path_for(note_id).parent
        assert [p.name for p in shard.iterdir()] == [f"{note_id}.md"]

    def test_empty_body_file_layout(self, store: NoteStore):
        note_id = _make(store)
        raw = store.path_for(note_id).read_text(encoding="utf-8")
        assert raw.endswith("\n---\n\n")
        assert store.read(note_id).body == ""

    def test_mkdir_failure_is_storage_error(self, tmp_path: Path):
        blocker = tmp_path / "vault"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(StorageError) as exc_info:
            NoteStore(blocker).create(Note(title="x"), T0)
        assert exc_info.value.op == "create directories"


# ---------------------------------------------------------------------------
# read()
# ---------------------------------------------------------------------------


class TestRead:
    def test_missing_note(self, store: NoteStore):
        with pytest.raises(NoteNotFoundError) as exc_info:
            store.read("ghost-20250122223045")
        assert exc_info.value.note_id == "ghost-20250122223045"

    def test_invalid_id(self, store: NoteStore):
        with pytest.raises(InvalidIdentifierError):
            store.read("short")

    def test_corrupt_file_is_decode_error(self, store: NoteStore):
        path = store.path_for("bad-20250122223045")
        path.parent.mkdir(parents=True)
        path.write_text("no frontmatter here\n", encoding="utf-8")
        with pytest.raises(DecodeError) as exc_info:
            store.read("bad-20250122223045")
        assert isinstance(exc_info.value.__cause__, MalformedInputError)
        assert exc_info.value.path == path

    def test_reflects_on_disk_edits(self, store: NoteStore):
        note_id = _make(store, body="v1")
        path = store.path_for(note_id)
        path.write_text(path.read_text(encoding="utf-8").replace("v1", "v2"), encoding="utf-8")
        assert store.read(note_id).body == "v2"


# ---------------------------------------------------------------------------
# update()
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_preserves_id_and_created(self, store: NoteStore):
        note_id = _make(store, body="old")
        store.update(note_id, Note(title="Renamed", body="new", created=T1 + timedelta(days=9)), T1)
        note = store.read(note_id)
        assert note.id == note_id
        assert note.title == "Renamed"
        assert note.body == "new"
        assert note.created == T0
        assert note.modified == T1

    def test_same_path_rewritten(self, store: NoteStore):
        note_id = _make(store)
        store.update(note_id, Note(title="Completely Different"), T1)
        files = sorted(p.name for p in store.vault_dir.rglob("*") if p.is_file())
        assert files == [f"{note_id}.md"]

    def test_missing_note(self, store: NoteStore):
        with pytest.raises(NoteNotFoundError):
            store.update("ghost-20250122223045", Note(title="x"), T1)
        assert not store.path_for("ghost-20250122223045").exists()

    def test_timestamp_before_created_rejected(self, store: NoteStore):
        note_id = _make(store, body="keep")
        with pytest.raises(InvalidTimestampError):
            store.update(note_id, Note(body="nope"), T0 - timedelta(seconds=1))
        assert store.read(note_id).body == "keep"

    def test_same_timestamp_allowed(self, store: NoteStore):
        note_id = _make(store)
        store.update(note_id, Note(title="Again"), T0)
        assert store.read(note_id).modified == T0

    def test_corrupt_existing_note(self, store: NoteStore):
        note_id = _make(store)
        store.path_for(note_id).write_text("garbage", encoding="utf-8")
        with pytest.raises(DecodeError):
            store.update(note_id, Note(title="x"), T1)


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class _Crash(Exception):
    pass


class TestAtomicWrite:
    def test_crash_before_rename_leaves_target_intact(self, store: NoteStore, monkeypatch):
        note_id = _make(store, body="original")
        path = store.path_for(note_id)
        before = path.read_bytes()

        def _crash(self, target):
            raise _Crash("killed between write and rename")

        monkeypatch.setattr(Path, "replace", _crash)
        with pytest.raises(_Crash):
            store.update(note_id, Note(body="replacement"), T1)
        monkeypatch.undo()

        assert path.read_bytes() == before
        # the temp file is all that a crash leaves behind
        tmp = path.with_name(path.name + ".tmp")
        assert tmp.exists()
        assert b"replacement" in tmp.read_bytes()

    def test_failed_rename_removes_temp_and_raises(self, store: NoteStore, monkeypatch):
        note_id = _make(store, body="original")
        path = store.path_for(note_id)
        before = path.read_bytes()

        def _fail(self, target):
            raise OSError("rename failed")

        monkeypatch.setattr(Path, "replace", _fail)
        with pytest.raises(StorageError) as exc_info:
            store.update(note_id, Note(body="replacement"), T1)
        monkeypatch.undo()

        assert exc_info.value.op == "rename file"
        assert path.read_bytes() == before
        assert not path.with_name(path.name + ".tmp").exists()

    def test_failed_create_leaves_nothing(self, store: NoteStore, monkeypatch):
        def _fail(self, target):
            raise OSError("rename failed")

        monkeypatch.setattr(Path, "replace", _fail)
        with pytest.raises(StorageError):
            _make(store)
        monkeypatch.undo()

        assert [p for p in store.vault_dir.rglob("*") if p.is_file()] == []

    def test_stale_temp_file_overwritten(self, store: NoteStore):
        note_id = _make(store)
        path = store.path_for(note_id)
        path.with_name(path.name + ".tmp").write_text("leftover", encoding="utf-8")
        store.update(note_id, Note(body="fresh"), T1)
        assert store.read(note_id).body == "fresh"
        assert not path.with_name(path.name + ".tmp").exists()


# ---------------------------------------------------------------------------
# delete()
# ---------------------------------------------------------------------------


class TestDelete:
    def test_removes_file(self, store: NoteStore):
        note_id = _make(store)
        store.delete(note_id)
        assert not store.path_for(note_id).exists()
        with pytest.raises(NoteNotFoundError):
            store.read(note_id)

    def test_missing_note(self, store: NoteStore):
        with pytest.raises(NoteNotFoundError):
            store.delete("ghost-20250122223045")

    def test_delete_twice(self, store: NoteStore):
        note_id = _make(store)
        store.delete(note_id)
        with pytest.raises(NoteNotFoundError):
            store.delete(note_id)


# ---------------------------------------------------------------------------
# list_notes()
# ---------------------------------------------------------------------------


class TestListNotes:
    def test_empty_vault(self, store: NoteStore):
        store.vault_dir.mkdir()
        result = store.list_notes()
        assert isinstance(result, ListResult)
        assert result.notes == []
        assert result.errors == []

    def test_missing_vault_lists_empty(self, store: NoteStore):
        notes, errors = store.list_notes()
        assert notes == []
        assert errors == []

    def test_lists_across_shards(self, store: NoteStore):
        a = _make(store, "Alpha", T0)
        b = _make(store, "Beta", datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        c = _make(store, "Gamma", datetime(2025, 3, 1, tzinfo=timezone.utc))
        notes, errors = store.list_notes()
        assert errors == []
        assert sorted(n.id for n in notes) == sorted([a, b, c])

    def test_sorted_walk_order(self, store: NoteStore):
        _make(store, "Later", datetime(2025, 3, 1, tzinfo=timezone.utc))
        _make(store, "Earlier", datetime(2024, 6, 1, tzinfo=timezone.utc))
        notes, _ = store.list_notes()
        assert [n.title for n in notes] == ["Earlier", "Later"]

    def test_corrupt_file_reported_not_raised(self, store: NoteStore):
        good = _make(store, "Good")
        bad = store.vault_dir / "2025" / "01" / "bad-20250101000000.md"
        bad.write_text("---\nid: bad\n", encoding="utf-8")

        notes, errors = store.list_notes()
        assert [n.id for n in notes] == [good]
        assert len(errors) == 1
        assert errors[0].path == bad
        assert isinstance(errors[0].error, DecodeError)

    def test_ignores_other_files(self, store: NoteStore):
        note_id = _make(store)
        shard = store.path_for(note_id).parent
        (shard / "image.png").write_bytes(b"\x89PNG")
        (shard / f"{note_id}.md.tmp").write_text("in-flight write", encoding="utf-8")
        (shard / "folder.md").mkdir()
        notes, errors = store.list_notes()
        assert [n.id for n in notes] == [note_id]
        assert errors == []

    def test_includes_hand_placed_notes(self, store: NoteStore):
        note = Note(id="manual-20200101000000", title="Manual", created=T0, modified=T0)
        loose = store.vault_dir / "inbox" / "manual.md"
        loose.parent.mkdir(parents=True)
        loose.write_bytes(encode(note))
        notes, errors = store.list_notes()
        assert notes == [note]
        assert errors == []

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_unreadable_directory_reported(self, store: NoteStore):
        good = _make(store, "Good")
        locked = store.vault_dir / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            notes, errors = store.list_notes()
        finally:
            locked.chmod(0o755)
        assert [n.id for n in notes] == [good]
        assert len(errors) == 1
        assert isinstance(errors[0].error, WalkError)
        assert errors[0].path == locked

    def test_vault_root_not_a_directory_reported(self, tmp_path: Path):
        root = tmp_path / "vault"
        root.write_text("not a directory", encoding="utf-8")
        notes, errors = NoteStore(root).list_notes()
        assert notes == []
        assert len(errors) == 1
        assert isinstance(errors[0].error, WalkError)
        assert errors[0].path == root

    def test_shard_scan_failure_reported(self, store: NoteStore, monkeypatch):
        good = _make(store, "Good")
        locked = store.vault_dir / "locked"
        locked.mkdir()
        real_scandir = os.scandir

        def _scandir(path):
            if Path(path) == locked:
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", _scandir)
        notes, errors = store.list_notes()
        assert [n.id for n in notes] == [good]
        assert len(errors) == 1
        assert isinstance(errors[0].error, WalkError)
        assert errors[0].path == locked
