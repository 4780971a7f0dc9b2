"""Unit tests for docvault.documents.locks - LockStore."""

import os
import sys
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from docvault.documents.locks import FOREIGN_HOLDER, LockStore
from docvault.documents.models import LockStatus


@pytest.fixture
def doc(tmp_path):
    path = tmp_path / "a.txt"
    path.write_bytes(b"content")
    return path


class TestProbe:

    def test_unlocked(self, doc):
        store = LockStore()
        state = store.probe(doc)
        assert state.status is LockStatus.FREE
        assert store.holder(doc) == ""

    def test_held(self, doc):
        store = LockStore()
        store.set_holder(doc, "alice")
        state = store.probe(doc)
        assert state.status is LockStatus.HELD
        assert state.is_held_by("alice")
        assert not state.is_held_by("bob")
        assert store.holder(doc) == "alice"

    def test_missing_document_is_free(self, tmp_path):
        assert LockStore().probe(tmp_path / "nope.txt").is_free

    def test_probe_failure_reports_foreign(self, doc):
        store = LockStore()
        store.set_holder(doc, "alice")
        with patch("docvault.documents.locks._lock_exclusive", side_effect=BlockingIOError()):
            state = store.probe(doc)
        assert state.status is LockStatus.FOREIGN
        assert state.holder == FOREIGN_HOLDER

    def test_unopenable_file_reports_foreign(self, doc):
        with patch("builtins.open", side_effect=PermissionError("in use")):
            assert LockStore().probe(doc).status is LockStatus.FOREIGN

    def test_detection_can_be_disabled(self, doc):
        store = LockStore(detect_foreign_holds=False)
        with patch("docvault.documents.locks._lock_exclusive", side_effect=BlockingIOError()):
            assert store.probe(doc).is_free

    @pytest.mark.skipif(sys.platform == "win32", reason="flock semantics")
    def test_real_flock_held_elsewhere(self, doc):
        import fcntl

        with open(doc, "r+b") as other:
            fcntl.flock(other.fileno(), fcntl.LOCK_EX)
            try:
                assert LockStore().probe(doc).status is LockStatus.FOREIGN
            finally:
                fcntl.flock(other.fileno(), fcntl.LOCK_UN)
        assert LockStore().probe(doc).is_free


class TestAcquire:

    def test_try_acquire_creates_sidecar(self, doc):
        store = LockStore()
        assert store.try_acquire(doc, "alice") is True
        assert store.sidecar_path(doc).read_text(encoding="utf-8") == "alice"

    def test_second_acquire_fails(self, doc):
        store = LockStore()
        assert store.try_acquire(doc, "alice") is True
        assert store.try_acquire(doc, "bob") is False
        assert store.holder(doc) == "alice"

    def test_reacquire_by_holder_returns_false(self, doc):
        store = LockStore()
        store.try_acquire(doc, "alice")
        assert store.try_acquire(doc, "alice") is False
        assert store.holder(doc) == "alice"

    def test_empty_identity_rejected(self, doc):
        with pytest.raises(ValueError):
            LockStore().try_acquire(doc, "")

    def test_young_empty_sidecar_is_not_reclaimed(self, doc):
        store = LockStore()
        store.sidecar_path(doc).write_text("", encoding="utf-8")
        assert store.try_acquire(doc, "alice") is False
        assert store.sidecar_path(doc).read_text(encoding="utf-8") == ""

    def test_stale_empty_sidecar_is_reclaimed(self, doc):
        store = LockStore(stale_after=60)
        lock_path = store.sidecar_path(doc)
        lock_path.write_text("", encoding="utf-8")
        old = time.time() - 3600
        os.utime(lock_path, (old, old))
        assert store.probe(doc).is_free
        assert store.try_acquire(doc, "alice") is True
        assert store.holder(doc) == "alice"
        assert sorted(p.name for p in doc.parent.iterdir()) == ["a.txt", "a.txt.lock"]

    def test_racing_acquirers_have_one_winner(self, doc):
        store = LockStore()
        real_link = os.link
        results = {}

        def rival_links_first(src, dst, *args, **kwargs):
            # bob acquires while alice's sidecar is staged but not yet linked
            if "bob" not in results:
                results["bob"] = None
                results["bob"] = store.try_acquire(doc, "bob")
            return real_link(src, dst, *args, **kwargs)

        with patch("docvault.documents.locks.os.link", side_effect=rival_links_first):
            results["alice"] = store.try_acquire(doc, "alice")

        assert results == {"bob": True, "alice": False}
        assert store.holder(doc) == "bob"
        assert sorted(p.name for p in doc.parent.iterdir()) == ["a.txt", "a.txt.lock"]

    def test_sidecar_never_empty_while_acquiring(self, doc):
        store = LockStore()
        real_link = os.link
        seen = []

        def check_staged(src, dst, *args, **kwargs):
            seen.append(Path(src).read_text(encoding="utf-8"))
            seen.append(Path(dst).exists())
            return real_link(src, dst, *args, **kwargs)

        with patch("docvault.documents.locks.os.link", side_effect=check_staged):
            assert store.try_acquire(doc, "alice") is True
        assert seen == ["alice", False]

    def test_foreign_hold_blocks_acquire(self, doc):
        store = LockStore()
        with patch("docvault.documents.locks._lock_exclusive", side_effect=BlockingIOError()):
            assert store.try_acquire(doc, "alice") is False
        assert not store.sidecar_path(doc).exists()

    def test_acquire_on_new_document(self, tmp_path):
        path = tmp_path / "sub" / "new.txt"
        store = LockStore()
        assert store.try_acquire(path, "alice") is True
        assert store.holder(path) == "alice"


class TestSetHolderRelease:

    def test_set_holder_overwrites(self, doc):
        store = LockStore()
        store.set_holder(doc, "alice")
        store.set_holder(doc, "bob")
        assert store.holder(doc) == "bob"

    def test_set_empty_removes(self, doc):
        store = LockStore()
        store.set_holder(doc, "alice")
        store.set_holder(doc, "")
        assert not store.sidecar_path(doc).exists()

    def test_release_is_idempotent(self, doc):
        store = LockStore()
        store.release(doc)
        store.set_holder(doc, "alice")
        store.release(doc)
        store.release(doc)
        assert store.probe(doc).is_free

    def test_no_temp_files_left(self, doc):
        store = LockStore()
        store.set_holder(doc, "alice")
        assert sorted(p.name for p in doc.parent.iterdir()) == ["a.txt", "a.txt.lock"]
