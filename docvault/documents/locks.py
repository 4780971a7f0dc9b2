"""
DocVault Lock Store - Single-writer lock via a ``<current>.lock`` sidecar.

The sidecar holds the identity of the actor that checked the document out.
Acquisition writes the holder to a temp file and hard-links it into place.
The link fails when a sidecar already exists, so two actors racing for an
unlocked document cannot both win, and a sidecar is never visible empty.

Before the sidecar is read, the current file is probed with an exclusive
non-blocking lock (fcntl.flock on POSIX, msvcrt.locking on Windows). If that
probe fails, some process outside this lock convention (an editor, a sync
client) holds the file and the document is reported as FOREIGN. This is a
heuristic: exclusive-open semantics differ per platform and a probe can race
with the process it is looking for.
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
import time
import uuid
from pathlib import Path
from typing import BinaryIO

from docvault.documents.models import LockState, LockStatus
from docvault.documents.paths import LOCK_SUFFIX, sidecar

_system = platform.system()

if _system == "Windows":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger("docvault.documents.locks")

FOREIGN_HOLDER = "Other process"

# empty sidecars younger than this are never reclaimed
STALE_SIDECAR_SECONDS = 30.0


def _lock_exclusive(fh: BinaryIO) -> None:
    if _system == "Windows":
        msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)  # type: ignore[attr-defined]
    else:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock(fh: BinaryIO) -> None:
    if _system == "Windows":
        msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]
    else:
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


class LockStore:
    """
    Reads and writes lock sidecars.

    All methods take the path of the document's *current* file; the sidecar
    location is derived from it.
    """

    def __init__(
        self,
        detect_foreign_holds: bool = True,
        stale_after: float = STALE_SIDECAR_SECONDS,
    ):
        self._detect_foreign_holds = detect_foreign_holds
        self._stale_after = stale_after

    @staticmethod
    def sidecar_path(path: Path) -> Path:
        return sidecar(path, LOCK_SUFFIX)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------

    def held_by_other_process(self, path: Path) -> bool:
        """
        Best-effort check that some process holds ``path`` open exclusively.

        Any OSError while opening or locking counts as a hold.
        """
        if not self._detect_foreign_holds or not path.exists():
            return False
        try:
            with open(path, "r+b") as fh:
                _lock_exclusive(fh)
                _unlock(fh)
        except OSError as e:
            logger.debug(f"Exclusive probe failed for {path}: {e}")
            return True
        return False

    def probe(self, path: Path) -> LockState:
        """Tri-state view of the lock: FREE, HELD by a known identity, or FOREIGN."""
        if self.held_by_other_process(path):
            return LockState(LockStatus.FOREIGN, FOREIGN_HOLDER)
        holder = self._read_sidecar(path)
        if not holder:
            return LockState(LockStatus.FREE)
        return LockState(LockStatus.HELD, holder)

    def holder(self, path: Path) -> str:
        """Identity holding the document, ``""`` when unlocked."""
        return self.probe(path).holder

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------

    def try_acquire(self, path: Path, actor: str) -> bool:
        """
        Atomically create the sidecar for ``actor``.

        Returns True only when this call created the lock. An existing lock,
        including one already held by ``actor``, returns False.
        """
        if not actor:
            raise ValueError("Lock holder identity must not be empty")
        if self.held_by_other_process(path):
            return False

        lock_path = self.sidecar_path(path)
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        acquired = self._publish(lock_path, actor)
        if not acquired and not self._read_sidecar(path) and self._reclaim_stale(lock_path):
            acquired = self._publish(lock_path, actor)
        if acquired:
            logger.debug(f"Lock acquired: {lock_path} by {actor}")
        return acquired

    def set_holder(self, path: Path, identity: str) -> None:
        """
        Overwrite the sidecar with ``identity``; an empty identity removes it.
        """
        if not identity:
            self.release(path)
            return

        lock_path = self.sidecar_path(path)
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=lock_path.parent, prefix=f".{lock_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(identity)
            os.replace(tmp, lock_path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    def release(self, path: Path) -> None:
        """Remove the sidecar. Releasing an unlocked document is not an error."""
        lock_path = self.sidecar_path(path)
        lock_path.unlink(missing_ok=True)
        logger.debug(f"Lock released: {lock_path}")

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _publish(lock_path: Path, identity: str) -> bool:
        """
        Write ``identity`` to a temp sibling and hard-link it to ``lock_path``.

        The link fails if a sidecar already exists, so the sidecar never
        becomes visible without its holder's name in it.
        """
        fd, tmp = tempfile.mkstemp(dir=lock_path.parent, prefix=f".{lock_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(identity)
            os.link(tmp, lock_path)
        except FileExistsError:
            return False
        finally:
            Path(tmp).unlink(missing_ok=True)
        return True

    def _reclaim_stale(self, lock_path: Path) -> bool:
        """
        Move an empty sidecar older than the grace period out of the way.

        Returns True when the slot is free for another publish attempt. A
        young empty sidecar is left alone.
        """
        try:
            st = lock_path.stat()
        except FileNotFoundError:
            return True
        if st.st_size or time.time() - st.st_mtime < self._stale_after:
            return False

        quarantine = lock_path.with_name(f".{lock_path.name}.{uuid.uuid4().hex}.stale")
        try:
            os.rename(lock_path, quarantine)
        except FileNotFoundError:
            return True

        # a rival published between the stat and the rename: put it back
        if quarantine.stat().st_size:
            try:
                os.link(quarantine, lock_path)
            except FileExistsError:
                pass
            quarantine.unlink(missing_ok=True)
            return False

        logger.warning(f"Reclaimed stale empty lock sidecar {lock_path}")
        quarantine.unlink(missing_ok=True)
        return True

    def _read_sidecar(self, path: Path) -> str:
        lock_path = self.sidecar_path(path)
        try:
            return lock_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
