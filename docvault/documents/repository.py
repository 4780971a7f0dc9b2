"""
DocVault Document Repository - Checkout, save, checkin and history.

Each document is in one of three states as seen by an actor:

    Unlocked            -> checkout / save acquire the lock
    CheckedOutToOwner   -> save, checkin, undo allowed
    CheckedOutToOther   -> every mutation refused with a message

Refusals are returned as ``ReturnInfo(success=False)`` and never change any
file. Filesystem errors while reading or writing content propagate.

When locking is disabled by configuration, checkout/checkin/undo succeed
without doing anything and save always overwrites.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple

from docvault.documents.locks import LockStore
from docvault.documents.models import (
    CheckoutInfo,
    CheckoutState,
    DocumentInfo,
    LockState,
    LockStatus,
    ReturnInfo,
    VersionDescriptor,
    VersionInfo,
)
from docvault.documents.paths import PathResolver
from docvault.documents.versions import VersionStore
from docvault.engine.config import RepositoryConfig
from docvault.engine.context import get_execution_id
from docvault.engine.errors import DocVaultNotImplementedError
from docvault.engine.logging import log, log_document_event, log_lock_event

logger = logging.getLogger("docvault.documents.repository")

# Property keys reported by properties()
PROP_HAS_LOCKING = "HasLocking"
PROP_HAS_VERSIONING = "HasVersioning"
PROP_LAST_MODIFIED = "LastModified"
PROP_PREFERRED_OPEN = "PreferredOpen"
PREFERRED_OPEN_STREAM = "Stream"


class DocumentRepository:
    """
    Filesystem document store with single-writer locking.

    Instantiated once per configured root; stateless between calls. Every
    piece of state lives on disk next to the document.
    """

    def __init__(
        self,
        config: RepositoryConfig,
        resolver: Optional[PathResolver] = None,
        locks: Optional[LockStore] = None,
        versions: Optional[VersionStore] = None,
    ):
        self._config = config
        self._paths = resolver or PathResolver(config.root)
        self._locks = locks or LockStore(detect_foreign_holds=config.detect_foreign_holds)
        self._versions = versions or VersionStore(self._paths)

    @property
    def locking_enabled(self) -> bool:
        return self._config.locking_enabled

    @property
    def versioning_enabled(self) -> bool:
        return self._config.versioning_enabled

    @property
    def paths(self) -> PathResolver:
        return self._paths

    # -------------------------------------------------------------------
    # Queries (never touch locks)
    # -------------------------------------------------------------------

    def exists(self, ref: str) -> bool:
        return self._paths.document_path(ref).is_file()

    def get_length(self, ref: str, version: Optional[str] = None) -> int:
        """Byte length of the current file or a version; -1 when absent."""
        path = self._paths.document_path(ref, version)
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return -1

    def open_read(self, ref: str, version: Optional[str] = None) -> BinaryIO:
        """Open content for reading. A missing file raises FileNotFoundError."""
        return open(self._paths.document_path(ref, version), "rb")

    def properties(self, ref: str, requested: Iterable[str] = ()) -> Dict[str, str]:
        """
        Property map for the host. Every requested key is present (blank
        when unknown); locking/versioning/open-mode facts are always added.
        """
        props: Dict[str, str] = {key: "" for key in requested}
        props[PROP_HAS_LOCKING] = str(self.locking_enabled)
        props[PROP_HAS_VERSIONING] = str(self.versioning_enabled)
        path = self._paths.document_path(ref)
        if path.is_file():
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            props[PROP_LAST_MODIFIED] = mtime.isoformat()
        props[PROP_PREFERRED_OPEN] = PREFERRED_OPEN_STREAM
        return props

    def document_url(self, ref: str, version: Optional[str] = None) -> str:
        return self._paths.to_url(self._paths.document_path(ref, version))

    # -------------------------------------------------------------------
    # Lock state
    # -------------------------------------------------------------------

    def lock_state(self, ref: str) -> LockState:
        return self._locks.probe(self._paths.document_path(ref))

    def checkout_state(self, ref: str, actor: str) -> CheckoutInfo:
        if not self.locking_enabled:
            return CheckoutInfo(state=CheckoutState.LOCKING_NOT_SUPPORTED)
        state = self.lock_state(ref)
        if state.is_free:
            return CheckoutInfo(state=CheckoutState.NOT_CHECKED_OUT)
        if state.is_held_by(actor):
            return CheckoutInfo(state=CheckoutState.CHECKED_OUT_OWN, name=state.holder)
        return CheckoutInfo(state=CheckoutState.CHECKED_OUT_OTHER, name=state.holder)

    # -------------------------------------------------------------------
    # Checkout / save / checkin / undo
    # -------------------------------------------------------------------

    def checkout(self, ref: str, actor: str) -> ReturnInfo:
        """Take the lock for ``actor``. Re-checkout by the holder succeeds."""
        if not self.locking_enabled:
            return ReturnInfo.ok()

        state = self.lock_state(ref)
        if state.is_free:
            state = self._acquire(ref, actor)
        if not state.is_held_by(actor):
            return self._refuse("checkout", ref, actor, state, f"Checked out by {state.holder}")

        logger.info(f"Checked out '{ref}' to {actor}")
        return ReturnInfo.ok()

    def save(self, ref: str, content: BinaryIO, actor: str) -> ReturnInfo:
        """
        Overwrite the current file from ``content``.

        With locking enabled an unlocked document is checked out to
        ``actor`` first; a document held by anyone else is left untouched.
        The caller keeps ownership of ``content``.
        """
        path = self._paths.document_path(ref)

        if self.locking_enabled:
            state = self.lock_state(ref)
            if state.is_free:
                state = self._acquire(ref, actor)
            if not state.is_held_by(actor):
                return self._refuse("save", ref, actor, state, f"Locked by {state.holder}")

        path.parent.mkdir(parents=True, exist_ok=True)
        size = self._write_current(path, content)
        logger.info(f"Saved '{ref}' ({size} bytes) by {actor}")
        log(log_document_event(
            "document_saved", ref, actor, True,
            execution_id=get_execution_id(), size_bytes=size,
        ))
        return ReturnInfo.ok(external_reference=ref)

    def checkin(self, ref: str, actor: str, description: Optional[str] = None) -> ReturnInfo:
        """
        Snapshot the current content as the next version and release the lock.

        ``description`` is accepted for the host contract; version files carry
        no metadata so it is not stored.
        """
        if not self.locking_enabled:
            return ReturnInfo.ok()

        refusal = self._require_owner("checkin", ref, actor)
        if refusal is not None:
            return refusal

        descriptor = self._versions.commit(ref)
        self._versions.discard_baseline(ref)
        self._locks.release(self._paths.document_path(ref))

        logger.info(f"Checked in '{ref}' as v{descriptor.number} by {actor}")
        log(log_document_event(
            "document_checked_in", ref, actor, True,
            execution_id=get_execution_id(), version=descriptor.number,
        ))
        return ReturnInfo.ok(external_reference=ref)

    def undo_checkout(self, ref: str, actor: str) -> ReturnInfo:
        """Discard edits made under the lock and release it."""
        if not self.locking_enabled:
            return ReturnInfo.ok()

        refusal = self._require_owner("undo_checkout", ref, actor)
        if refusal is not None:
            return refusal

        self._versions.revert(ref)
        self._versions.discard_baseline(ref)
        self._locks.release(self._paths.document_path(ref))

        logger.info(f"Undid checkout of '{ref}' by {actor}")
        log(log_document_event(
            "document_checkout_undone", ref, actor, True,
            execution_id=get_execution_id(),
        ))
        return ReturnInfo.ok()

    # -------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------

    def versions(self, ref: str) -> List[VersionDescriptor]:
        """Checked-in versions in filesystem order; empty when versioning is off."""
        if not self.versioning_enabled:
            return []
        return self._versions.list_versions(ref)

    def version_list(self, ref: str, document_id: int = 0) -> List[VersionInfo]:
        return [d.to_version_info(document_id) for d in self.versions(ref)]

    def load_version_info(
        self, ref: str, version: str, document_id: int = 0
    ) -> Optional[VersionInfo]:
        if not self.versioning_enabled or not str(version).isdigit():
            return None
        descriptor = self._versions.get(ref, int(version))
        if descriptor is None:
            return None
        return descriptor.to_version_info(document_id)

    # -------------------------------------------------------------------
    # Create / delete / rename
    # -------------------------------------------------------------------

    @staticmethod
    def create_document(info: DocumentInfo, file_name: str) -> Tuple[str, str]:
        """
        Derive a unique external reference for a new document.

        The host's name wins over ``file_name``; the document id is folded
        into the file name: ``report.docx`` -> ``report docid-42.docx``.
        Returns ``(external_reference, file_name)``.
        """
        if info.name:
            file_name = info.name
        pure = PurePath(file_name)
        file_name = f"{pure.stem} docid-{info.document_id}{pure.suffix}"
        parent = PurePath(info.external_reference).parent if info.external_reference else PurePath()
        return str(parent / file_name), file_name

    def delete(self, ref: str, actor: Optional[str] = None) -> ReturnInfo:
        """
        Remove the current file together with its versions and sidecars.

        Refused while anyone holds the lock, the caller included.
        """
        path = self._paths.document_path(ref)
        if not path.is_file():
            return ReturnInfo.failure()

        if self.locking_enabled:
            state = self.lock_state(ref)
            if not state.is_free:
                return self._refuse("delete", ref, actor, state, f"Checked out by {state.holder}")

        path.unlink()
        removed = self._versions.delete_all(ref)
        self._locks.release(path)

        logger.info(f"Deleted '{ref}' and {removed} version(s)")
        log(log_document_event(
            "document_deleted", ref, actor, True, execution_id=get_execution_id(),
        ))
        return ReturnInfo.ok()

    def rename(self, ref: str, new_name: str) -> str:
        raise DocVaultNotImplementedError(
            "Renaming documents is not supported",
            object_ref=ref,
            operation="rename",
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    def _acquire(self, ref: str, actor: str) -> LockState:
        """Create the lock for ``actor`` if free; report the winner otherwise."""
        path = self._paths.document_path(ref)
        if self._locks.try_acquire(path, actor):
            self._versions.capture_baseline(ref)
            log(log_lock_event(
                "lock_acquired", ref, actor, actor, True, execution_id=get_execution_id(),
            ))
            return LockState(LockStatus.HELD, actor)
        return self._locks.probe(path)

    def _require_owner(self, operation: str, ref: str, actor: str) -> Optional[ReturnInfo]:
        state = self.lock_state(ref)
        if state.is_free:
            return self._refuse(operation, ref, actor, state, "Not checked out")
        if not state.is_held_by(actor):
            return self._refuse(operation, ref, actor, state, f"Checked out to {state.holder}")
        return None

    def _refuse(
        self,
        operation: str,
        ref: str,
        actor: Optional[str],
        state: LockState,
        message: str,
    ) -> ReturnInfo:
        logger.info(f"{operation} refused on '{ref}' for {actor}: {message}")
        log(log_lock_event(
            f"{operation}_refused", ref, actor, state.holder, False,
            execution_id=get_execution_id(),
        ))
        return ReturnInfo.failure(message)

    @staticmethod
    def _write_current(path: Path, content: BinaryIO) -> int:
        """Stream ``content`` into a temp sibling, then rename it over ``path``."""
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as dst:
                shutil.copyfileobj(content, dst)
                size = dst.tell()
            os.replace(tmp, path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        return size
