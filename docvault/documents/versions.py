"""
DocVault Version Store - Immutable snapshots ``<name> v<N><ext>``.

Version numbers are dense: allocation probes v1, v2, ... and takes the first
free slot, which is always one past the highest existing version because
versions are only ever created here and removed all together.

Handles:
- Version allocation and check-in snapshots (commit)
- Version enumeration for the host's history view
- Reverting the current file to the last check-in (undo checkout)
- The checkout baseline used by undo before any version exists
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from docvault.documents.models import VersionDescriptor
from docvault.documents.paths import WILDCARD, PathResolver

logger = logging.getLogger("docvault.documents.versions")


def replace_contents(source: Path, target: Path) -> None:
    """Copy ``source`` over ``target`` via a temp file and an atomic rename."""
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as dst, open(source, "rb") as src:
            shutil.copyfileobj(src, dst)
        os.replace(tmp, target)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise


class VersionStore:
    """Allocates, enumerates and materializes versions of a document."""

    def __init__(self, resolver: PathResolver):
        self._paths = resolver

    # -------------------------------------------------------------------
    # Numbering
    # -------------------------------------------------------------------

    def next_version_number(self, ref: str) -> int:
        """First N, starting at 1, with no version file. Linear probe."""
        number = 1
        while self._paths.document_path(ref, number).exists():
            number += 1
        return number

    def latest_version_number(self, ref: str) -> int:
        """Highest existing version number, 0 when there are none."""
        return self.next_version_number(ref) - 1

    # -------------------------------------------------------------------
    # Commit / enumerate
    # -------------------------------------------------------------------

    def commit(self, ref: str) -> VersionDescriptor:
        """
        Snapshot the current file into the next version slot.

        The slot is claimed with an exclusive create so a concurrent commit
        takes the following number instead of overwriting. If the copy fails
        the half-written version file is removed; the current file and the
        existing versions are never modified.
        """
        current = self._paths.document_path(ref)
        number = self.next_version_number(ref)

        with open(current, "rb") as src:
            while True:
                target = self._paths.document_path(ref, number)
                try:
                    dst = open(target, "xb")
                except FileExistsError:
                    number += 1
                    continue
                break

            try:
                with dst:
                    shutil.copyfileobj(src, dst)
            except OSError:
                target.unlink(missing_ok=True)
                raise

        logger.info(f"Committed version v{number} of '{ref}': {target}")
        return self._describe(ref, number, target)

    def list_versions(self, ref: str) -> List[VersionDescriptor]:
        """
        Versions present right now, in directory enumeration order.

        The order is whatever the filesystem yields; sort on
        ``VersionDescriptor.number`` where numeric order matters.
        """
        pattern = self._paths.version_pattern(ref)
        directory = pattern.parent
        prefix, suffix = pattern.name.split(WILDCARD, 1)
        if not directory.is_dir():
            return []

        descriptors: List[VersionDescriptor] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                name = entry.name
                if not entry.is_file() or len(name) <= len(prefix) + len(suffix):
                    continue
                if not (name.startswith(prefix) and name.endswith(suffix)):
                    continue
                tag = name[len(prefix):len(name) - len(suffix)]
                # "v01" is not the file "v1" resolves to
                if not tag.isdigit() or str(int(tag)) != tag:
                    continue
                descriptors.append(self._describe(ref, int(tag), Path(entry.path)))
        return descriptors

    def get(self, ref: str, number: int) -> Optional[VersionDescriptor]:
        path = self._paths.document_path(ref, number)
        if not path.is_file():
            return None
        return self._describe(ref, number, path)

    # -------------------------------------------------------------------
    # Undo support
    # -------------------------------------------------------------------

    def capture_baseline(self, ref: str) -> None:
        """
        Remember the pre-checkout content of a document with no versions.

        Documents that already have a version revert to it instead, so no
        baseline is kept for them.
        """
        baseline = self._paths.baseline_path(ref)
        current = self._paths.document_path(ref)
        if self.latest_version_number(ref) > 0:
            baseline.unlink(missing_ok=True)
            return
        if current.is_file():
            shutil.copyfile(current, baseline)
        else:
            baseline.unlink(missing_ok=True)

    def discard_baseline(self, ref: str) -> None:
        self._paths.baseline_path(ref).unlink(missing_ok=True)

    def revert(self, ref: str) -> Optional[Path]:
        """
        Overwrite the current file with the last checked-in version.

        Without any version the checkout baseline is restored; if there is no
        baseline either, the document did not exist before the checkout and
        the current file is removed. Returns the path the content came from.
        """
        current = self._paths.document_path(ref)
        latest = self.latest_version_number(ref)
        if latest > 0:
            source = self._paths.document_path(ref, latest)
        else:
            source = self._paths.baseline_path(ref)
            if not source.is_file():
                current.unlink(missing_ok=True)
                logger.info(f"Reverted '{ref}' to not existing")
                return None

        replace_contents(source, current)
        logger.info(f"Reverted '{ref}' from {source}")
        return source

    def delete_all(self, ref: str) -> int:
        """Remove every version file and the baseline. Returns versions removed."""
        removed = 0
        for descriptor in self.list_versions(ref):
            descriptor.path.unlink(missing_ok=True)
            removed += 1
        self.discard_baseline(ref)
        return removed

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _describe(ref: str, number: int, path: Path) -> VersionDescriptor:
        mtime = path.stat().st_mtime
        return VersionDescriptor(
            document_ref=ref,
            number=number,
            checked_in_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
            path=path,
        )
