"""
DocVault Path Resolver - Map document/template references to disk locations.

Layout under the configured root:

    <root>/Documents/<ref>                 current content
    <root>/Documents/<ref>.lock            lock holder identity
    <root>/Documents/<ref>.base            checkout baseline (no versions yet)
    <root>/Documents/<name> v<N><ext>      version N snapshot
    <root>/Templates/<ref>                 language-neutral template
    <root>/Templates/<name><lang><ext>     language variant

Resolution never touches the filesystem; callers check existence.
"""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Optional, Union

DOCUMENTS_DIR = "Documents"
TEMPLATES_DIR = "Templates"
LOCK_SUFFIX = ".lock"
BASELINE_SUFFIX = ".base"
WILDCARD = "*"
BLANK_REF = "blank"


def _with_tag(ref: str, tag: str) -> str:
    """Insert ``tag`` between the file stem and extension, keeping sub-dirs."""
    pure = PurePath(ref)
    return str(pure.with_name(f"{pure.stem}{tag}{pure.suffix}"))


class PathResolver:
    """Pure function of (reference, tag) and the configured root."""

    def __init__(self, root: Union[str, Path]):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def documents_dir(self) -> Path:
        return self._root / DOCUMENTS_DIR

    @property
    def templates_dir(self) -> Path:
        return self._root / TEMPLATES_DIR

    def ensure_directories(self) -> None:
        for path in (self._root, self.documents_dir, self.templates_dir):
            path.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------

    def document_path(self, ref: Optional[str], version: Optional[Union[str, int]] = None) -> Path:
        """
        Current file when ``version`` is empty, otherwise the sibling
        ``<name> v<version><ext>``. ``"*"`` yields an enumeration pattern.
        """
        ref = ref or BLANK_REF
        if version is None or version == "":
            return self.documents_dir / ref
        return self.documents_dir / _with_tag(ref, f" v{version}")

    def version_pattern(self, ref: Optional[str]) -> Path:
        return self.document_path(ref, WILDCARD)

    def lock_path(self, ref: Optional[str]) -> Path:
        return sidecar(self.document_path(ref), LOCK_SUFFIX)

    def baseline_path(self, ref: Optional[str]) -> Path:
        return sidecar(self.document_path(ref), BASELINE_SUFFIX)

    # -------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------

    def template_path(self, ref: Optional[str], language: Optional[str] = "") -> Path:
        """Neutral template when ``language`` is empty, else ``<name><lang><ext>``."""
        ref = ref or BLANK_REF
        if not language:
            return self.templates_dir / ref
        return self.templates_dir / _with_tag(ref, language)

    @staticmethod
    def to_url(path: Path) -> str:
        """file:// URI for a resolved path."""
        return path.absolute().as_uri()


def sidecar(path: Path, suffix: str) -> Path:
    """``a.txt`` -> ``a.txt.lock``; appended, never replacing the extension."""
    return path.with_name(path.name + suffix)
