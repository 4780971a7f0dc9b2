"""
DocVault Template Repository - Document templates and their language variants.

Templates have no locking and no history: every save overwrites, last writer
wins. A language variant lives next to the neutral template with the language
code inserted before the extension (``letter.docx`` / ``letterfr.docx``);
loading a missing variant falls back to the neutral file.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path, PurePath
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple

from docvault.documents.models import TemplateInfo, TemplateVariant
from docvault.documents.paths import PathResolver
from docvault.engine.config import RepositoryConfig
from docvault.engine.context import get_execution_id
from docvault.engine.logging import log, log_template_event

logger = logging.getLogger("docvault.documents.templates")

# document type key -> (display name, extension, MIME type)
TEMPLATE_TYPES: Dict[int, Tuple[str, str, str]] = {
    1: (
        "Word Document",
        ".docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    2: ("Text document", ".txt", "text/plain"),
    3: ("Picture", ".jpg", "image/jpeg"),
}


class TemplateRepository:
    """Lock-free template store rooted at ``<root>/Templates``."""

    def __init__(self, config: RepositoryConfig, resolver: Optional[PathResolver] = None):
        self._config = config
        self._paths = resolver or PathResolver(config.root)

    def _relative(self, path: Path) -> str:
        return str(path.relative_to(self._paths.templates_dir))

    # -------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------

    def save(self, ref: str, content: BinaryIO, language: str = "") -> Path:
        """Overwrite (truncate + write) the template or one language variant."""
        path = self._paths.template_path(ref, language)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            shutil.copyfileobj(content, f)
        logger.info(f"Saved template '{ref}' lang='{language}' -> {path}")
        log(log_template_event("template_saved", ref, language, execution_id=get_execution_id()))
        return path

    def save_info(self, info: TemplateInfo, content: BinaryIO, language: str = "") -> TemplateInfo:
        path = self.save(info.external_reference, content, language)
        return TemplateInfo(
            external_reference=self._relative(path),
            name=info.name,
            description=info.description,
            mime_type=info.mime_type,
            plugin_id=self._config.plugin_id,
        )

    def resolve_for_read(self, ref: str, language: str = "") -> Path:
        """Variant path if it exists, otherwise the neutral template path."""
        path = self._paths.template_path(ref, language)
        if language and not path.is_file():
            logger.debug(f"Template '{ref}' has no '{language}' variant, using neutral")
            path = self._paths.template_path(ref)
        return path

    def open_read(self, ref: str, language: str = "") -> BinaryIO:
        """Open a template for reading; FileNotFoundError if even the neutral one is missing."""
        return open(self.resolve_for_read(ref, language), "rb")

    def exists(self, ref: str, language: str = "") -> bool:
        return self._paths.template_path(ref, language).is_file()

    # -------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------

    def delete(self, ref: str) -> bool:
        return self._remove(ref, "")

    def delete_language(self, ref: str, language: str) -> bool:
        return self._remove(ref, language)

    def _remove(self, ref: str, language: str) -> bool:
        path = self._paths.template_path(ref, language)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted template '{ref}' lang='{language}'")
        log(log_template_event("template_deleted", ref, language, execution_id=get_execution_id()))
        return True

    # -------------------------------------------------------------------
    # Language variants
    # -------------------------------------------------------------------

    def variants(self, ref: str) -> List[TemplateVariant]:
        """
        Files beside the neutral template that share its stem and extension.
        The part of the stem after the neutral stem is the language code.
        """
        neutral = self._paths.template_path(ref)
        directory = neutral.parent
        if not directory.is_dir():
            return []

        stem, ext = neutral.stem, neutral.suffix
        found: List[TemplateVariant] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file() or entry.name == neutral.name:
                    continue
                candidate = PurePath(entry.name)
                if candidate.suffix != ext or not candidate.stem.startswith(stem):
                    continue
                code = candidate.stem[len(stem):].strip()
                if code:
                    found.append(TemplateVariant(ref, code, Path(entry.path)))
        return found

    def languages(self, ref: str) -> List[str]:
        return [v.language_code for v in self.variants(ref)]

    # -------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------

    def extension(self, ref: str) -> str:
        return self._paths.template_path(ref).suffix

    @staticmethod
    def properties(ref: str, requested: Iterable[str] = ()) -> Dict[str, str]:
        """Templates carry no properties; every requested key comes back blank."""
        return {key: "" for key in requested}

    def template_url(self, ref: str, language: str = "") -> str:
        return self._paths.to_url(self._paths.template_path(ref, language))

    def create_default(self, document_type_key: int, info: TemplateInfo) -> Optional[TemplateInfo]:
        """
        Create an empty template file of the given document type.

        Returns None when template creation is disabled or the type is unknown.
        """
        if not self._config.can_create_templates:
            return None
        if document_type_key not in TEMPLATE_TYPES:
            logger.warning(f"Unknown template document type {document_type_key}")
            return None

        _, ext, mime = TEMPLATE_TYPES[document_type_key]
        name = info.name or "name"
        path = self._paths.templates_dir / f"{name}{ext}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")

        logger.info(f"Created default template {path}")
        log(log_template_event("template_created", self._relative(path), execution_id=get_execution_id()))
        return TemplateInfo(
            external_reference=self._relative(path),
            name=info.name,
            description=info.description,
            mime_type=mime,
            plugin_id=self._config.plugin_id,
        )
