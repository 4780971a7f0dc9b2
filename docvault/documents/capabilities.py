"""
DocVault Capability Reporter - Optional behaviors the backend supports.

The host reads this map once and decides which other calls it will issue.
FastExists and FastLockStatus are always True: both are a single stat or
sidecar read on the filesystem.
"""

from __future__ import annotations

from typing import Dict

from docvault.documents.templates import TEMPLATE_TYPES
from docvault.engine.config import RepositoryConfig

CAN_CREATE_DOCUMENT_TEMPLATES = "CanCreateDocumentTemplates"
VERSIONING = "Versioning"
LOCKING = "Locking"
FAST_VERSION_LIST = "FastVersionList"
FAST_LOCK_STATUS = "FastLockStatus"
FAST_EXISTS = "FastExists"


class CapabilityReporter:
    """Pure function of the repository configuration."""

    def __init__(self, config: RepositoryConfig):
        self._config = config

    def capabilities(self) -> Dict[str, str]:
        return {
            CAN_CREATE_DOCUMENT_TEMPLATES: str(self._config.can_create_templates),
            VERSIONING: str(self._config.versioning_enabled),
            LOCKING: str(self._config.locking_enabled),
            FAST_VERSION_LIST: str(self._config.versioning_enabled),
            FAST_LOCK_STATUS: str(True),
            FAST_EXISTS: str(True),
        }

    @staticmethod
    def supported_template_types() -> Dict[int, str]:
        return {key: display for key, (display, _, _) in TEMPLATE_TYPES.items()}
