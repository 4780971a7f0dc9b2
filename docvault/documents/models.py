"""
DocVault Document Models - Host-facing records and internal descriptors.

Host-facing records are Pydantic models: they cross the plugin boundary and are
validated there. Records built while scanning the filesystem (versions, lock
state, template variants) are plain dataclasses, constructed once at
enumeration time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ReturnType(str, Enum):
    """How the host should interpret ReturnInfo.value."""
    NONE = "none"
    MESSAGE = "message"
    URL = "url"
    DEEP_LINK = "deep_link"


class CheckoutState(str, Enum):
    LOCKING_NOT_SUPPORTED = "locking_not_supported"
    NOT_CHECKED_OUT = "not_checked_out"
    CHECKED_OUT_OWN = "checked_out_own"
    CHECKED_OUT_OTHER = "checked_out_other"


class LockStatus(str, Enum):
    """Result of probing a document's lock."""
    FREE = "free"
    HELD = "held"
    FOREIGN = "foreign"


# ---------------------------------------------------------------------------
# Host-facing records
# ---------------------------------------------------------------------------

class DocumentInfo(BaseModel):
    """
    Identity of a document as supplied by the host.

    ``external_reference`` locates the content under ``<root>/Documents``.
    ``document_id`` is display-only; the host's metadata database owns it.
    """

    external_reference: str = Field(default="", description="Host-assigned storage key")
    document_id: int = Field(default=0, description="Host document id (display only)")
    name: str = Field(default="", description="Document file name")
    header: str = Field(default="", description="Document title")
    contact_id: int = Field(default=0, description="Linked contact id")


class TemplateInfo(BaseModel):
    external_reference: str = Field(default="", description="Path under <root>/Templates")
    name: str = ""
    description: str = ""
    mime_type: str = ""
    plugin_id: int = 0


class ReturnInfo(BaseModel):
    """Outcome of a mutating call. Conflicts are reported here, never raised."""

    success: bool = False
    type: ReturnType = ReturnType.NONE
    value: str = ""
    external_reference: Optional[str] = None

    @classmethod
    def ok(cls, external_reference: Optional[str] = None) -> "ReturnInfo":
        return cls(success=True, external_reference=external_reference)

    @classmethod
    def failure(cls, message: str = "") -> "ReturnInfo":
        if not message:
            return cls(success=False)
        return cls(success=False, type=ReturnType.MESSAGE, value=message)


class CheckoutInfo(BaseModel):
    state: CheckoutState = CheckoutState.LOCKING_NOT_SUPPORTED
    name: str = Field(default="", description="Identity holding the lock")


class CommandInfo(BaseModel):
    name: str
    display_name: str
    tooltip: str = ""
    icon_hint: Optional[str] = None
    return_type: ReturnType = ReturnType.MESSAGE


class VersionInfo(BaseModel):
    """Host view of one checked-in version."""

    version_id: str
    document_id: int = 0
    external_reference: str = ""
    checked_in_date: datetime
    display_text: str = ""


# ---------------------------------------------------------------------------
# Internal descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VersionDescriptor:
    """An immutable snapshot file ``<name> v<N><ext>``."""
    document_ref: str
    number: int
    checked_in_at: datetime
    path: Path

    @property
    def display_text(self) -> str:
        return f"Ver {self.number} {self.checked_in_at.date().isoformat()}"

    def to_version_info(self, document_id: int = 0) -> VersionInfo:
        return VersionInfo(
            version_id=str(self.number),
            document_id=document_id,
            external_reference=self.document_ref,
            checked_in_date=self.checked_in_at,
            display_text=self.display_text,
        )


@dataclass(frozen=True)
class LockState:
    """
    Tri-state lock probe result.

    FOREIGN means another process holds the file open exclusively; no
    sidecar identity is known in that case and ``holder`` carries a synthetic
    label.
    """
    status: LockStatus
    holder: str = ""

    @property
    def is_free(self) -> bool:
        return self.status is LockStatus.FREE

    def is_held_by(self, actor: str) -> bool:
        return self.status is LockStatus.HELD and self.holder == actor


@dataclass(frozen=True)
class TemplateVariant:
    template_ref: str
    language_code: str
    path: Path
