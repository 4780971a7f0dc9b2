"""
DocVault Error Hierarchy - Structured exceptions for repository failures.

Lock conflicts are not exceptions: they come back as failed ``ReturnInfo``
results. These classes cover configuration problems, missing actors and
operations the backend never implements.

Hierarchy:
    DocVaultError
    ├── DocVaultConfigError          - Invalid docvault.yaml
    ├── DocVaultSecurityError        - No actor in the execution context
    └── DocVaultNotImplementedError  - Operation the backend never supports
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DocVaultError(Exception):
    """
    Base error for all DocVault failures.
    All context is serializable to JSON for the audit log.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.execution_id: Optional[str] = context.get("execution_id")
        self.object_ref: Optional[str] = context.get("object_ref")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "execution_id": self.execution_id,
            "object_ref": self.object_ref,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("execution_id", "object_ref")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.object_ref:
            parts.append(f"object_ref={self.object_ref}")
        if self.execution_id:
            parts.append(f"execution_id={self.execution_id}")
        return " | ".join(parts)


class DocVaultConfigError(DocVaultError):
    """Configuration error: unreadable or invalid docvault.yaml."""

    def __init__(self, message: str, **context: Any):
        self.config_path: Optional[str] = context.get("config_path")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["config_path"] = self.config_path
        return d


class DocVaultSecurityError(DocVaultError):
    """No actor identity available for a lock-aware operation."""
    pass


class DocVaultNotImplementedError(DocVaultError):
    """Operation is part of the host contract but never implemented."""

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["operation"] = self.operation
        return d
