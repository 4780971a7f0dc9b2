"""
DocVault Execution Context - Per-call actor identity.

The host sets one ExecutionContext per request. Lock ownership is decided by
``ExecutionContext.associate``: the identity written into a document's lock
sidecar and compared against it on checkin, save and undo.

Usage:
    from docvault.engine.context import (
        ExecutionContext,
        set_execution_context,
        require_execution_context,
    )
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional

from docvault.engine.errors import DocVaultSecurityError

current_execution_context: ContextVar[Optional["ExecutionContext"]] = ContextVar(
    "execution_context", default=None
)


@dataclass
class ExecutionContext:
    """Identity of the caller for the current thread/task."""

    associate: str
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")


def set_execution_context(ctx: ExecutionContext) -> None:
    current_execution_context.set(ctx)


def get_execution_context() -> Optional[ExecutionContext]:
    """Get the current execution context. Returns None if not set."""
    return current_execution_context.get()


def require_execution_context() -> ExecutionContext:
    """Get execution context or raise error if not set."""
    ctx = get_execution_context()
    if ctx is None or not ctx.associate:
        raise DocVaultSecurityError(
            "No execution context: actor identity unknown",
            error_type="missing_context",
        )
    return ctx


def clear_execution_context() -> None:
    current_execution_context.set(None)


def get_execution_id() -> Optional[str]:
    ctx = get_execution_context()
    return ctx.execution_id if ctx else None
