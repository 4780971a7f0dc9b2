"""Unit tests for docvault.engine.context - ExecutionContext."""

import pytest

from docvault.engine.context import (
    ExecutionContext,
    clear_execution_context,
    get_execution_context,
    get_execution_id,
    require_execution_context,
    set_execution_context,
)
from docvault.engine.errors import DocVaultSecurityError


class TestExecutionContext:

    def test_execution_id_generated(self):
        ctx = ExecutionContext(associate="alice")
        assert ctx.execution_id.startswith("exec_")

    def test_set_and_get(self):
        ctx = ExecutionContext(associate="alice")
        set_execution_context(ctx)
        assert get_execution_context() is ctx
        assert get_execution_id() == ctx.execution_id

    def test_clear(self):
        set_execution_context(ExecutionContext(associate="alice"))
        clear_execution_context()
        assert get_execution_context() is None
        assert get_execution_id() is None

    def test_require_without_context_raises(self):
        with pytest.raises(DocVaultSecurityError):
            require_execution_context()

    def test_require_with_empty_associate_raises(self):
        set_execution_context(ExecutionContext(associate=""))
        with pytest.raises(DocVaultSecurityError):
            require_execution_context()
