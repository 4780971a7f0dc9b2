"""
DocVault Test Suite - Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import pytest

from docvault.engine.config import RepositoryConfig


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset module-level singletons between tests."""
    import docvault.engine.config as cfg_mod
    import docvault.engine.logging as log_mod
    from docvault.engine.context import clear_execution_context

    cfg_mod._config = None
    log_mod._file_logger = None
    clear_execution_context()
    yield
    cfg_mod._config = None
    log_mod._file_logger = None
    clear_execution_context()


@pytest.fixture
def repo_root(tmp_path):
    """Repository root with Documents/ and Templates/ created."""
    root = tmp_path / "repo"
    (root / "Documents").mkdir(parents=True)
    (root / "Templates").mkdir(parents=True)
    return root


@pytest.fixture
def make_config(repo_root):
    """Factory for RepositoryConfig rooted at repo_root."""
    def _make(**overrides) -> RepositoryConfig:
        data = {"root_path": str(repo_root)}
        data.update(overrides)
        return RepositoryConfig(**data)
    return _make


@pytest.fixture
def locking_config(make_config):
    return make_config(can_lock=True, can_version=True)


@pytest.fixture
def repository(locking_config):
    from docvault.documents.repository import DocumentRepository
    return DocumentRepository(locking_config)


@pytest.fixture
def unlocked_repository(make_config):
    from docvault.documents.repository import DocumentRepository
    return DocumentRepository(make_config())

