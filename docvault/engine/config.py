"""
DocVault Configuration - Load and validate docvault.yaml at startup.

Usage:
    from docvault.engine.config import load_config, get_config

Example docvault.yaml:

    platform:
      name: DocVault
      environment: dev
    documents:
      root_path: /srv/docvault
      can_lock: true
      can_version: true
      can_create_templates: true
      can_commands: false
    logging:
      directory: .docvault/logs
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from docvault.engine.errors import DocVaultConfigError

CONFIG_FILE_NAME = "docvault.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for docvault.yaml
# ---------------------------------------------------------------------------

class RepositoryConfig(BaseModel):
    """
    Storage backend settings.

    Locking and versioning read independent keys. The ``force_*`` flags let a
    test harness switch features on for one repository instance without
    touching any process-wide state.
    """

    root_path: str = "./docvault_data"
    can_lock: bool = False
    can_version: bool = False
    can_create_templates: bool = False
    can_commands: bool = False

    force_locking: bool = False
    force_versioning: bool = False
    force_commands: bool = False

    # exclusive-open probe on the current file before reading the sidecar
    detect_foreign_holds: bool = True

    plugin_id: int = 123
    plugin_name: str = "DocVault"

    @property
    def locking_enabled(self) -> bool:
        return self.can_lock or self.force_locking

    @property
    def versioning_enabled(self) -> bool:
        return self.can_version or self.force_versioning

    @property
    def commands_enabled(self) -> bool:
        return self.can_commands or self.force_commands

    @property
    def root(self) -> Path:
        return Path(self.root_path)


class CommandsConfig(BaseModel):
    picture_search_url: str = "https://www.google.com/search?q={query}&source=lnms&tbm=isch&sa=X"
    deep_link_scheme: str = "docvault"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".docvault/logs"
    enabled: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return v


class PlatformConfig(BaseModel):
    """Root model for docvault.yaml."""
    name: str = "DocVault"
    environment: str = "dev"

    repository: RepositoryConfig = RepositoryConfig()
    commands: CommandsConfig = CommandsConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[PlatformConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for docvault.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def _normalize(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map the on-disk YAML layout onto PlatformConfig fields."""
    platform_data = raw.get("platform", {}) or {}
    return {
        "name": platform_data.get("name", raw.get("name", "DocVault")),
        "environment": platform_data.get("environment", raw.get("environment", "dev")),
        # "documents:" is the documented key, "repository:" is accepted too
        "repository": raw.get("documents", raw.get("repository", {})) or {},
        "commands": raw.get("commands", {}) or {},
        "logging": raw.get("logging", {}) or {},
    }


def load_config(config_path: Optional[str] = None) -> PlatformConfig:
    """
    Load and validate docvault.yaml.

    Args:
        config_path: Explicit path to docvault.yaml. If None, auto-discovers.

    Returns:
        Validated PlatformConfig instance. Defaults when the file is missing.

    Raises:
        DocVaultConfigError: The file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    path = Path(config_path)
    if not path.exists():
        _config = PlatformConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DocVaultConfigError(
            f"Invalid YAML in {path}: {e}", config_path=str(path)
        ) from e

    if not isinstance(raw, dict):
        raise DocVaultConfigError(
            f"Expected a mapping at the top of {path}", config_path=str(path)
        )

    try:
        _config = PlatformConfig(**_normalize(raw))
    except ValidationError as e:
        raise DocVaultConfigError(
            f"Invalid configuration in {path}: {e}", config_path=str(path)
        ) from e
    return _config


def get_config() -> PlatformConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
