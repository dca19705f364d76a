"""
panelforms Configuration — Load and validate panelforms.yaml.

Usage:
    from panelforms.engine.config import load_config, get_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from panelforms.engine.errors import PanelFormsConfigError

CONFIG_FILENAME = "panelforms.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for panelforms.yaml
# ---------------------------------------------------------------------------

class DiskConfig(BaseModel):
    root: str = "storage/app"
    url: Optional[str] = None
    visibility: str = "private"

    @field_validator("visibility")
    @classmethod
    def validate_visibility(cls, v: str) -> str:
        if v not in ("public", "private"):
            raise ValueError(f"visibility must be public/private, got '{v}'")
        return v


def _default_disks() -> Dict[str, DiskConfig]:
    return {
        "local": DiskConfig(root="storage/app", visibility="private"),
        "public": DiskConfig(root="storage/app/public", url="/storage", visibility="public"),
    }


class StorageConfig(BaseModel):
    default_disk: str = "local"
    disks: Dict[str, DiskConfig] = Field(default_factory=_default_disks)

    @model_validator(mode="after")
    def validate_default_disk(self) -> "StorageConfig":
        if self.default_disk not in self.disks:
            raise ValueError(
                f"default_disk '{self.default_disk}' is not one of the configured disks "
                f"{sorted(self.disks)}"
            )
        return self


class UploadsConfig(BaseModel):
    temporary_directory: str = "storage/tmp-uploads"
    max_upload_size_kb: int = Field(default=12288, gt=0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".panelforms/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid logging level '{v}'")
        return v


class FormsConfig(BaseModel):
    """Root model for panelforms.yaml."""
    storage: StorageConfig = StorageConfig()
    uploads: UploadsConfig = UploadsConfig()
    logging: LoggingConfig = LoggingConfig()


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[FormsConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for panelforms.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    """Return the project root directory."""
    return _find_project_root()


def resolve_path(path: str) -> Path:
    """Absolute paths as-is; relative ones under the project root."""
    p = Path(path)
    return p if p.is_absolute() else _find_project_root() / p


def load_config(config_path: Optional[str] = None) -> FormsConfig:
    """
    Load and validate panelforms.yaml.

    Args:
        config_path: Explicit path to panelforms.yaml. If None, auto-discovers.

    Returns:
        Validated FormsConfig instance. Defaults when no file exists.

    Raises:
        PanelFormsConfigError: if the file exists but does not validate.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _config = FormsConfig()
        return _config

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    # Allow everything to be nested under a top-level "panelforms:" key
    data = raw.get("panelforms", raw)

    try:
        _config = FormsConfig(**data)
    except ValueError as e:
        raise PanelFormsConfigError(
            f"Invalid configuration in {path}: {e}",
            config_path=str(path),
        ) from e
    return _config


def get_config() -> FormsConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[FormsConfig]) -> None:
    """Install a config programmatically (None forces re-discovery on next access)."""
    global _config
    _config = config
