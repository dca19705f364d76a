"""
panelforms Storage Service — Disks that staged uploads are committed to.

Handles:
- Named disks from panelforms.yaml (root directory, public URL, default visibility)
- Copying a staged upload onto a disk under a random name
- Public/private visibility as file permissions (0644 / 0600)
- URL resolution, existence checks and deletion

Physical storage:
    {disk.root}/{directory}/{random hex}.{ext}
"""

from __future__ import annotations

import hashlib
import logging
import os
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from panelforms.engine.config import DiskConfig, StorageConfig, get_config, resolve_path
from panelforms.engine.errors import PanelFormsConfigError, PanelFormsStorageError

if TYPE_CHECKING:
    from panelforms.uploads.temporary import TemporaryUploadedFile

logger = logging.getLogger("panelforms.storage.service")

PERMISSIONS = {
    "public": 0o644,
    "private": 0o600,
}


class LocalDisk:
    """A directory on the local filesystem, addressed by relative paths."""

    def __init__(
        self,
        name: str,
        root: str,
        url: Optional[str] = None,
        visibility: str = "private",
    ):
        self.name = name
        self._root = Path(root)
        self._url = url.rstrip("/") if url else None
        self.visibility = visibility

    @property
    def root(self) -> Path:
        return self._root

    def path(self, relative: str) -> Path:
        """Physical path for a relative path; refuses to leave the disk root."""
        root = self._root.resolve()
        full = (root / relative).resolve()
        if full != root and root not in full.parents:
            raise PanelFormsStorageError(
                f"Path '{relative}' escapes disk '{self.name}'",
                disk=self.name,
                path=relative,
            )
        return full

    def put_file(
        self,
        directory: str,
        upload: "TemporaryUploadedFile",
        visibility: Optional[str] = None,
    ) -> str:
        """
        Copy a staged upload onto this disk.

        Returns the stored path relative to the disk root.
        Raises PanelFormsStorageError when the staged file is gone or the
        write fails.
        """
        visibility = visibility or self.visibility
        if visibility not in PERMISSIONS:
            raise PanelFormsStorageError(
                f"Unknown visibility '{visibility}'",
                disk=self.name,
            )

        extension = f".{upload.extension}" if upload.extension else ""
        unique_name = f"{uuid.uuid4().hex}{extension}"
        directory = directory.strip("/")
        relative_path = f"{directory}/{unique_name}" if directory else unique_name
        target = self.path(relative_path)

        bytes_written = 0
        file_hash = hashlib.sha256()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with upload.open() as source, open(target, "wb") as f:
                while True:
                    chunk = source.read(8192)
                    if not chunk:
                        break
                    f.write(chunk)
                    file_hash.update(chunk)
                    bytes_written += len(chunk)
            os.chmod(target, PERMISSIONS[visibility])
        except OSError as e:
            if target.exists():
                target.unlink()
            raise PanelFormsStorageError(
                f"Could not store '{upload.client_filename}' on disk '{self.name}': {e}",
                disk=self.name,
                path=relative_path,
            ) from e

        logger.info(
            f"Stored: {self.name}:{relative_path} ({bytes_written} bytes, "
            f"{visibility}, sha256={file_hash.hexdigest()[:12]})"
        )
        return relative_path

    def url(self, relative: str) -> str:
        """Public URL for a stored path."""
        if not self._url:
            raise PanelFormsStorageError(
                f"Disk '{self.name}' has no public URL configured",
                disk=self.name,
                path=relative,
            )
        return f"{self._url}/{relative.lstrip('/')}"

    def exists(self, relative: str) -> bool:
        return self.path(relative).is_file()

    def delete(self, relative: str) -> bool:
        """Delete a stored file. Returns False when it did not exist."""
        target = self.path(relative)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PanelFormsStorageError(
                f"Could not delete '{relative}' from disk '{self.name}': {e}",
                disk=self.name,
                path=relative,
            ) from e
        logger.info(f"Deleted: {self.name}:{relative}")
        return True

    def get_visibility(self, relative: str) -> str:
        mode = self.path(relative).stat().st_mode & 0o777
        return "public" if mode & 0o004 else "private"

    def __repr__(self) -> str:
        return f"<LocalDisk name='{self.name}' root='{self._root}'>"


class StorageManager:
    """
    Resolves disk names to LocalDisk instances.

    Relative disk roots are resolved against the project root (the directory
    holding panelforms.yaml).
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self._config = config or get_config().storage
        self._disks: Dict[str, LocalDisk] = {}

    @property
    def default_disk(self) -> str:
        return self._config.default_disk

    def disk(self, name: Optional[str] = None) -> LocalDisk:
        name = name or self._config.default_disk
        if name not in self._disks:
            disk_config: Optional[DiskConfig] = self._config.disks.get(name)
            if disk_config is None:
                raise PanelFormsConfigError(
                    f"Storage disk '{name}' is not configured. "
                    f"Available: {sorted(self._config.disks)}",
                    disk=name,
                )
            self._disks[name] = LocalDisk(
                name=name,
                root=str(resolve_path(disk_config.root)),
                url=disk_config.url,
                visibility=disk_config.visibility,
            )
        return self._disks[name]

    def __repr__(self) -> str:
        return f"<StorageManager disks={sorted(self._config.disks)}>"


# ---------------------------------------------------------------------------
# Global Storage Singleton
# ---------------------------------------------------------------------------

_storage: Optional[StorageManager] = None


def get_storage() -> StorageManager:
    """Get the process-wide StorageManager, building it from config if needed."""
    global _storage
    if _storage is None:
        _storage = StorageManager()
    return _storage


def set_storage(storage: Optional[StorageManager]) -> None:
    """Install a StorageManager (None rebuilds from config on next access)."""
    global _storage
    _storage = storage
