"""
panelforms Temporary Uploads — Staged client files awaiting validation and storage.

A client file lands in the configured temporary directory and its handle is
kept in the component's property bag under ``temporaryUploadedFiles.<field>``
until the form commits it to a storage disk (or the user replaces/removes it).
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Dict, Optional

if TYPE_CHECKING:
    from panelforms.storage.service import StorageManager

logger = logging.getLogger("panelforms.uploads.temporary")

TEMPORARY_UPLOADS_PROPERTY = "temporaryUploadedFiles"
CHUNK_SIZE = 8192


def temporary_upload_property(field_name: str) -> str:
    """Property path a file field's staged upload lives under."""
    return f"{TEMPORARY_UPLOADS_PROPERTY}.{field_name}"


def is_temporary_upload_property(key: str) -> bool:
    return key.startswith(TEMPORARY_UPLOADS_PROPERTY + ".")


def strip_temporary_upload_prefix(key: str) -> str:
    """``temporaryUploadedFiles.avatar`` → ``avatar``; other keys unchanged."""
    if is_temporary_upload_property(key):
        return key[len(TEMPORARY_UPLOADS_PROPERTY) + 1:]
    return key


class TemporaryUploadedFile:
    """
    Handle to a file staged on local disk.

    Only the handle lives in the property bag; the bytes stay in the temporary
    directory until ``store()`` / ``store_publicly()`` copies them to a disk.
    """

    def __init__(
        self,
        path: str,
        client_filename: str,
        mime_type: Optional[str] = None,
        size: Optional[int] = None,
    ):
        self.path = str(path)
        self.client_filename = client_filename
        self.mime_type = mime_type or self.guess_mime_type(client_filename)
        self.size = size if size is not None else os.path.getsize(self.path)

    @classmethod
    def create(
        cls,
        stream: BinaryIO,
        client_filename: str,
        directory: str,
        mime_type: Optional[str] = None,
    ) -> "TemporaryUploadedFile":
        """Copy a client stream into the temporary directory."""
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(os.path.basename(client_filename)).suffix.lower()
        target = target_dir / f"{uuid.uuid4().hex}{suffix}"

        bytes_written = 0
        with open(target, "wb") as f:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                f.write(chunk)
                bytes_written += len(chunk)

        logger.debug(f"Staged '{client_filename}' at {target} ({bytes_written} bytes)")
        return cls(str(target), client_filename, mime_type=mime_type, size=bytes_written)

    @staticmethod
    def guess_mime_type(filename: str) -> str:
        mime, _ = mimetypes.guess_type(filename)
        return mime or "application/octet-stream"

    # -------------------------------------------------------------------
    # File info
    # -------------------------------------------------------------------

    @property
    def filename(self) -> str:
        """Name of the staged file inside the temporary directory."""
        return os.path.basename(self.path)

    @property
    def extension(self) -> str:
        """Lower-case extension of the client's filename, without the dot."""
        return Path(self.client_filename).suffix.lower().lstrip(".")

    @property
    def size_kb(self) -> float:
        return self.size / 1024

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def delete(self) -> bool:
        """Remove the staged bytes. Returns False when already gone."""
        try:
            os.remove(self.path)
            return True
        except FileNotFoundError:
            return False

    # -------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------

    def store(
        self,
        directory: str = "",
        disk: Optional[str] = None,
        storage: Optional["StorageManager"] = None,
    ) -> str:
        """Store privately on ``disk``; returns the stored relative path."""
        return self._store(directory, disk, "private", storage)

    def store_publicly(
        self,
        directory: str = "",
        disk: Optional[str] = None,
        storage: Optional["StorageManager"] = None,
    ) -> str:
        """Store with public visibility on ``disk``; returns the stored relative path."""
        return self._store(directory, disk, "public", storage)

    def _store(
        self,
        directory: str,
        disk: Optional[str],
        visibility: str,
        storage: Optional["StorageManager"],
    ) -> str:
        if storage is None:
            from panelforms.storage.service import get_storage

            storage = get_storage()
        path = storage.disk(disk).put_file(directory, self, visibility=visibility)
        # Moved, not copied: the staged bytes are no longer needed
        self.delete()
        return path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "client_filename": self.client_filename,
            "mime_type": self.mime_type,
            "size": self.size,
        }

    def __repr__(self) -> str:
        return f"<TemporaryUploadedFile '{self.client_filename}' ({self.size} bytes)>"
