"""
panelforms Storage.

Physical storage: {disk root}/{field directory}/{random hex}.{ext}
"""

from panelforms.storage.service import LocalDisk, StorageManager, get_storage, set_storage

__all__ = [
    "LocalDisk",
    "StorageManager",
    "get_storage",
    "set_storage",
]
