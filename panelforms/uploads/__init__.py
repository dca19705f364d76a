"""
panelforms Uploads.

Staged client files: apps keep them under temporaryUploadedFiles.<field>
until the form commits them to a storage disk.
"""

from panelforms.uploads.temporary import (
    TEMPORARY_UPLOADS_PROPERTY,
    TemporaryUploadedFile,
    temporary_upload_property,
)

__all__ = [
    "TEMPORARY_UPLOADS_PROPERTY",
    "TemporaryUploadedFile",
    "temporary_upload_property",
]
