"""Unit tests for panelforms.storage.service — LocalDisk and StorageManager."""

import os
from unittest.mock import patch

import pytest

from panelforms.engine.config import DiskConfig, StorageConfig
from panelforms.engine.errors import PanelFormsConfigError, PanelFormsStorageError
from panelforms.storage.service import LocalDisk, StorageManager, get_storage, set_storage


class TestLocalDisk:

    def test_put_file_private(self, tmp_path, staged_file):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        upload = staged_file("report.PDF", b"%PDF-1.4 body")

        path = disk.put_file("docs/", upload)

        assert path.startswith("docs/")
        assert path.endswith(".pdf")
        assert disk.exists(path)
        assert (tmp_path / "disk" / path).read_bytes() == b"%PDF-1.4 body"
        assert os.stat(disk.path(path)).st_mode & 0o777 == 0o600
        assert disk.get_visibility(path) == "private"
        # put_file copies; moving is the upload handle's job
        assert upload.exists()

    def test_put_file_public(self, tmp_path, staged_file):
        disk = LocalDisk("public", str(tmp_path / "disk"), url="/storage/", visibility="public")
        path = disk.put_file("", staged_file())
        assert "/" not in path
        assert os.stat(disk.path(path)).st_mode & 0o777 == 0o644
        assert disk.get_visibility(path) == "public"
        assert disk.url(path) == f"/storage/{path}"

    def test_visibility_override(self, tmp_path, staged_file):
        disk = LocalDisk("public", str(tmp_path / "disk"), visibility="public")
        path = disk.put_file("a", staged_file(), visibility="private")
        assert disk.get_visibility(path) == "private"

    def test_unique_names(self, tmp_path, staged_file):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        assert disk.put_file("a", staged_file()) != disk.put_file("a", staged_file())

    def test_unknown_visibility(self, tmp_path, staged_file):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        with pytest.raises(PanelFormsStorageError, match="Unknown visibility"):
            disk.put_file("a", staged_file(), visibility="shared")

    def test_missing_staged_file(self, tmp_path, staged_file):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        upload = staged_file()
        upload.delete()
        with pytest.raises(PanelFormsStorageError) as exc_info:
            disk.put_file("docs", upload)
        assert exc_info.value.disk == "local"
        assert exc_info.value.path.startswith("docs/")
        assert list((tmp_path / "disk" / "docs").iterdir()) == []

    def test_path_traversal(self, tmp_path):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        with pytest.raises(PanelFormsStorageError, match="escapes"):
            disk.path("../outside.txt")

    def test_url_requires_configuration(self, tmp_path):
        with pytest.raises(PanelFormsStorageError, match="no public URL"):
            LocalDisk("local", str(tmp_path)).url("a.png")

    def test_delete(self, tmp_path, staged_file):
        disk = LocalDisk("local", str(tmp_path / "disk"))
        path = disk.put_file("a", staged_file())
        assert disk.delete(path) is True
        assert not disk.exists(path)
        assert disk.delete(path) is False


class TestStorageManager:

    def test_default_and_named_disks(self, storage, tmp_path):
        assert storage.default_disk == "local"
        assert storage.disk().name == "local"
        assert storage.disk().root == tmp_path / "storage" / "app"
        assert storage.disk("public").visibility == "public"

    def test_disks_are_cached(self, storage):
        assert storage.disk("public") is storage.disk("public")

    def test_unknown_disk(self, storage):
        with pytest.raises(PanelFormsConfigError, match="'s3' is not configured"):
            storage.disk("s3")

    def test_relative_roots_resolve_against_project(self, tmp_path):
        manager = StorageManager(StorageConfig(disks={"local": DiskConfig(root="var/files")}))
        assert manager.disk().root == tmp_path / "var" / "files"

    def test_global_singleton(self, forms_config):
        manager = get_storage()
        assert get_storage() is manager
        replacement = StorageManager(forms_config.storage)
        set_storage(replacement)
        assert get_storage() is replacement

    def test_os_error_is_wrapped(self, storage, staged_file):
        with patch("panelforms.storage.service.os.chmod", side_effect=PermissionError("denied")):
            with pytest.raises(PanelFormsStorageError, match="denied"):
                storage.disk().put_file("x", staged_file())
