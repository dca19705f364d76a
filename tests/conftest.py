"""
panelforms Test Suite — Shared fixtures and sample components.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import pytest
from pydantic import BaseModel
from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from panelforms import Field, Fieldset, File, FormComponent, Tab, Tabs


# ---------------------------------------------------------------------------
# Global state isolation: config, storage and the interaction log are singletons
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Reset global singletons and run every test from a clean directory."""
    import panelforms.engine.config as cfg_mod
    import panelforms.engine.logging as log_mod
    import panelforms.storage.service as storage_mod

    cfg_mod._config = None
    storage_mod._storage = None
    log_mod._global_logger = None
    monkeypatch.chdir(tmp_path)
    yield
    cfg_mod._config = None
    storage_mod._storage = None
    log_mod._global_logger = None


@pytest.fixture
def forms_config(tmp_path):
    """Config with both disks and the temporary directory under tmp_path."""
    from panelforms.engine.config import (
        DiskConfig,
        FormsConfig,
        LoggingConfig,
        StorageConfig,
        UploadsConfig,
        set_config,
    )

    cfg = FormsConfig(
        storage=StorageConfig(
            default_disk="local",
            disks={
                "local": DiskConfig(root=str(tmp_path / "storage" / "app")),
                "public": DiskConfig(
                    root=str(tmp_path / "storage" / "public"),
                    url="/storage",
                    visibility="public",
                ),
            },
        ),
        uploads=UploadsConfig(
            temporary_directory=str(tmp_path / "tmp-uploads"),
            max_upload_size_kb=64,
        ),
        logging=LoggingConfig(directory=str(tmp_path / "logs")),
    )
    set_config(cfg)
    return cfg


@pytest.fixture
def storage(forms_config):
    """StorageManager over the tmp_path disks, installed globally."""
    from panelforms.storage.service import StorageManager, set_storage

    manager = StorageManager(forms_config.storage)
    set_storage(manager)
    return manager


@pytest.fixture
def interaction_log(forms_config):
    """Global interaction log writing under tmp_path/logs."""
    from panelforms.engine.logging import init_logging, shutdown_logging

    file_logger = init_logging()
    yield file_logger
    shutdown_logging()


@pytest.fixture
def upload_bytes():
    """Factory for client upload streams."""
    def _make(size: int = 100, fill: bytes = b"x") -> io.BytesIO:
        return io.BytesIO(fill * size)
    return _make


@pytest.fixture
def staged_file(tmp_path):
    """A TemporaryUploadedFile already sitting in the temporary directory."""
    from panelforms.uploads.temporary import TemporaryUploadedFile

    def _make(filename: str = "photo.png", content: bytes = b"\x89PNG....") -> TemporaryUploadedFile:
        return TemporaryUploadedFile.create(
            io.BytesIO(content), filename, str(tmp_path / "tmp-uploads"),
        )
    return _make


# ---------------------------------------------------------------------------
# Sample components
# ---------------------------------------------------------------------------

class ProfileForm(FormComponent):
    """Two tabs; the avatar sits in a fieldset inside the second one."""

    properties = {
        "name": "",
        "email": "",
        "newsletter": None,
        "bio": None,
        "avatar": None,
        "nickname": "anon",
    }
    rules = {"email": ["email"]}
    validation_attributes = {"name": "Full name"}

    def fields(self):
        return [
            Tabs("Profile", tabs=[
                Tab("Account", fields=[
                    Field("name", required=True),
                    Field("email", field_type="email", required=True),
                    Field("newsletter", field_type="checkbox", default=True),
                ]),
                Tab("Media", fields=[
                    Fieldset("Pictures", fields=[
                        File(
                            "avatar",
                            disk="public",
                            directory="avatars",
                            visibility="public",
                            image=True,
                            max_size_kb=1,
                            required=True,
                        ),
                    ]),
                    Field("bio", field_type="textarea", default="Hello there"),
                ]),
            ]),
        ]


class AvatarForm(FormComponent):
    """Tab A containing a single public File field."""

    properties = {"avatar": None}

    def fields(self):
        return [
            Tabs("Settings", tabs=[
                Tab("A", fields=[
                    File("avatar", disk="public", visibility="public", max_size_kb=1),
                ]),
            ]),
        ]


class DocumentForm(FormComponent):
    """No tabs; a private attachment on the default disk."""

    properties = {"title": "", "attachment": None, "tags": None}

    def fields(self):
        return [
            Field("title", required=True, rules=["max:20"]),
            Field("tags", default=["draft"]),
            File("attachment", directory="docs", accepted_file_types=["application/pdf"]),
        ]


@pytest.fixture
def profile_form_class():
    return ProfileForm


@pytest.fixture
def avatar_form_class():
    return AvatarForm


@pytest.fixture
def document_form_class():
    return DocumentForm


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class ArticleRecord(BaseModel):
    title: str
    bio: Optional[str] = None


@pytest.fixture
def user_record():
    return UserRecord(id=1, name="Ada Lovelace", bio="Analyst")


@pytest.fixture
def article_record():
    return ArticleRecord(title="Notes", bio="Draft bio")
