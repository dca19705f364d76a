"""
panelforms Field Library — Declarative field descriptors for form components.

Fields are plain dataclasses built through constructor functions, the same way
a component's ``fields()`` method is written:

    def fields(self):
        return [
            Tabs("Profile", tabs=[
                Tab("Account", fields=[
                    Field("email", field_type="email", required=True, rules=["email"]),
                ]),
                Tab("Media", fields=[
                    File("avatar", disk="public", directory="avatars",
                         visibility="public", image=True, max_size_kb=1024),
                ]),
            ]),
        ]

Kinds:
    InputFieldDef  → a value-bearing input (text, email, number, select, checkbox...)
    FileFieldDef   → an input whose value is staged under temporaryUploadedFiles.<name>
    FieldsetDef    → a container grouping fields visually
    TabsDef        → a container holding TabDef children
    TabDef         → one tab; gates visibility of its descendants

Fields never hold a reference to their parent. Parent lookup goes through
FieldTree, which owns the index.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field as datafield
from typing import Any, Dict, List, Optional, Union

from panelforms.uploads.temporary import temporary_upload_property
from panelforms.utilities.utils import humanize, slugify
from panelforms.validation.rules import normalize_rules

logger = logging.getLogger("panelforms.fields.components")


class _NoDefault:
    """Marker for a field that declares no default (None is a valid default)."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __copy__(self) -> "_NoDefault":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_NoDefault":
        return self


NO_DEFAULT = _NoDefault()


# ---------------------------------------------------------------------------
# Field Definition Classes
# ---------------------------------------------------------------------------

@dataclass
class FieldDef:
    """Base class for all field definitions."""
    _component_type: str = ""

    @property
    def is_input(self) -> bool:
        """Whether the field carries its own validated value."""
        return False

    def child_fields(self) -> List["FieldDef"]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for the rendering layer."""
        return {"type": self._component_type}


@dataclass
class InputFieldDef(FieldDef):
    """
    Value-bearing input. ``name`` is the property path the value lives under
    and must be unique across the whole tree.
    """
    _component_type: str = "input"

    name: str = ""
    label: Optional[str] = None
    field_type: str = "text"  # text | email | password | number | textarea | select | checkbox | date | datetime
    default: Any = NO_DEFAULT
    required: bool = False
    rules: List[Any] = datafield(default_factory=list)
    placeholder: str = ""
    help_text: str = ""
    read_only: bool = False
    choices: List[Any] = datafield(default_factory=list)

    @property
    def is_input(self) -> bool:
        return True

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def get_label(self) -> str:
        return self.label or humanize(self.name)

    def get_default(self) -> Any:
        return copy.deepcopy(self.default)

    @property
    def validation_key(self) -> str:
        """Key the field's constraints are registered under."""
        return self.name

    def get_rules(self) -> List[Any]:
        rules: List[Any] = ["required"] if self.required else []
        rules.extend(self.rules)
        return rules

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self._component_type,
            "name": self.name,
            "label": self.get_label(),
            "field_type": self.field_type,
            "default": self.default if self.has_default else None,
            "required": self.required,
            "placeholder": self.placeholder,
            "help_text": self.help_text,
            "read_only": self.read_only,
            "choices": self.choices,
        }


@dataclass
class FileFieldDef(InputFieldDef):
    """
    File input. While a file is being handled its value is the staged upload
    under ``temporaryUploadedFiles.<name>``; once stored, the field's own
    property holds the stored path.
    """
    _component_type: str = "file"

    field_type: str = "file"
    disk: Optional[str] = None  # None → configured default disk
    directory: str = ""
    visibility: str = "private"  # public | private
    image: bool = False
    accepted_file_types: List[str] = datafield(default_factory=list)
    max_size_kb: Optional[int] = None
    min_size_kb: Optional[int] = None

    def __post_init__(self) -> None:
        if self.visibility not in ("public", "private"):
            raise ValueError(
                f"File field '{self.name}': visibility must be public/private, got '{self.visibility}'"
            )

    @property
    def validation_key(self) -> str:
        return temporary_upload_property(self.name)

    def get_rules(self) -> List[Any]:
        # An already stored file satisfies "required"
        rules: List[Any] = [f"required_without:{self.name}"] if self.required else ["nullable"]
        rules.append("file")
        if self.image:
            rules.append("image")
        if self.accepted_file_types:
            rules.append("mimetypes:" + ",".join(self.accepted_file_types))
        if self.min_size_kb is not None:
            rules.append(f"min:{self.min_size_kb}")
        if self.max_size_kb is not None:
            rules.append(f"max:{self.max_size_kb}")
        rules.extend(self.rules)
        return rules

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            "disk": self.disk,
            "directory": self.directory,
            "visibility": self.visibility,
            "image": self.image,
            "accepted_file_types": self.accepted_file_types,
            "max_size_kb": self.max_size_kb,
            "min_size_kb": self.min_size_kb,
            "temporary_property": self.validation_key,
        })
        return d


@dataclass
class FieldsetDef(FieldDef):
    """Visual group of fields. Has no value of its own."""
    _component_type: str = "fieldset"

    label: str = ""
    id: str = ""
    fields: List[FieldDef] = datafield(default_factory=list)
    columns: int = 1

    def __post_init__(self) -> None:
        if not self.id:
            self.id = slugify(self.label)

    def child_fields(self) -> List[FieldDef]:
        return list(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self._component_type,
            "id": self.id,
            "label": self.label,
            "columns": self.columns,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class TabDef(FieldDef):
    """One tab. Its enclosing TabsDef decides which tab is visible."""
    _component_type: str = "tab"

    label: str = ""
    id: str = ""
    fields: List[FieldDef] = datafield(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = slugify(self.label)

    def child_fields(self) -> List[FieldDef]:
        return list(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self._component_type,
            "id": self.id,
            "label": self.label,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class TabsDef(FieldDef):
    """Tab container. The browser switches tabs by ``<tabs id>.<tab id>``."""
    _component_type: str = "tabs"

    label: str = ""
    id: str = ""
    tabs: List[TabDef] = datafield(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = slugify(self.label) or "tabs"

    def child_fields(self) -> List[FieldDef]:
        return list(self.tabs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self._component_type,
            "id": self.id,
            "label": self.label,
            "tabs": [t.to_dict() for t in self.tabs],
        }


# ---------------------------------------------------------------------------
# Public API: constructor functions used inside a component's fields()
# ---------------------------------------------------------------------------

def Field(
    name: str,
    label: Optional[str] = None,
    field_type: str = "text",
    default: Any = NO_DEFAULT,
    required: bool = False,
    rules: Union[str, List[Any], None] = None,
    placeholder: str = "",
    help_text: str = "",
    read_only: bool = False,
    choices: Optional[List[Any]] = None,
) -> InputFieldDef:
    """Create an input field definition."""
    return InputFieldDef(
        name=name,
        label=label,
        field_type=field_type,
        default=default,
        required=required,
        rules=normalize_rules(rules),
        placeholder=placeholder,
        help_text=help_text,
        read_only=read_only,
        choices=choices or [],
    )


def File(
    name: str,
    label: Optional[str] = None,
    disk: Optional[str] = None,
    directory: str = "",
    visibility: str = "private",
    image: bool = False,
    accepted_file_types: Optional[List[str]] = None,
    max_size_kb: Optional[int] = None,
    min_size_kb: Optional[int] = None,
    required: bool = False,
    rules: Union[str, List[Any], None] = None,
    help_text: str = "",
    default: Any = NO_DEFAULT,
) -> FileFieldDef:
    """Create a file upload field definition."""
    return FileFieldDef(
        name=name,
        label=label,
        disk=disk,
        directory=directory,
        visibility=visibility,
        image=image,
        accepted_file_types=accepted_file_types or [],
        max_size_kb=max_size_kb,
        min_size_kb=min_size_kb,
        required=required,
        rules=normalize_rules(rules),
        help_text=help_text,
        default=default,
    )


def Fieldset(
    label: str = "",
    fields: Optional[List[FieldDef]] = None,
    id: Optional[str] = None,
    columns: int = 1,
) -> FieldsetDef:
    """Create a fieldset (visual group) definition."""
    return FieldsetDef(label=label, id=id or "", fields=fields or [], columns=columns)


def Tabs(
    label: str = "",
    tabs: Optional[List[TabDef]] = None,
    id: Optional[str] = None,
) -> TabsDef:
    """Create a tab container definition."""
    return TabsDef(label=label, id=id or "", tabs=tabs or [])


def Tab(
    label: str,
    fields: Optional[List[FieldDef]] = None,
    id: Optional[str] = None,
) -> TabDef:
    """Create a single tab definition."""
    return TabDef(label=label, id=id or "", fields=fields or [])
