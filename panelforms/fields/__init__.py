"""panelforms Fields — Field descriptors and the tree index over them."""

from panelforms.fields.components import (  # noqa: F401
    NO_DEFAULT,
    Field,
    FieldDef,
    Fieldset,
    FieldsetDef,
    File,
    FileFieldDef,
    InputFieldDef,
    Tab,
    TabDef,
    Tabs,
    TabsDef,
)
from panelforms.fields.tree import FieldTree  # noqa: F401

__all__ = [
    "NO_DEFAULT",
    "Field",
    "File",
    "Fieldset",
    "Tabs",
    "Tab",
    "FieldDef",
    "InputFieldDef",
    "FileFieldDef",
    "FieldsetDef",
    "TabsDef",
    "TabDef",
    "FieldTree",
]
