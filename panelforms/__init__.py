"""
panelforms — Server-driven forms for admin-panel components.

A component gains declarative fields, validation, temporary file uploads and
tab-aware error focus by subclassing FormComponent:

    from panelforms import FormComponent, Field, File, Tabs, Tab

    class EditProfile(FormComponent):
        properties = {"email": "", "avatar": None}

        def fields(self):
            return [
                Tabs("Profile", tabs=[
                    Tab("Account", fields=[Field("email", required=True, rules=["email"])]),
                    Tab("Media", fields=[File("avatar", image=True, required=True)]),
                ]),
            ]
"""

from panelforms.engine.errors import (
    PanelFormsConfigError,
    PanelFormsError,
    PanelFormsFieldError,
    PanelFormsStorageError,
    PanelFormsValidationError,
)
from panelforms.fields.components import Field, Fieldset, File, Tab, Tabs
from panelforms.forms.component import BrowserEvent, Component
from panelforms.forms.form import Form
from panelforms.forms.has_form import FormComponent
from panelforms.uploads.temporary import TemporaryUploadedFile

__version__ = "0.3.0"
__all__ = [
    "Component",
    "FormComponent",
    "Form",
    "BrowserEvent",
    "Field",
    "File",
    "Fieldset",
    "Tabs",
    "Tab",
    "TemporaryUploadedFile",
    "PanelFormsError",
    "PanelFormsValidationError",
    "PanelFormsStorageError",
    "PanelFormsConfigError",
    "PanelFormsFieldError",
]
