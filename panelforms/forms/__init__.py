"""panelforms Forms — Component host, Form projection and FormComponent."""

from panelforms.forms.component import BrowserEvent, Component, ErrorBag, PropertyBag  # noqa: F401
from panelforms.forms.form import Form  # noqa: F401
from panelforms.forms.has_form import FormComponent  # noqa: F401

__all__ = [
    "Component",
    "FormComponent",
    "Form",
    "BrowserEvent",
    "ErrorBag",
    "PropertyBag",
]
