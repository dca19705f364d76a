"""
panelforms Form — Read-only projection of a component's field tree.

A Form is rebuilt on every ``FormComponent.get_form()`` call and never cached:
it derives defaults, rules and validation labels from the current tree, and
carries the owning component's identifier and (optionally) the record being
edited.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstanceState

from panelforms.fields.components import FieldDef, InputFieldDef
from panelforms.fields.tree import FieldTree
from panelforms.validation.rules import MESSAGES

logger = logging.getLogger("panelforms.forms.form")

RECORD_PREFIX = "record."

_MISSING = object()


def is_record(value: Any) -> bool:
    """Whether ``value`` is a persisted-entity shape a Form understands."""
    if value is None or isinstance(value, type):
        return False
    if isinstance(value, BaseModel):
        return True
    return isinstance(sa_inspect(value, raiseerr=False), InstanceState)


def record_value(record: Any, name: str) -> Tuple[bool, Any]:
    """
    Current value of a record attribute addressed by field name.

    ``record.title`` and ``title`` both read ``record.title``.
    Returns (found, value).
    """
    attribute = name[len(RECORD_PREFIX):] if name.startswith(RECORD_PREFIX) else name
    if "." in attribute:
        return False, None

    if isinstance(record, BaseModel):
        if attribute in type(record).model_fields:
            return True, getattr(record, attribute)
        return False, None

    state = sa_inspect(record, raiseerr=False)
    if isinstance(state, InstanceState) and attribute in state.mapper.column_attrs:
        return True, getattr(record, attribute)
    return False, None


class Form:
    """
    Projection of (field tree, component, record).

    Args:
        fields: Root field definitions, or an already-built FieldTree.
        component: Identifier of the owning component class.
        record: Record being edited; None in creation flows.
        defaults_from_record: Prefer the record's current values over static
            field defaults.
    """

    def __init__(
        self,
        fields: Union[FieldTree, Sequence[FieldDef]],
        component: str,
        record: Any = None,
        defaults_from_record: bool = False,
    ):
        self.tree = fields if isinstance(fields, FieldTree) else FieldTree(fields)
        self.component = component
        self.record = record
        self.defaults_from_record = defaults_from_record

    def get_fields(self) -> List[FieldDef]:
        return self.tree.roots

    def get_flat_fields(self) -> List[FieldDef]:
        return self.tree.flatten()

    def get_field(self, name: str) -> Optional[InputFieldDef]:
        return self.tree.get(name)

    def get_defaults(self) -> Dict[str, Any]:
        defaults: Dict[str, Any] = {}
        use_record = self.defaults_from_record and self.record is not None

        for field in self.tree.inputs():
            if use_record:
                found, value = record_value(self.record, field.name)
                if found:
                    defaults[field.name] = value
                    continue
            if field.has_default:
                defaults[field.name] = field.get_default()
        return defaults

    def get_rules(self) -> Dict[str, List[Any]]:
        rules: Dict[str, List[Any]] = {}
        for field in self.tree.inputs():
            field_rules = field.get_rules()
            if field_rules:
                rules[field.validation_key] = field_rules
        return rules

    def get_validation_attributes(self) -> Dict[str, str]:
        attributes: Dict[str, str] = {}
        for field in self.tree.inputs():
            label = field.get_label()
            attributes[field.name] = label
            if field.validation_key != field.name:
                attributes[field.validation_key] = label
        return attributes

    def get_validation_messages(self) -> Dict[str, str]:
        """
        Messages keyed ``"<key>.<rule>"``. A required file field with nothing
        staged or stored reads as plainly required.
        """
        messages: Dict[str, str] = {}
        for field in self.tree.file_fields():
            if field.required:
                messages[f"{field.validation_key}.required_without"] = MESSAGES["required"]
        return messages

    def to_dict(self) -> Dict[str, Any]:
        """Schema handed to the rendering layer."""
        return {
            "component": self.component,
            "has_record": self.record is not None,
            "fields": [f.to_dict() for f in self.tree.roots],
        }

    def __repr__(self) -> str:
        return f"<Form component='{self.component}' nodes={len(self.tree)}>"
