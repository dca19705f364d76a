"""
panelforms Rules — Parsing and evaluation of field constraints.

Constraints are declared as strings (``"required"``, ``"max:1024"``,
``"mimes:jpg,png"``), as a single pipe-joined string (``"required|email"``),
or as callables::

    def no_admin(attribute, value, fail):
        if value == "admin":
            fail("The :attribute may not be admin.")

Implicit rules (``required``, ``required_without``) run on empty values; all
other rules are skipped when the value is None or an empty string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from numbers import Number
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import EmailStr, TypeAdapter, ValidationError

from panelforms.engine.errors import PanelFormsConfigError
from panelforms.utilities.utils import data_get

EMAIL_ADAPTER = TypeAdapter(EmailStr)

IMAGE_MIME_TYPES = {
    "image/jpeg", "image/png", "image/gif", "image/bmp", "image/svg+xml", "image/webp",
}

IMPLICIT_RULES = {"required", "required_without"}

RuleLike = Union[str, Callable[..., Any]]


@dataclass
class ParsedRule:
    """A constraint split into its name and parameters."""
    name: str
    params: List[str]
    callback: Optional[Callable[..., Any]] = None

    @property
    def implicit(self) -> bool:
        return self.name in IMPLICIT_RULES


def parse_rule(rule: RuleLike) -> ParsedRule:
    if callable(rule):
        name = getattr(rule, "__name__", None) or type(rule).__name__
        return ParsedRule(name=name, params=[], callback=rule)

    name, _, raw = rule.strip().partition(":")
    name = name.strip().lower()
    if name == "regex":
        # Patterns may contain commas
        params = [raw]
    else:
        params = [p.strip() for p in raw.split(",")] if raw else []
    if name not in RULES:
        raise PanelFormsConfigError(f"Unknown validation rule '{name}'", rule=rule)
    return ParsedRule(name=name, params=params)


def normalize_rules(rules: Union[RuleLike, Sequence[RuleLike], None]) -> List[RuleLike]:
    """``"a|b"`` → ``["a", "b"]``; lists are copied; None → []."""
    if rules is None:
        return []
    if isinstance(rules, str):
        return [r for r in rules.split("|") if r.strip()]
    if callable(rules):
        return [rules]
    return list(rules)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def is_uploaded_file(value: Any) -> bool:
    return hasattr(value, "size") and hasattr(value, "mime_type") and hasattr(value, "extension")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple, dict, set)) and len(value) == 0:
        return True
    return False


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Number):
        return True
    if isinstance(value, str):
        try:
            float(value)
            return True
        except ValueError:
            return False
    return False


def size_kind(value: Any, rule_names: Sequence[str]) -> str:
    """How min/max measure a value: file | numeric | array | string."""
    if is_uploaded_file(value):
        return "file"
    if ("numeric" in rule_names or "integer" in rule_names) and _is_numeric(value):
        return "numeric"
    if isinstance(value, (list, tuple, dict, set)):
        return "array"
    return "string"


def value_size(value: Any, kind: str) -> float:
    if kind == "file":
        return value.size / 1024
    if kind == "numeric":
        return float(value)
    if kind == "array":
        return len(value)
    return len(str(value))


# ---------------------------------------------------------------------------
# Rule implementations: (value, params, context) → bool
# ---------------------------------------------------------------------------

@dataclass
class RuleContext:
    attribute: str
    data: Mapping[str, Any]
    rule_names: List[str]


def _required(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if is_uploaded_file(value):
        return True
    return not is_empty(value)


def _required_without(value: Any, params: List[str], ctx: RuleContext) -> bool:
    others_present = any(not is_empty(data_get(ctx.data, key)) for key in params)
    if others_present:
        return True
    return _required(value, params, ctx)


def _nullable(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return True


def _string(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return isinstance(value, str)


def _numeric(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return _is_numeric(value)


def _integer(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()) is not None


def _boolean(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return value in (True, False, 0, 1, "0", "1", "true", "false")


def _email(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if not isinstance(value, str):
        return False
    try:
        EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def _min(value: Any, params: List[str], ctx: RuleContext) -> bool:
    kind = size_kind(value, ctx.rule_names)
    return value_size(value, kind) >= float(params[0])


def _max(value: Any, params: List[str], ctx: RuleContext) -> bool:
    kind = size_kind(value, ctx.rule_names)
    return value_size(value, kind) <= float(params[0])


def _in(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if isinstance(value, (list, tuple)):
        return all(str(v) in params for v in value)
    return str(value) in params


def _regex(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return isinstance(value, str) and re.search(params[0], value) is not None


def _file(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return is_uploaded_file(value)


def _image(value: Any, params: List[str], ctx: RuleContext) -> bool:
    return is_uploaded_file(value) and value.mime_type in IMAGE_MIME_TYPES


def _mimes(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if not is_uploaded_file(value):
        return False
    allowed = {p.lower().lstrip(".") for p in params}
    if "jpg" in allowed or "jpeg" in allowed:
        allowed |= {"jpg", "jpeg"}
    return value.extension in allowed


def _mimetypes(value: Any, params: List[str], ctx: RuleContext) -> bool:
    if not is_uploaded_file(value):
        return False
    for allowed in params:
        if allowed in ("*", "*/*") or allowed == value.mime_type:
            return True
        if allowed.endswith("/*") and value.mime_type.startswith(allowed[:-1]):
            return True
    return False


RULES: Dict[str, Callable[[Any, List[str], RuleContext], bool]] = {
    "required": _required,
    "required_without": _required_without,
    "nullable": _nullable,
    "string": _string,
    "numeric": _numeric,
    "integer": _integer,
    "boolean": _boolean,
    "email": _email,
    "min": _min,
    "max": _max,
    "in": _in,
    "regex": _regex,
    "file": _file,
    "image": _image,
    "mimes": _mimes,
    "mimetypes": _mimetypes,
}


# ---------------------------------------------------------------------------
# Default messages
# ---------------------------------------------------------------------------

MESSAGES: Dict[str, Union[str, Dict[str, str]]] = {
    "required": "The :attribute field is required.",
    "required_without": "The :attribute field is required when :values is not present.",
    "string": "The :attribute must be a string.",
    "numeric": "The :attribute must be a number.",
    "integer": "The :attribute must be an integer.",
    "boolean": "The :attribute field must be true or false.",
    "email": "The :attribute must be a valid email address.",
    "min": {
        "numeric": "The :attribute must be at least :min.",
        "file": "The :attribute must be at least :min kilobytes.",
        "string": "The :attribute must be at least :min characters.",
        "array": "The :attribute must have at least :min items.",
    },
    "max": {
        "numeric": "The :attribute may not be greater than :max.",
        "file": "The :attribute may not be greater than :max kilobytes.",
        "string": "The :attribute may not be greater than :max characters.",
        "array": "The :attribute may not have more than :max items.",
    },
    "in": "The selected :attribute is invalid.",
    "regex": "The :attribute format is invalid.",
    "file": "The :attribute must be a file.",
    "image": "The :attribute must be an image.",
    "mimes": "The :attribute must be a file of type: :values.",
    "mimetypes": "The :attribute must be a file of type: :values.",
}
