"""
panelforms Shared Utilities — naming and dotted-path helpers used across the package.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, MutableMapping


def to_snake(name: str) -> str:
    """
    Convert CamelCase (or PascalCase) to snake_case.

    Examples:
        to_snake("CustomerAddress")  → "customer_address"
        to_snake("HTTPSConnection")  → "https_connection"
    """
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def slugify(value: str, separator: str = "-") -> str:
    """
    URL/DOM-safe slug used for container and tab ids.

    Examples:
        slugify("Profile Details") → "profile-details"
        slugify("Über uns!")       → "uber-uns"
    """
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    return re.sub(r"[-_\s]+", separator, value)


def humanize(name: str) -> str:
    """
    Label for a field that declares none.

    Examples:
        humanize("first_name")       → "First name"
        humanize("record.birthDate") → "Birth date"
    """
    last = name.rsplit(".", 1)[-1]
    words = to_snake(last).replace("-", "_").split("_")
    text = " ".join(w for w in words if w)
    return text[:1].upper() + text[1:]


_MISSING = object()


def data_get(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a dotted path from nested dicts/lists/objects.

    Examples:
        data_get({"a": {"b": 1}}, "a.b")   → 1
        data_get({"a": [10, 20]}, "a.1")   → 20
        data_get({}, "a.b", "x")           → "x"
    """
    current = data
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else _MISSING
        else:
            current = getattr(current, segment, _MISSING)
        if current is _MISSING:
            return default
    return current


def data_has(data: Any, path: str) -> bool:
    """Whether a dotted path resolves to something (even None)."""
    return data_get(data, path, _MISSING) is not _MISSING


def data_set(data: MutableMapping[str, Any], path: str, value: Any) -> None:
    """
    Write a dotted path into nested dicts, creating intermediate dicts.

    Example:
        d = {}; data_set(d, "a.b", 1)  → {"a": {"b": 1}}
    """
    segments = path.split(".")
    current: MutableMapping[str, Any] = data
    for segment in segments[:-1]:
        nxt = current.get(segment)
        if not isinstance(nxt, dict):
            nxt = {}
            current[segment] = nxt
        current = nxt
    current[segments[-1]] = value
