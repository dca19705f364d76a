"""
panelforms Error Hierarchy — Structured exceptions for form interactions.

Every error carries a free-form context dict (component, field, disk, path...)
and serializes to JSON so it can be written to the interaction log as-is.

Hierarchy:
    PanelFormsError
    ├── PanelFormsValidationError — Validation failed (carries the ValidationResult)
    ├── PanelFormsStorageError    — Storage collaborator could not persist/read a file
    ├── PanelFormsConfigError     — Invalid panelforms.yaml, unknown disk or rule
    └── PanelFormsFieldError      — Malformed field tree or unknown field reference
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class PanelFormsError(Exception):
    """
    Base error for all panelforms failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.component: Optional[str] = context.get("component")
        self.field: Optional[str] = context.get("field")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "component": self.component,
            "field": self.field,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("component", "field")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.component:
            parts.append(f"component={self.component}")
        if self.field:
            parts.append(f"field={self.field}")
        return " | ".join(parts)


class PanelFormsValidationError(PanelFormsError):
    """
    Validation failed.

    ``errors`` maps each failing key to its ordered messages, ``failed`` maps
    each failing key to the names of the rules it failed. ``result`` is the
    ValidationResult the errors came from, when one exists.
    """

    def __init__(self, message: str, **context: Any):
        self.result = context.get("result")
        errors = context.get("errors")
        failed = context.get("failed")
        if self.result is not None:
            errors = errors if errors is not None else self.result.errors
            failed = failed if failed is not None else self.result.failed
        self.errors: Dict[str, List[str]] = dict(errors or {})
        self.failed: Dict[str, List[str]] = dict(failed or {})
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["errors"] = self.errors
        d["failed"] = self.failed
        d["context"].pop("result", None)
        d["context"].pop("errors", None)
        d["context"].pop("failed", None)
        return d


class PanelFormsStorageError(PanelFormsError):
    """Storage collaborator failed (disk missing, write denied, file vanished)."""

    def __init__(self, message: str, **context: Any):
        self.disk: Optional[str] = context.get("disk")
        self.path: Optional[str] = context.get("path")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["disk"] = self.disk
        d["path"] = self.path
        return d


class PanelFormsConfigError(PanelFormsError):
    """Configuration error — invalid panelforms.yaml, unknown disk, unknown rule."""
    pass


class PanelFormsFieldError(PanelFormsError):
    """Malformed field tree (duplicate names) or reference to an unknown field."""
    pass
