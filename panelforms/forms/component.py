"""
panelforms Component — Stateful server-side UI component host.

A Component owns:
    - a PropertyBag of public properties (mutated only through sync_input/fill/reset,
      every mutation recorded for the rendering layer)
    - an ErrorBag of validation messages
    - a queue of browser events (fire-and-forget hints such as "switch-tab")

Public properties, rules, messages and labels are declared on the class:

    class ContactForm(Component):
        properties = {"name": "", "email": ""}
        rules = {"email": "required|email"}
        validation_attributes = {"email": "E-mail address"}

The hosting runtime keeps one instance per interaction; nothing here is shared
across instances.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from panelforms.engine.errors import PanelFormsValidationError
from panelforms.utilities.utils import data_get, data_has, data_set
from panelforms.validation.rules import normalize_rules
from panelforms.validation.validator import ValidationResult, Validator

logger = logging.getLogger("panelforms.forms.component")


class PropertyBag:
    """Dotted-path property store that remembers which paths changed."""

    def __init__(self, baseline: Mapping[str, Any]):
        self._baseline = copy.deepcopy(dict(baseline))
        self._values: Dict[str, Any] = copy.deepcopy(self._baseline)
        self._updated: List[str] = []

    def get(self, path: str, default: Any = None) -> Any:
        return data_get(self._values, path, default)

    def has(self, path: str) -> bool:
        return data_has(self._values, path)

    def sync(self, path: str, value: Any, track: bool = True) -> None:
        data_set(self._values, path, value)
        if track and path not in self._updated:
            self._updated.append(path)

    def fill(self, values: Mapping[str, Any]) -> None:
        for path, value in values.items():
            self.sync(path, value)

    def baseline(self, path: str) -> Any:
        return copy.deepcopy(data_get(self._baseline, path))

    def reset(self, paths: Optional[List[str]] = None) -> None:
        """Restore paths (all top-level properties when None) to baseline values."""
        for path in paths if paths is not None else list(self._baseline):
            self.sync(path, self.baseline(path))

    def data(self) -> Mapping[str, Any]:
        """Live read-only view for validators; do not mutate."""
        return self._values

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    @property
    def updated(self) -> List[str]:
        return list(self._updated)

    def pull_updated(self) -> List[str]:
        """Return and forget the paths changed since the last pull."""
        updated, self._updated = self._updated, []
        return updated

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.has(path)


class ErrorBag:
    """Ordered validation messages per key."""

    def __init__(self, messages: Optional[Mapping[str, List[str]]] = None):
        self._messages: Dict[str, List[str]] = {}
        for key, values in (messages or {}).items():
            for message in values:
                self.add(key, message)

    def add(self, key: str, message: str) -> None:
        self._messages.setdefault(key, []).append(message)

    def get(self, key: str) -> List[str]:
        return list(self._messages.get(key, []))

    def first(self, key: str) -> Optional[str]:
        messages = self._messages.get(key)
        return messages[0] if messages else None

    def has(self, key: str) -> bool:
        return key in self._messages

    def keys(self) -> List[str]:
        return list(self._messages)

    def messages(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._messages.items()}

    def forget(self, key: str) -> None:
        self._messages.pop(key, None)

    def clear(self) -> None:
        self._messages.clear()

    def is_empty(self) -> bool:
        return not self._messages

    def __contains__(self, key: object) -> bool:
        return key in self._messages

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)


@dataclass
class BrowserEvent:
    """One-way hint for the browser, e.g. BrowserEvent("switch-tab", "profile.media")."""
    name: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "data": self.data}


class Component:
    """
    Base server-side component.

    Args:
        event_channel: Callable receiving every dispatched BrowserEvent.
        **initial: Property values filled after the baseline is installed.
    """

    properties: Dict[str, Any] = {}
    rules: Dict[str, Any] = {}
    messages: Dict[str, str] = {}
    validation_attributes: Dict[str, str] = {}

    def __init__(
        self,
        event_channel: Optional[Callable[[BrowserEvent], None]] = None,
        **initial: Any,
    ):
        self.id = uuid.uuid4().hex[:20]
        self._event_channel = event_channel
        self._properties = PropertyBag(self.get_baseline_properties())
        self._errors = ErrorBag()
        self.dispatch_queue: List[BrowserEvent] = []
        if initial:
            self.fill(initial)

    @classmethod
    def component_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    def get_baseline_properties(self) -> Dict[str, Any]:
        return copy.deepcopy(type(self).properties)

    # -------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------

    def get_property_value(self, name: str, default: Any = None) -> Any:
        return self._properties.get(name, default)

    def has_property(self, name: str) -> bool:
        return self._properties.has(name)

    def sync_input(self, name: str, value: Any, track: bool = True) -> None:
        """The only way property values change. ``track=False`` hides the
        change from ``updated_properties``."""
        self._properties.sync(name, value, track=track)

    def fill(self, values: Mapping[str, Any]) -> None:
        self._properties.fill(values)

    def reset(self, *properties: Any) -> None:
        """Restore named properties (all when none are named) to their baseline."""
        if len(properties) == 1 and isinstance(properties[0], (list, tuple)):
            properties = tuple(properties[0])
        self._properties.reset(list(properties) if properties else None)

    def all_properties(self) -> Dict[str, Any]:
        return self._properties.to_dict()

    @property
    def updated_properties(self) -> List[str]:
        return self._properties.updated

    def pull_updated_properties(self) -> List[str]:
        return self._properties.pull_updated()

    # -------------------------------------------------------------------
    # Browser events
    # -------------------------------------------------------------------

    def dispatch_browser_event(self, event: str, data: Any = None) -> None:
        browser_event = BrowserEvent(event, data)
        self.dispatch_queue.append(browser_event)
        if self._event_channel is not None:
            self._event_channel(browser_event)
        logger.debug(f"{self.component_name()} dispatched {event}: {data}")

    # -------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------

    def get_error_bag(self) -> ErrorBag:
        return self._errors

    def set_error_bag(self, messages: Mapping[str, List[str]]) -> ErrorBag:
        self._errors = ErrorBag(messages)
        return self._errors

    def add_error(self, key: str, message: str) -> None:
        self._errors.add(key, message)

    def reset_error_bag(self, *keys: str) -> None:
        if not keys:
            self._errors.clear()
            return
        for key in keys:
            self._errors.forget(key)

    # -------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------

    def get_rules(self) -> Dict[str, List[Any]]:
        return {key: normalize_rules(rules) for key, rules in type(self).rules.items()}

    def get_messages(self) -> Dict[str, str]:
        return dict(type(self).messages)

    def get_validation_attributes(self) -> Dict[str, str]:
        return dict(type(self).validation_attributes)

    def run_validation(
        self,
        rules: Optional[Mapping[str, Any]] = None,
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> ValidationResult:
        """Evaluate rules against the current properties without raising."""
        return Validator(
            self._properties.data(),
            rules if rules is not None else self.get_rules(),
            messages={**self.get_messages(), **(messages or {})},
            attributes={**self.get_validation_attributes(), **(attributes or {})},
        ).validate()

    def handle_validation_failure(
        self,
        result: ValidationResult,
    ) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
        """
        Hook run on every failed validation before the error is raised.

        Returns the (errors, failed) mappings to expose to the caller.
        """
        return dict(result.errors), dict(result.failed)

    def validate(
        self,
        rules: Optional[Mapping[str, Any]] = None,
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Validate all rules. Returns the validated values.

        Raises:
            PanelFormsValidationError: the error bag is replaced with the failures.
        """
        result = self.run_validation(rules, messages, attributes)
        if result.passes:
            self.reset_error_bag()
            return result.validated

        errors, failed = self.handle_validation_failure(result)
        self.set_error_bag(errors)
        raise PanelFormsValidationError(
            f"Validation failed for {len(failed)} field(s)",
            component=self.component_name(),
            result=result,
            errors=errors,
            failed=failed,
        )

    def validate_only(
        self,
        field: str,
        rules: Optional[Mapping[str, Any]] = None,
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Validate a single key. Errors recorded for other keys are kept.

        Raises:
            PanelFormsValidationError: with only ``field``'s failures.
        """
        all_rules = rules if rules is not None else self.get_rules()
        if field not in all_rules:
            return {}

        result = self.run_validation({field: all_rules[field]}, messages, attributes)
        self.reset_error_bag(field)
        if result.passes:
            return result.validated

        errors, failed = self.handle_validation_failure(result)
        for key, key_messages in errors.items():
            self.reset_error_bag(key)
            for message in key_messages:
                self.add_error(key, message)
        raise PanelFormsValidationError(
            f"Validation failed for '{field}'",
            component=self.component_name(),
            field=field,
            result=result,
            errors=errors,
            failed=failed,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id='{self.id}'>"
