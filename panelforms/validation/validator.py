"""
panelforms Validator — Evaluates ``{key: [constraints]}`` against component data.

Returns an explicit ValidationResult instead of raising, so callers can
inspect which keys failed (and react, e.g. by focusing a tab) before deciding
to raise PanelFormsValidationError themselves.

Usage:
    result = Validator(data, {"email": ["required", "email"]}).validate()
    if result.fails():
        ...
        result.raise_for_errors()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from panelforms.engine.errors import PanelFormsValidationError
from panelforms.utilities.utils import data_get, data_has, humanize
from panelforms.validation.rules import (
    MESSAGES,
    RULES,
    ParsedRule,
    RuleContext,
    is_empty,
    normalize_rules,
    parse_rule,
    size_kind,
)

logger = logging.getLogger("panelforms.validation.validator")


class ValidationResult:
    """Outcome of one validation run."""

    def __init__(
        self,
        validated: Dict[str, Any],
        errors: Dict[str, List[str]],
        failed: Dict[str, List[str]],
    ):
        self.validated = validated
        self.errors = errors
        self.failed = failed

    @property
    def passes(self) -> bool:
        return not self.failed

    def fails(self) -> bool:
        return bool(self.failed)

    def failed_keys(self) -> List[str]:
        return list(self.failed)

    def raise_for_errors(self, message: Optional[str] = None, **context: Any) -> None:
        """Raise PanelFormsValidationError when the run failed."""
        if self.passes:
            return
        raise PanelFormsValidationError(
            message or f"Validation failed for {len(self.failed)} field(s)",
            result=self,
            **context,
        )

    def __repr__(self) -> str:
        status = "passed" if self.passes else f"failed={sorted(self.failed)}"
        return f"<ValidationResult {status}>"


class Validator:
    """
    Rule evaluator.

    Args:
        data: Mapping the dotted rule keys are read from.
        rules: ``{key: [constraints]}`` (or ``"a|b"`` strings).
        messages: Overrides keyed ``"<key>.<rule>"`` or ``"<rule>"``.
        attributes: Human labels substituted for ``:attribute``.
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ):
        self._data = data
        self._rules: Dict[str, List[ParsedRule]] = {
            key: [parse_rule(r) for r in normalize_rules(constraints)]
            for key, constraints in rules.items()
        }
        self._messages = dict(messages or {})
        self._attributes = dict(attributes or {})

    def validate(self) -> ValidationResult:
        validated: Dict[str, Any] = {}
        errors: Dict[str, List[str]] = {}
        failed: Dict[str, List[str]] = {}

        for key, parsed in self._rules.items():
            value = data_get(self._data, key)
            rule_names = [p.name for p in parsed]
            ctx = RuleContext(attribute=key, data=self._data, rule_names=rule_names)

            if "nullable" in rule_names and value is None:
                validated[key] = value
                continue

            for rule in parsed:
                if not rule.implicit and is_empty(value):
                    continue
                messages = self._evaluate(rule, key, value, ctx)
                if messages:
                    errors.setdefault(key, []).extend(messages)
                    failed.setdefault(key, []).append(rule.name)

            if key not in failed and data_has(self._data, key):
                validated[key] = value

        if failed:
            logger.debug(f"Validation failed: {failed}")
        return ValidationResult(validated, errors, failed)

    def _evaluate(self, rule: ParsedRule, key: str, value: Any, ctx: RuleContext) -> List[str]:
        if rule.callback is not None:
            collected: List[str] = []
            rule.callback(key, value, lambda message: collected.append(
                self._replace(message, key, rule)
            ))
            return collected

        if RULES[rule.name](value, rule.params, ctx):
            return []
        return [self._message_for(rule, key, value, ctx)]

    def _message_for(self, rule: ParsedRule, key: str, value: Any, ctx: RuleContext) -> str:
        template = self._messages.get(f"{key}.{rule.name}") or self._messages.get(rule.name)
        if template is None:
            default = MESSAGES[rule.name]
            if isinstance(default, dict):
                default = default[size_kind(value, ctx.rule_names)]
            template = default
        return self._replace(template, key, rule)

    def _label(self, key: str) -> str:
        return self._attributes.get(key) or humanize(key)

    def _replace(self, template: str, key: str, rule: ParsedRule) -> str:
        message = template.replace(":attribute", self._label(key))
        if rule.params:
            first = rule.params[0]
            message = message.replace(":min", first).replace(":max", first)
            if rule.name == "required_without":
                values = " / ".join(self._label(p) for p in rule.params)
            else:
                values = ", ".join(rule.params)
            message = message.replace(":values", values)
        return message
