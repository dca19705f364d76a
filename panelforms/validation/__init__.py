"""panelforms Validation — Rule parsing, evaluation and the ValidationResult type."""

from panelforms.validation.validator import ValidationResult, Validator  # noqa: F401

__all__ = ["Validator", "ValidationResult"]
