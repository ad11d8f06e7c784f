"""Validation checks for ason templates."""

from .template import ValidationReport, validate_template

__all__ = ["ValidationReport", "validate_template"]
