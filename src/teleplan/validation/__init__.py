"""Validation of override requests."""

from teleplan.validation.validator import OverrideRequestValidator, ValidationResult

__all__ = [
    "OverrideRequestValidator",
    "ValidationResult",
]
