"""Validation module for verifying generated slots."""

from slotfinder.validation.validator import (
    SlotValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "SlotValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
