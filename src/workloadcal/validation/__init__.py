"""Validation module for detecting slot conflicts."""

from workloadcal.validation.validator import ConflictType, ValidationError, WorkloadValidator

__all__ = [
    "ConflictType",
    "ValidationError",
    "WorkloadValidator",
]
