"""Validation package."""

from clario.validation.validator import JournalValidator

__all__ = ["JournalValidator"]
