"""Input validation package."""

from finquest.validation.validator import InputValidator

__all__ = ["InputValidator"]
