# macrocoach/errors.py
"""
Domain errors raised by the planning engine.

The app factory maps each of these onto an HTTP response; oracle errors are
the exception and never leave the estimators (they always fall back).
"""

from __future__ import annotations


class MacroCoachError(Exception):
    """Base class for engine errors."""


class InputIncompleteError(MacroCoachError):
    """Required client fields are missing; nothing is guessed."""

    def __init__(self, missing: list[str], message: str = "Client missing required data for nutrition calculation"):
        super().__init__(message)
        self.message = message
        self.missing = list(missing)


class ConstraintViolationError(MacroCoachError):
    """Request is well-formed but violates a domain rule (e.g. custom macro calories)."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundError(MacroCoachError):
    def __init__(self, what: str):
        super().__init__(f"{what} not found")
        self.what = what


class EstimationError(MacroCoachError):
    """The estimation oracle was unavailable or answered outside its contract."""
