# backend/civicmatch/exceptions.py

"""
Error taxonomy for the terminology engine.

- InvalidInputError: the statement is missing, empty or not a string (client error).
- ConfigurationError: the taxonomy or strategy configuration is unusable (server error).

"Nothing matched" is not an error; mappers return an empty sequence for it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TerminologyError(Exception):
    """Base class for terminology engine failures."""

    code: str = "TERMINOLOGY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            out["details"] = self.details
        return out


class InvalidInputError(TerminologyError, ValueError):
    code = "INVALID_INPUT"


class ConfigurationError(TerminologyError):
    code = "CONFIGURATION_ERROR"


__all__ = ["TerminologyError", "InvalidInputError", "ConfigurationError"]
