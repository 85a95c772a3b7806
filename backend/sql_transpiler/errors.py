"""
Exceptions raised by the SQL transpiler.

Every error carries a stable ``code`` so public entry points can report
failures as ``"<code>: <message>"`` strings.
"""

from typing import Any, Dict, List, Optional


class TranspilerError(Exception):
    """Base exception for transpiler errors."""
    code = "TranspilerError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def format(self) -> str:
        return f"{self.code}: {self.message}"


class InputValidationError(TranspilerError):
    """Query rejected by the input guards (empty, too long, too many tables/joins)."""
    code = "InputValidationError"


class SQLSyntaxError(TranspilerError):
    """SQL text could not be parsed."""
    code = "SyntaxError"


class UnsupportedConstructError(TranspilerError):
    """SQL parsed but uses a construct the query model cannot represent."""
    code = "UnsupportedConstructError"

    def __init__(self, message: str, features: List[str], hint: str = None):
        super().__init__(message, {"features": features})
        self.features = features
        self.hint = hint


class ReferentialIntegrityError(TranspilerError):
    """Model element references a table that does not exist."""
    code = "ReferentialIntegrityError"


class GenerationError(TranspilerError):
    """Model cannot be rendered as SQL."""
    code = "GenerationError"


def format_error(error: Exception) -> str:
    """Render any exception as a ``"<code>: <message>"`` string."""
    if isinstance(error, TranspilerError):
        return error.format()
    return f"InternalError: {error}"
