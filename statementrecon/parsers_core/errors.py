"""
Exception types and warning codes for the statement engine.

Fatal problems (nothing usable can be returned) raise a StatementParseError
subclass. Field-level problems are reported as warning strings of the form
"[CODE] message" and never interrupt a parse.
"""

from enum import Enum
from typing import List, Optional


class WarningCode(str, Enum):
    FORMAT_UNRECOGNIZED = "FORMAT_UNRECOGNIZED"
    METADATA_FIELD_MISSING = "METADATA_FIELD_MISSING"
    RECONCILIATION_MISMATCH = "RECONCILIATION_MISMATCH"
    DATE_UNPARSEABLE = "DATE_UNPARSEABLE"
    CHUNK_SKIPPED = "CHUNK_SKIPPED"
    LEDGER_DISCONTINUITY = "LEDGER_DISCONTINUITY"


def format_warning(code: WarningCode, message: str) -> str:
    """Render a warning the way it appears in ParseResult.warnings."""
    return f"[{code.value}] {message}"


class StatementParseError(Exception):
    code = "PARSE_ERROR"

    def __init__(self, message: str, warnings: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.warnings = list(warnings or [])

    def __str__(self):
        return f"[{self.code}] {self.message}"


class MalformedInputError(StatementParseError):
    """Raised when the caller hands over something that is not statement text."""

    code = "MALFORMED_INPUT"


class NoTransactionsFoundError(StatementParseError):
    """
    Raised when non-trivial statement text yields zero transactions.
    Carries whatever metadata was extracted so callers can still report it.
    """

    code = "NO_TRANSACTIONS_FOUND"

    def __init__(self, message: str, metadata=None, warnings=None):
        super().__init__(message, warnings=warnings)
        self.metadata = metadata


class ProfileConfigurationError(StatementParseError):
    code = "PROFILE_CONFIGURATION"


class MoneyFormatError(ValueError):
    pass


class DateFormatError(ValueError):
    pass
