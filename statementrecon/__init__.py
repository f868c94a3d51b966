"""
statementrecon: parse and reconcile text extracted from bank statements.
"""

from statementrecon.parsers.statement_parser import StatementParser, parse
from statementrecon.parsers_core.errors import (
    MalformedInputError,
    NoTransactionsFoundError,
    ProfileConfigurationError,
    StatementParseError,
)
from statementrecon.parsers_core.models import (
    ParseResult,
    StatementDocument,
    StatementMetadata,
    Transaction,
)

__version__ = "0.1.0"
