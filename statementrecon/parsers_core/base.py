from abc import ABC, abstractmethod
from typing import Optional

from statementrecon.parsers_core.models import ParseResult, StatementDocument


class BaseParser(ABC):
    @abstractmethod
    def parse(
        self, raw_text: str, source_file: str, profile_code: Optional[str] = None
    ) -> ParseResult:
        """Turn extracted statement text into metadata and transactions."""
        pass

    def parse_document(
        self, document: StatementDocument, profile_code: Optional[str] = None
    ) -> ParseResult:
        return self.parse(document.raw_text, document.source_file, profile_code)
