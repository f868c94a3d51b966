"""
Statement-level metadata extraction.

Each field is located with the profile's ordered anchor patterns; the first
pattern that yields a usable value wins. A pattern's ``value`` group is used
when present, otherwise group 1, otherwise the whole match. Missing core
fields keep their sentinel and add a METADATA_FIELD_MISSING warning; this
module never raises for bad or missing text.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from statementrecon.normalizers.dates import parse_loose_date
from statementrecon.normalizers.money import first_money_value
from statementrecon.parsers_core.errors import (
    DateFormatError,
    MoneyFormatError,
    WarningCode,
    format_warning,
)
from statementrecon.parsers_core.models import FormatProfile, StatementMetadata
from statementrecon.utils.config import (
    OPTIONAL_METADATA_FIELDS,
    REQUIRED_METADATA_FIELDS,
)

logger = logging.getLogger(__name__)


def _captured(match) -> str:
    if "value" in match.re.groupindex:
        return match.group("value") or ""
    if match.re.groups:
        return match.group(1) or ""
    return match.group(0)


def _clean_account(value: str):
    cleaned = re.sub(r"[\s-]", "", value)
    return cleaned or None


def _clean_name(value: str):
    cleaned = " ".join(value.split())
    return cleaned or None


def _clean_text(value: str):
    return value.strip() or None


class MetadataExtractor:
    def __init__(self, profile: FormatProfile):
        self.profile = profile
        self._converters = {
            "account_number": _clean_account,
            "client_name": _clean_name,
            "statement_id": _clean_text,
            "opening_balance": self._money,
            "closing_balance": self._money,
            "statement_date": self._date,
            "statement_period_start": self._date,
            "statement_period_end": self._date,
        }

    def _money(self, value: str):
        return first_money_value(value, self.profile.money)

    @staticmethod
    def _date(value: str):
        return parse_loose_date(value)

    def _find(self, field: str, text: str, convert: Callable):
        for pattern in self.profile.metadata.get(field, []):
            for match in re.finditer(pattern, text):
                try:
                    value = convert(_captured(match))
                except (DateFormatError, MoneyFormatError) as e:
                    logger.debug("%s: anchor %r gave unusable value: %s", field, pattern, e)
                    continue
                if value is not None:
                    logger.debug("%s: %r via %r", field, value, pattern)
                    return value
        return None

    def extract(
        self, text: str, source_file: Optional[str] = None
    ) -> Tuple[StatementMetadata, List[str]]:
        """Returns (metadata, warnings) for ``text``."""
        values = {}
        warnings = []
        for field in REQUIRED_METADATA_FIELDS + OPTIONAL_METADATA_FIELDS:
            value = self._find(field, text, self._converters[field])
            if value is not None:
                values[field] = value
            elif field in REQUIRED_METADATA_FIELDS:
                warning = format_warning(
                    WarningCode.METADATA_FIELD_MISSING,
                    f"{field} not found in statement text",
                )
                logger.warning(warning)
                warnings.append(warning)

        metadata = StatementMetadata(
            bank_name=self.profile.bank_name,
            currency=self.profile.currency,
            source_file=source_file,
            profile_code=self.profile.code,
            profile_version=self.profile.version,
            **values,
        )
        return metadata, warnings
