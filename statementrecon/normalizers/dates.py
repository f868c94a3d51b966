"""
Date token grammar and year inference.

Row dates are matched with the profile's DateGrammar patterns (named groups
``day``, ``month`` and optional ``year``). Free-form metadata dates such as
"Statement date: 5 Desember 2025" go through python-dateutil with a parserinfo
that knows the Afrikaans month names.
"""

import datetime as dt
import logging
import re
from functools import lru_cache
from typing import List, Optional, Tuple

from dateutil import parser as dateutil_parser

from statementrecon.parsers_core.errors import (
    DateFormatError,
    WarningCode,
    format_warning,
)
from statementrecon.parsers_core.models import DateGrammar, FormatProfile
from statementrecon.utils.config import MONTHS_MAP

logger = logging.getLogger(__name__)


def _month_names():
    names = {}
    for name, number in MONTHS_MAP.items():
        names.setdefault(number, []).append(name)
    return [tuple(names[n]) for n in range(1, 13)]


class StatementParserInfo(dateutil_parser.parserinfo):
    """dateutil parserinfo with English and Afrikaans month names, day first."""

    MONTHS = _month_names()

    def __init__(self, dayfirst=True, yearfirst=False):
        super().__init__(dayfirst=dayfirst, yearfirst=yearfirst)


_PARSER_INFO = StatementParserInfo()
# "2025/11/01" style dates are year, month, day
_YEAR_FIRST_INFO = StatementParserInfo(dayfirst=False, yearfirst=True)
_YEAR_FIRST = re.compile(r"^\d{4}[/-]")


@lru_cache(maxsize=128)
def compile_date_grammar(grammar: DateGrammar) -> "re.Pattern":
    """
    Search pattern for one grammar. The date itself is captured as ``token``.
    Line-start grammars only match after optional indentation.
    """
    if grammar.line_start:
        return re.compile(rf"(?m)^[ \t]*(?P<token>{grammar.pattern})(?![\d/])")
    return re.compile(rf"(?<![\d/])(?P<token>{grammar.pattern})(?![\d/])")


def month_number(text: str) -> int:
    """Month number for a numeric or named month."""
    text = (text or "").strip().rstrip(".")
    if text.isdigit():
        month = int(text)
    else:
        month = MONTHS_MAP.get(text.lower(), 0)
    if not 1 <= month <= 12:
        raise DateFormatError(f"Unknown month: {text!r}")
    return month


def date_parts(match) -> Tuple[int, int, Optional[int]]:
    """(day, month, year or None) from a grammar match; validates ranges."""
    groups = match.groupdict()
    day = int(groups["day"])
    if not 1 <= day <= 31:
        raise DateFormatError(f"Day out of range: {groups['day']!r}")
    month = month_number(groups["month"])
    year = groups.get("year")
    if year:
        year = int(year)
        if year < 100:
            year += 2000
    else:
        year = None
    return day, month, year


def parse_loose_date(text: str) -> dt.date:
    """
    Parse a free-form date like "01 December 2025", "2025/12/01" or
    "5 Des 2025" (day first).

    Raises
    ------
    DateFormatError
        If dateutil cannot make a date out of ``text``.
    """
    if not text or not text.strip():
        raise DateFormatError("Empty date")
    try:
        text = text.strip()
        info = _YEAR_FIRST_INFO if _YEAR_FIRST.match(text) else _PARSER_INFO
        return dateutil_parser.parse(text, parserinfo=info).date()
    except (ValueError, OverflowError) as e:
        raise DateFormatError(f"Unparseable date {text!r}: {e}") from e


class DateNormalizer:
    """
    Converts row date tokens to dates for one statement.

    Instances are stateful (the last seen date drives month rollover) and
    belong to a single parse.
    """

    def __init__(
        self,
        profile: FormatProfile,
        period_start: Optional[dt.date] = None,
        period_end: Optional[dt.date] = None,
        statement_date: Optional[dt.date] = None,
        today: Optional[dt.date] = None,
    ):
        self.profile = profile
        self.period_start = period_start
        self.period_end = period_end
        self.statement_date = statement_date
        # Read only when no statement anchor exists; pass it for reproducible output
        self.today = today
        self.last_date: Optional[dt.date] = None
        self.warnings: List[str] = []

    def _match(self, token: str):
        for grammar in self.profile.date_formats:
            match = re.fullmatch(grammar.pattern, token.strip())
            if match:
                return match
        raise DateFormatError(f"Token {token!r} matches no date format of {self.profile.code}")

    @staticmethod
    def _year_before(anchor: dt.date, month: int) -> int:
        # A month after the anchor month belongs to the previous year
        return anchor.year - 1 if month > anchor.month else anchor.year

    def _infer_year(self, month: int) -> int:
        if self.period_end is not None:
            return self._year_before(self.period_end, month)
        if self.last_date is not None:
            year = self.last_date.year
            # Dec -> Jan rollover; small backwards steps are posting-order noise
            if self.last_date.month - month >= 6:
                year += 1
            elif month - self.last_date.month >= 6:
                year -= 1
            return year
        if self.statement_date is not None:
            return self._year_before(self.statement_date, month)
        if self.period_start is not None:
            return self.period_start.year
        if self.today is None:
            self.today = dt.date.today()
        if not self.warnings:
            warning = format_warning(
                WarningCode.DATE_UNPARSEABLE,
                f"No statement period for year-less dates; assuming {self.today.year} "
                f"from the parse date {self.today.isoformat()}",
            )
            self.warnings.append(warning)
            logger.warning(warning)
        return self.today.year

    def normalize(self, token: str) -> dt.date:
        """
        Convert one raw date token to a date.

        Raises
        ------
        DateFormatError
            If the token is not a date of this profile or not a real calendar day.
        """
        day, month, year = date_parts(self._match(token))
        if year is None:
            year = self._infer_year(month)
        try:
            result = dt.date(year, month, day)
        except ValueError as e:
            raise DateFormatError(f"Invalid date {token!r}: {e}") from e
        self.last_date = result
        return result
