import re
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

UNKNOWN = "Unknown"


def _check_patterns(patterns: List[str]) -> List[str]:
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"invalid regex {pattern!r}: {e}") from e
    return patterns


# ---------------------------------------------------------------------------
# Format profiles (declarative bank grammar, loaded from YAML)
# ---------------------------------------------------------------------------


class SignaturePattern(BaseModel):
    """A regex that identifies a bank. Lower priority values are tried first."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    priority: int = 100

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v):
        return _check_patterns([v])[0]


class DateGrammar(BaseModel):
    """
    One date notation. The pattern must define named groups ``day`` and
    ``month``; ``year`` is optional. ``line_start`` restricts matches to the
    beginning of a physical line.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str
    line_start: bool = True

    @field_validator("pattern")
    @classmethod
    def _has_groups(cls, v):
        _check_patterns([v])
        groups = re.compile(v).groupindex
        if "day" not in groups or "month" not in groups:
            raise ValueError(f"date pattern {v!r} needs 'day' and 'month' groups")
        return v


class MoneyGrammar(BaseModel):
    """Separator and sign conventions for amounts printed by one bank."""

    model_config = ConfigDict(frozen=True)

    thousands_separator: str = ","
    decimal_separator: str = "."
    currency_symbol: Optional[str] = "R"
    credit_suffix: Optional[str] = None
    debit_suffix: Optional[str] = None
    # Where the minus sign is printed; both positions are accepted when reading
    negative_style: Literal["leading", "trailing"] = "leading"
    # Direction assumed for an amount printed without any sign marker
    unmarked_amount: Literal["debit", "credit", "none"] = "none"

    @model_validator(mode="after")
    def _separators(self):
        if self.decimal_separator not in (".", ","):
            raise ValueError("decimal_separator must be '.' or ','")
        if self.thousands_separator not in ("", ",", ".", " "):
            raise ValueError("thousands_separator must be '', ',', '.' or ' '")
        if self.thousands_separator == self.decimal_separator:
            raise ValueError("thousands and decimal separators must differ")
        return self


class ColumnLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount_position: int = -2
    balance_position: int = -1
    has_balance_column: bool = True
    # How many positions from the right may hold the balance (trailing fee columns)
    balance_search_depth: int = 2


class SectionMarkers(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: List[str] = Field(default_factory=list)
    end: List[str] = Field(default_factory=list)

    @field_validator("start", "end")
    @classmethod
    def _compiles(cls, v):
        return _check_patterns(v)


class FormatProfile(BaseModel):
    """
    Declarative description of one institution's statement layout.
    Profiles are created once at start-up and shared read-only by every parse.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    bank_name: str
    version: int = 1
    currency: str = "ZAR"
    signatures: List[SignaturePattern] = Field(default_factory=list)
    date_formats: List[DateGrammar]
    money: MoneyGrammar = Field(default_factory=MoneyGrammar)
    columns: ColumnLayout = Field(default_factory=ColumnLayout)
    section: SectionMarkers = Field(default_factory=SectionMarkers)
    metadata: Dict[str, List[str]] = Field(default_factory=dict)
    skip_rows: List[str] = Field(default_factory=list)
    noise_lines: List[str] = Field(default_factory=list)
    description_noise: List[str] = Field(default_factory=list)

    @field_validator("skip_rows", "noise_lines", "description_noise")
    @classmethod
    def _compiles(cls, v):
        return _check_patterns(v)

    @field_validator("metadata")
    @classmethod
    def _anchors_compile(cls, v):
        for patterns in v.values():
            _check_patterns(patterns)
        return v

    @field_validator("date_formats")
    @classmethod
    def _at_least_one_date(cls, v):
        if not v:
            raise ValueError("a profile needs at least one date format")
        return v


# ---------------------------------------------------------------------------
# Transient parse structures
# ---------------------------------------------------------------------------


class SignHint(str, Enum):
    NONE = "none"
    CREDIT = "credit"
    DEBIT = "debit"


class MoneyToken(BaseModel):
    raw_text: str
    value: Decimal
    sign_hint: SignHint = SignHint.NONE
    # Offsets relative to the text the token was found in
    start: int = 0
    end: int = 0


class TransactionCandidateChunk(BaseModel):
    date_token: str
    body: str
    chunk_index: int
    # Offsets into the transaction section: chunk span and where the body begins
    start: int = 0
    end: int = 0
    body_start: int = 0


class Span(BaseModel):
    start: int
    end: int
    reason: str


class SegmentationResult(BaseModel):
    section: str
    section_start: int
    section_end: int
    chunks: List[TransactionCandidateChunk] = Field(default_factory=list)
    dropped: List[Span] = Field(default_factory=list)

    def covered_spans(self) -> List[Span]:
        """Every emitted and dropped span, ordered by position in the section."""
        spans = [Span(start=c.start, end=c.end, reason="chunk") for c in self.chunks]
        spans.extend(self.dropped)
        return sorted(spans, key=lambda s: (s.start, s.end))


class StatementDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_text: str
    source_file: str


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class StatementMetadata(BaseModel):
    """
    Statement-level metadata. String fields fall back to the "Unknown" sentinel
    and balances to None when no anchor pattern matched.
    """

    account_number: str = Field(UNKNOWN, description="Account number, digits only")
    client_name: str = Field(UNKNOWN, description="Account holder as printed")
    statement_id: str = Field(
        UNKNOWN, description="Bank document number for the statement"
    )
    bank_name: str = Field(UNKNOWN, description="Bank name, e.g. 'Capitec', 'FNB'")
    opening_balance: Optional[Decimal] = Field(
        None, description="Balance brought forward at the start of the period"
    )
    closing_balance: Optional[Decimal] = Field(
        None, description="Balance at the end of the period"
    )
    statement_date: Optional[dt.date] = Field(None, description="Statement issue date")
    statement_period_start: Optional[dt.date] = Field(
        None, description="Statement period start date"
    )
    statement_period_end: Optional[dt.date] = Field(
        None, description="Statement period end date"
    )
    currency: str = Field("ZAR", description="Currency code")
    source_file: Optional[str] = Field(None, description="Original uploaded filename")
    profile_code: Optional[str] = Field(None, description="Format profile used")
    profile_version: Optional[int] = Field(
        None, description="Version of the format profile used"
    )
    transaction_count: int = Field(0, description="Number of transactions emitted")
    total_credits: Decimal = Field(Decimal("0.00"), description="Sum of credits")
    total_debits: Decimal = Field(
        Decimal("0.00"), description="Sum of debits as a positive number"
    )


class Transaction(BaseModel):
    """
    A single reconciled transaction.
    Amounts are signed: credits positive, debits negative.
    """

    date: dt.date = Field(..., description="Transaction date")
    description: str = Field(..., description="Cleaned transaction narrative")
    amount: Decimal = Field(..., description="Signed amount, 2 fractional digits")
    balance: Optional[Decimal] = Field(
        None, description="Running balance after the transaction, if printed"
    )
    fee: Optional[Decimal] = Field(
        None, description="Accrued bank charges printed beside the balance, if any"
    )
    account: str = Field(UNKNOWN, description="Account number")
    client_name: str = Field(UNKNOWN, description="Account holder")
    bank_name: str = Field(UNKNOWN, description="Bank name")
    source_file: str = Field("", description="File the statement text came from")
    statement_id: str = Field(UNKNOWN, description="Statement document number")
    transaction_type: Optional[str] = Field(
        None, description="'credit' or 'debit', derived from the amount sign"
    )
    chunk_index: Optional[int] = Field(
        None, description="Index of the segment the transaction came from"
    )
    reconciliation: Optional[str] = Field(
        None,
        description="How the amount was resolved, e.g. 'delta', 'suffix_recovery', 'face_value'",
    )


class ReconciliationReport(BaseModel):
    valid: bool = Field(True, description="True when the ledger has no breaks")
    warnings: List[str] = Field(default_factory=list)


class ParseResult(BaseModel):
    """
    Canonical output of one parse:
    - metadata: statement-level metadata
    - transactions: reconciled transactions in document order
    - warnings: every non-fatal problem met during the parse
    - report: ledger continuity verdict
    """

    metadata: StatementMetadata
    transactions: List[Transaction] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    report: ReconciliationReport = Field(default_factory=ReconciliationReport)
    schema_version: str = Field("1.0", description="Output schema version")
