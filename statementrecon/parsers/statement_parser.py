"""
Statement parser: composes classification, metadata extraction, segmentation,
reconciliation, description cleaning and ledger validation into one call.

    from statementrecon import parse
    result = parse(text, "statement.pdf")
    result.transactions, result.warnings, result.report.valid

Only caller mistakes (non-string or blank text) and documents that yield no
transactions at all raise; every other problem lands in ``result.warnings``.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from statementrecon.normalizers.dates import DateNormalizer
from statementrecon.parsers.classifier import FormatClassifier
from statementrecon.parsers.description import DescriptionCleaner
from statementrecon.parsers.fields import FieldExtractor
from statementrecon.parsers.ledger import LedgerValidator
from statementrecon.parsers.metadata import MetadataExtractor
from statementrecon.parsers.reconciler import Reconciler
from statementrecon.parsers.segmenter import Segmenter
from statementrecon.parsers_core.autodiscover import ensure_profiles_loaded
from statementrecon.parsers_core.base import BaseParser
from statementrecon.parsers_core.errors import (
    DateFormatError,
    MalformedInputError,
    NoTransactionsFoundError,
    ProfileConfigurationError,
    WarningCode,
    format_warning,
)
from statementrecon.parsers_core.models import (
    FormatProfile,
    ParseResult,
    StatementMetadata,
    Transaction,
)
from statementrecon.utils.data_transformation import transaction_type_for

logger = logging.getLogger(__name__)


class StatementParser(BaseParser):
    """
    Parses extracted bank-statement text.

    Args:
        profiles: Profiles to choose from. Defaults to the registry snapshot
            taken at parse time (loading the bundled profiles on first use).
        tolerance: Balance tolerance; defaults to RECONCILIATION_CONFIG.
        max_plausible_amount: Amounts above this are treated as fused numbers.
        today: Date used for year-less rows when no period is known.

    A parser holds no per-statement state, so one instance may be shared
    between threads.
    """

    def __init__(
        self,
        profiles: Optional[Iterable[FormatProfile]] = None,
        tolerance: Optional[Decimal] = None,
        max_plausible_amount: Optional[Decimal] = None,
        today: Optional[dt.date] = None,
    ):
        self.profiles = None if profiles is None else tuple(profiles)
        self.tolerance = tolerance
        self.max_plausible_amount = max_plausible_amount
        self.today = today

    def _profiles(self) -> Tuple[FormatProfile, ...]:
        if self.profiles is not None:
            return self.profiles
        return ensure_profiles_loaded()

    def select_profile(
        self, text: str, profile_code: Optional[str] = None
    ) -> Tuple[FormatProfile, List[str]]:
        """The profile for ``text`` and any classification warnings."""
        profiles = self._profiles()
        if profile_code:
            for profile in profiles:
                if profile.code == profile_code:
                    logger.info("Using requested profile %s", profile_code)
                    return profile, []
            raise ProfileConfigurationError(
                f"Unknown profile {profile_code!r}; known: {[p.code for p in profiles]}"
            )
        return FormatClassifier(profiles).classify(text)

    @staticmethod
    def _check_input(raw_text, source_file) -> str:
        if not isinstance(raw_text, str):
            raise MalformedInputError(
                f"Statement text must be a string, got {type(raw_text).__name__}"
            )
        if not isinstance(source_file, str):
            raise MalformedInputError(
                f"Source file must be a string, got {type(source_file).__name__}"
            )
        if not raw_text.strip():
            raise MalformedInputError("Statement text is empty")
        return raw_text.replace("\r\n", "\n").replace("\r", "\n")

    def parse(
        self, raw_text: str, source_file: str, profile_code: Optional[str] = None
    ) -> ParseResult:
        """
        Parse one statement.

        Raises
        ------
        MalformedInputError
            If ``raw_text`` or ``source_file`` is not a string, or the text is blank.
        NoTransactionsFoundError
            If the text yields no transactions. The error carries the metadata.
        ProfileConfigurationError
            If ``profile_code`` names no registered profile.
        """
        text = self._check_input(raw_text, source_file)
        profile, warnings = self.select_profile(text, profile_code)

        metadata, metadata_warnings = MetadataExtractor(profile).extract(
            text, source_file
        )
        warnings.extend(metadata_warnings)

        segmentation = Segmenter(profile).segment(text)
        if not segmentation.chunks:
            raise NoTransactionsFoundError(
                f"No transaction rows found in {source_file!r} "
                f"(profile {profile.code})",
                metadata=metadata,
                warnings=warnings,
            )

        dates = DateNormalizer(
            profile,
            period_start=metadata.statement_period_start,
            period_end=metadata.statement_period_end,
            statement_date=metadata.statement_date,
            today=self.today,
        )
        reconciler = Reconciler(
            profile,
            running_balance=metadata.opening_balance,
            tolerance=self.tolerance,
            max_plausible_amount=self.max_plausible_amount,
        )
        extractor = FieldExtractor(profile)
        cleaner = DescriptionCleaner(profile)

        transactions = []
        for chunk in segmentation.chunks:
            fields = extractor.extract(chunk)
            if not fields.tokens:
                warning = format_warning(
                    WarningCode.CHUNK_SKIPPED,
                    f"chunk {chunk.chunk_index} ({chunk.date_token!r}) has no amount: "
                    f"{' '.join(chunk.body.split())[:60]!r}",
                )
                logger.warning(warning)
                warnings.append(warning)
                continue

            resolution = reconciler.resolve(fields.tokens, chunk.chunk_index)
            if resolution.warning:
                warnings.append(resolution.warning)

            try:
                date = dates.normalize(chunk.date_token)
            except DateFormatError as e:
                warning = format_warning(
                    WarningCode.DATE_UNPARSEABLE, f"chunk {chunk.chunk_index}: {e}"
                )
                logger.warning(warning)
                warnings.append(warning)
                continue

            transactions.append(
                Transaction(
                    date=date,
                    description=cleaner.clean(
                        chunk.body, fields.tokens, resolution.remnants
                    ),
                    amount=resolution.amount,
                    balance=resolution.balance,
                    fee=resolution.fee,
                    account=metadata.account_number,
                    client_name=metadata.client_name,
                    bank_name=metadata.bank_name,
                    source_file=source_file,
                    statement_id=metadata.statement_id,
                    transaction_type=transaction_type_for(resolution.amount),
                    chunk_index=chunk.chunk_index,
                    reconciliation=resolution.method,
                )
            )
        warnings.extend(dates.warnings)

        if not transactions:
            raise NoTransactionsFoundError(
                f"None of the {len(segmentation.chunks)} rows in {source_file!r} "
                f"produced a transaction",
                metadata=metadata,
                warnings=warnings,
            )

        metadata = self._summarize(metadata, transactions, warnings)
        report = LedgerValidator(self.tolerance).validate(transactions, metadata)
        warnings.extend(report.warnings)

        logger.info(
            "Parsed %s: %s transactions, %s warnings, ledger %s",
            source_file,
            len(transactions),
            len(warnings),
            "valid" if report.valid else "broken",
        )
        return ParseResult(
            metadata=metadata,
            transactions=transactions,
            warnings=warnings,
            report=report,
        )

    @staticmethod
    def _summarize(
        metadata: StatementMetadata, transactions: List[Transaction], warnings: List[str]
    ) -> StatementMetadata:
        credits = sum((t.amount for t in transactions if t.amount > 0), Decimal("0.00"))
        debits = sum((-t.amount for t in transactions if t.amount < 0), Decimal("0.00"))
        update = {
            "transaction_count": len(transactions),
            "total_credits": credits,
            "total_debits": debits,
        }
        if metadata.opening_balance is None:
            first = transactions[0]
            if first.reconciliation == "convention" and first.balance is not None:
                opening = first.balance - first.amount
                update["opening_balance"] = opening
                warning = format_warning(
                    WarningCode.METADATA_FIELD_MISSING,
                    f"opening_balance derived from the first transaction ({opening})",
                )
                logger.warning(warning)
                warnings.append(warning)
        if metadata.closing_balance is None:
            last = next((t for t in reversed(transactions) if t.balance is not None), None)
            if last is not None:
                update["closing_balance"] = last.balance
                warning = format_warning(
                    WarningCode.METADATA_FIELD_MISSING,
                    f"closing_balance taken from the last transaction balance ({last.balance})",
                )
                logger.warning(warning)
                warnings.append(warning)
        return metadata.model_copy(update=update)


def parse(
    raw_text: str, source_file: str, profile_code: Optional[str] = None
) -> ParseResult:
    """Parse one statement with the registered profiles."""
    return StatementParser().parse(raw_text, source_file, profile_code)
