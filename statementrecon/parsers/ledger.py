import logging
from decimal import Decimal
from typing import List, Optional

from statementrecon.parsers_core.errors import WarningCode, format_warning
from statementrecon.parsers_core.models import (
    ReconciliationReport,
    StatementMetadata,
    Transaction,
)
from statementrecon.utils.config import RECONCILIATION_CONFIG

logger = logging.getLogger(__name__)


class LedgerValidator:
    """
    Checks that balances carry from one transaction to the next:
    ``prev.balance + curr.amount == curr.balance`` within tolerance, plus the
    opening and closing balances at both ends. Transactions are never changed.
    """

    def __init__(self, tolerance: Optional[Decimal] = None):
        self.tolerance = (
            RECONCILIATION_CONFIG["tolerance"] if tolerance is None else tolerance
        )

    def _break(self, message: str) -> str:
        warning = format_warning(WarningCode.LEDGER_DISCONTINUITY, message)
        logger.warning(warning)
        return warning

    def validate(
        self,
        transactions: List[Transaction],
        metadata: Optional[StatementMetadata] = None,
    ) -> ReconciliationReport:
        warnings = []

        if metadata is not None and metadata.opening_balance is not None and transactions:
            first = transactions[0]
            if first.balance is not None:
                diff = metadata.opening_balance + first.amount - first.balance
                if abs(diff) >= self.tolerance:
                    warnings.append(
                        self._break(
                            f"opening balance {metadata.opening_balance} + "
                            f"{first.amount} != {first.balance} on {first.date} "
                            f"(off by {diff})"
                        )
                    )

        for i in range(1, len(transactions)):
            prev, curr = transactions[i - 1], transactions[i]
            if prev.balance is None or curr.balance is None:
                continue
            diff = prev.balance + curr.amount - curr.balance
            if abs(diff) >= self.tolerance:
                warnings.append(
                    self._break(
                        f"transaction {i} ({curr.date}, {curr.description!r}): "
                        f"{prev.balance} + {curr.amount} != {curr.balance} "
                        f"(off by {diff})"
                    )
                )

        if metadata is not None and metadata.closing_balance is not None and transactions:
            last = transactions[-1]
            if last.balance is not None:
                diff = metadata.closing_balance - last.balance
                if abs(diff) >= self.tolerance:
                    warnings.append(
                        self._break(
                            f"closing balance {metadata.closing_balance} != last "
                            f"balance {last.balance} (off by {diff})"
                        )
                    )

        return ReconciliationReport(valid=not warnings, warnings=warnings)
