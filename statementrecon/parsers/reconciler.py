"""
Balance-driven amount resolution.

For each chunk the reconciler decides which money token is the running balance,
which is the transaction amount and which direction the amount goes. The
order of attempts is:

1. column convention (amount second to last, balance last by default)
2. balance delta: ``expected = balance - running``; a token whose magnitude
   equals ``|expected|`` is the amount and the delta's sign wins over any
   printed marker
3. suffix recovery: a reference number fused onto the amount
   ("123456150.00") is split and its prefix handed back as a description
   remnant
4. face value with a RECONCILIATION_MISMATCH warning

A token to the right of the chosen balance is an accrued-charges column and is
reported as ``fee``.

Chunks must be resolved strictly in document order; the running balance moves
to the resolved balance after every chunk.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from statementrecon.normalizers.money import CENTS, split_fused_amount
from statementrecon.parsers_core.errors import WarningCode, format_warning
from statementrecon.parsers_core.models import FormatProfile, MoneyToken, SignHint
from statementrecon.utils.config import RECONCILIATION_CONFIG
from statementrecon.utils.data_transformation import normalize_transaction_amount

logger = logging.getLogger(__name__)


class Resolution(BaseModel):
    amount: Decimal
    balance: Optional[Decimal] = None
    method: str
    amount_index: Optional[int] = None
    balance_index: Optional[int] = None
    # token index -> text that replaces the token in the description
    remnants: Dict[int, str] = Field(default_factory=dict)
    # Accrued charges printed to the right of the balance
    fee: Optional[Decimal] = None
    warning: Optional[str] = None


def _q(value) -> Decimal:
    return Decimal(value).quantize(CENTS)


class Reconciler:
    def __init__(
        self,
        profile: FormatProfile,
        running_balance: Optional[Decimal] = None,
        tolerance: Optional[Decimal] = None,
        max_plausible_amount: Optional[Decimal] = None,
    ):
        self.profile = profile
        self.columns = profile.columns
        self.running_balance = None if running_balance is None else _q(running_balance)
        self.tolerance = (
            RECONCILIATION_CONFIG["tolerance"] if tolerance is None else tolerance
        )
        self.ceiling = (
            RECONCILIATION_CONFIG["max_plausible_amount"]
            if max_plausible_amount is None
            else max_plausible_amount
        )

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _index(position: int, count: int) -> Optional[int]:
        index = position if position >= 0 else count + position
        return index if 0 <= index < count else None

    def _balance_candidates(self, tokens: List[MoneyToken]) -> List[int]:
        """
        Token indexes that may hold the balance, best first: the conventional
        position, then leftwards up to ``balance_search_depth``. Where the
        profile prints Cr/Dr suffixes, balances always carry one, so marked
        candidates move ahead of unmarked ones (an unmarked trailing token is
        a charges column).
        """
        count = len(tokens)
        candidates = []
        conventional = self._index(self.columns.balance_position, count)
        if conventional is not None and conventional >= 1:
            candidates.append(conventional)
        for depth in range(self.columns.balance_search_depth):
            index = count - 1 - depth
            if index >= 1 and index not in candidates:
                candidates.append(index)
        money = self.profile.money
        if money.credit_suffix or money.debit_suffix:
            candidates.sort(key=lambda i: tokens[i].sign_hint == SignHint.NONE)
        return candidates

    def _amount_candidates(self, balance_index: int) -> List[int]:
        offset = self.columns.amount_position - self.columns.balance_position
        conventional = balance_index + offset
        candidates = []
        if 0 <= conventional < balance_index:
            candidates.append(conventional)
        for index in range(balance_index - 1, -1, -1):
            if index not in candidates:
                candidates.append(index)
        return candidates

    def _face_value(self, token: MoneyToken) -> Decimal:
        if token.sign_hint != SignHint.NONE:
            return _q(token.value)
        return normalize_transaction_amount(
            abs(token.value), self.profile.money.unmarked_amount
        )

    def _warn(self, chunk_index: int, message: str) -> str:
        warning = format_warning(
            WarningCode.RECONCILIATION_MISMATCH, f"chunk {chunk_index}: {message}"
        )
        logger.warning(warning)
        return warning

    def _finish(
        self,
        resolution: Resolution,
        chunk_index: int,
        tokens: Optional[List[MoneyToken]] = None,
    ) -> Resolution:
        index = resolution.balance_index
        if tokens and index is not None and index < len(tokens) - 1:
            resolution = resolution.model_copy(
                update={"fee": abs(_q(tokens[index + 1].value))}
            )
        if resolution.balance is not None:
            self.running_balance = resolution.balance
        logger.debug(
            "chunk %s: amount=%s balance=%s via %s",
            chunk_index,
            resolution.amount,
            resolution.balance,
            resolution.method,
        )
        return resolution

    # -- resolution steps ------------------------------------------------

    def _by_delta(self, tokens: List[MoneyToken]) -> Optional[Resolution]:
        for b in self._balance_candidates(tokens):
            balance = _q(tokens[b].value)
            expected = balance - self.running_balance
            for a in self._amount_candidates(b):
                magnitude = abs(_q(tokens[a].value))
                if abs(magnitude - abs(expected)) < self.tolerance:
                    amount = -magnitude if expected < 0 else magnitude
                    return Resolution(
                        amount=amount,
                        balance=balance,
                        method="delta",
                        amount_index=a,
                        balance_index=b,
                    )
        return None

    def _by_suffix(self, tokens: List[MoneyToken]) -> Optional[Resolution]:
        for b in self._balance_candidates(tokens):
            balance = _q(tokens[b].value)
            expected = balance - self.running_balance
            if expected == 0:
                continue
            for a in self._amount_candidates(b):
                prefix = split_fused_amount(tokens[a], expected, self.profile.money)
                if prefix:
                    return Resolution(
                        amount=expected,
                        balance=balance,
                        method="suffix_recovery",
                        amount_index=a,
                        balance_index=b,
                        remnants={a: prefix},
                    )
        return None

    def _single(self, token: MoneyToken, chunk_index: int) -> Resolution:
        if not self.columns.has_balance_column:
            amount = self._face_value(token)
            balance = None
            if self.running_balance is not None:
                balance = self.running_balance + amount
            return Resolution(
                amount=amount, balance=balance, method="no_balance_column", amount_index=0
            )
        if self.running_balance is not None:
            balance = _q(token.value)
            return Resolution(
                amount=balance - self.running_balance,
                balance=balance,
                method="balance_only",
                balance_index=0,
                warning=self._warn(
                    chunk_index,
                    f"only one amount ({token.raw_text!r}); read as balance, amount from delta",
                ),
            )
        return Resolution(
            amount=self._face_value(token),
            balance=None,
            method="face_value",
            amount_index=0,
            warning=self._warn(
                chunk_index,
                f"only one amount ({token.raw_text!r}) and no running balance; no balance recorded",
            ),
        )

    def resolve(self, tokens: List[MoneyToken], chunk_index: int = 0) -> Resolution:
        """
        Resolve the amount and balance of one chunk from its money tokens
        (left to right). ``tokens`` must not be empty.
        """
        if not tokens:
            raise ValueError("resolve() needs at least one money token")

        if len(tokens) == 1 or not self.columns.has_balance_column:
            if len(tokens) == 1:
                return self._finish(self._single(tokens[0], chunk_index), chunk_index)
            index = self._index(self.columns.amount_position, len(tokens))
            if index is None:
                index = len(tokens) - 1
            return self._finish(self._single(tokens[index], chunk_index), chunk_index)

        candidates = self._balance_candidates(tokens)
        balance_index = candidates[0] if candidates else len(tokens) - 1
        amount_index = self._amount_candidates(balance_index)[0]
        amount_token = tokens[amount_index]
        balance = _q(tokens[balance_index].value)

        if self.running_balance is None:
            amount = self._face_value(amount_token)
            warning = None
            if abs(amount) > self.ceiling:
                warning = self._warn(
                    chunk_index, f"amount {amount} exceeds the plausible maximum"
                )
            return self._finish(
                Resolution(
                    amount=amount,
                    balance=balance,
                    method="convention",
                    amount_index=amount_index,
                    balance_index=balance_index,
                    warning=warning,
                ),
                chunk_index,
                tokens,
            )

        resolution = self._by_delta(tokens) or self._by_suffix(tokens)
        if resolution is not None:
            return self._finish(resolution, chunk_index, tokens)

        amount = self._face_value(amount_token)
        expected = balance - self.running_balance
        return self._finish(
            Resolution(
                amount=amount,
                balance=balance,
                method="face_value",
                amount_index=amount_index,
                balance_index=balance_index,
                warning=self._warn(
                    chunk_index,
                    f"no token matches balance movement {expected} "
                    f"(running {self.running_balance} -> {balance}); "
                    f"kept printed amount {amount}",
                ),
            ),
            chunk_index,
            tokens,
        )
