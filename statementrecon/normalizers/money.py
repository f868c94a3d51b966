"""
Money token grammar: finding amounts in statement text and turning them into
signed Decimals.

A profile's MoneyGrammar decides the thousands separator, the decimal
separator, the currency symbol and how direction is printed (leading or
trailing minus, or a credit/debit suffix such as "Cr"/"Dr"). The same grammar
renders Decimals back into text, so for every grammar
``normalize(render(v)) == v``.

Digits directly preceded by letters are still matched ("Ref123456150.00"
yields "123456150.00"); such fused tokens are split later by the reconciler.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import List, Optional, Tuple

from statementrecon.parsers_core.errors import MoneyFormatError
from statementrecon.parsers_core.models import MoneyGrammar, MoneyToken, SignHint

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@lru_cache(maxsize=64)
def build_money_pattern(grammar: MoneyGrammar) -> "re.Pattern":
    """Compile the regex matching one money token for ``grammar``."""
    dec = re.escape(grammar.decimal_separator)
    th = grammar.thousands_separator
    if th:
        integer = rf"\d{{1,3}}(?:{re.escape(th)}\d{{3}})+|\d+"
    else:
        integer = r"\d+"

    # A token may not start in the middle of another number
    blocked = r"\d" + dec
    if th and th != " ":
        blocked += re.escape(th)

    currency = ""
    if grammar.currency_symbol:
        currency = rf"(?:(?<![A-Za-z]){re.escape(grammar.currency_symbol)}\s?)?"

    suffixes = [s for s in (grammar.credit_suffix, grammar.debit_suffix) if s]
    suffix = ""
    if suffixes:
        alternatives = "|".join(re.escape(s) for s in suffixes)
        suffix = rf"(?:\s?(?P<suffix>(?i:{alternatives}))(?![A-Za-z]))?"

    pattern = (
        rf"(?<![{blocked}])"
        r"(?P<lead>-)?"
        + currency
        + rf"(?P<integer>{integer}){dec}(?P<fraction>\d{{2}})"
        r"(?!\d|[.,/]\d)"
        + suffix
        + r"(?P<trail>-(?!\d))?"
    )
    return re.compile(pattern)


def _token_from_match(match, grammar: MoneyGrammar, offset: int = 0) -> MoneyToken:
    integer = match.group("integer")
    if grammar.thousands_separator:
        integer = integer.replace(grammar.thousands_separator, "")
    try:
        value = Decimal(f"{integer}.{match.group('fraction')}")
    except InvalidOperation as e:
        raise MoneyFormatError(f"Not a money token: {match.group(0)!r}") from e

    sign_hint = SignHint.NONE
    if match.group("lead") or match.group("trail"):
        sign_hint = SignHint.DEBIT
    suffix = match.groupdict().get("suffix")
    if suffix:
        if grammar.debit_suffix and suffix.lower() == grammar.debit_suffix.lower():
            sign_hint = SignHint.DEBIT
        elif grammar.credit_suffix and suffix.lower() == grammar.credit_suffix.lower():
            sign_hint = SignHint.CREDIT

    if sign_hint == SignHint.DEBIT:
        value = -value

    return MoneyToken(
        raw_text=match.group(0),
        value=value,
        sign_hint=sign_hint,
        start=match.start() + offset,
        end=match.end() + offset,
    )


def find_money_tokens(text: str, grammar: MoneyGrammar) -> List[MoneyToken]:
    """Return every money token in ``text``, left to right, with offsets."""
    pattern = build_money_pattern(grammar)
    return [_token_from_match(m, grammar) for m in pattern.finditer(text)]


def normalize_money(raw: str, grammar: MoneyGrammar) -> MoneyToken:
    """
    Convert one raw money token to a MoneyToken with a signed Decimal value.

    Raises
    ------
    MoneyFormatError
        If ``raw`` is not exactly one token of the grammar.
    """
    if raw is None:
        raise MoneyFormatError("No money token given")
    stripped = raw.strip()
    match = build_money_pattern(grammar).fullmatch(stripped)
    if not match:
        raise MoneyFormatError(f"Not a money token: {raw!r}")
    return _token_from_match(match, grammar)


def first_money_value(text: str, grammar: MoneyGrammar) -> Optional[Decimal]:
    """Value of the first money token in ``text``, or None."""
    match = build_money_pattern(grammar).search(text or "")
    if not match:
        return None
    return _token_from_match(match, grammar).value


def render_money(value: Decimal, grammar: MoneyGrammar) -> str:
    """Print ``value`` the way a statement using ``grammar`` would."""
    value = Decimal(value).quantize(CENTS)
    magnitude = abs(value)
    integer, fraction = f"{magnitude:.2f}".split(".")
    if grammar.thousands_separator:
        groups = []
        while len(integer) > 3:
            groups.insert(0, integer[-3:])
            integer = integer[:-3]
        groups.insert(0, integer)
        integer = grammar.thousands_separator.join(groups)
    text = f"{integer}{grammar.decimal_separator}{fraction}"

    if value < 0:
        if grammar.debit_suffix:
            return text + grammar.debit_suffix
        if grammar.negative_style == "trailing":
            return text + "-"
        return "-" + text
    if value > 0 and grammar.credit_suffix:
        return text + grammar.credit_suffix
    return text


def token_digits(token: MoneyToken, grammar: MoneyGrammar) -> Tuple[str, str]:
    """Integer digits (separators removed) and fraction digits of a token."""
    match = build_money_pattern(grammar).fullmatch(token.raw_text.strip())
    if not match:
        raise MoneyFormatError(f"Not a money token: {token.raw_text!r}")
    integer = match.group("integer")
    if grammar.thousands_separator:
        integer = integer.replace(grammar.thousands_separator, "")
    return integer, match.group("fraction")


def split_fused_amount(
    token: MoneyToken, expected: Decimal, grammar: MoneyGrammar
) -> Optional[str]:
    """
    If ``token`` is a reference number fused onto ``expected`` (e.g.
    "123456150.00" with expected 150.00), return the raw prefix ("123456").
    Returns None when the expected amount is not a proper suffix.
    """
    integer, fraction = token_digits(token, grammar)
    exp_integer, exp_fraction = f"{abs(expected):.2f}".split(".")
    if fraction != exp_fraction:
        return None
    if len(integer) <= len(exp_integer) or not integer.endswith(exp_integer):
        return None

    prefix_digits = len(integer) - len(exp_integer)
    seen = 0
    raw = token.raw_text
    for i, ch in enumerate(raw):
        if ch.isdigit():
            if seen == prefix_digits:
                prefix = raw[:i]
                if grammar.thousands_separator:
                    prefix = prefix.rstrip(grammar.thousands_separator)
                # Sign and currency markers belong to the amount, not the reference
                prefix = prefix.lstrip("-")
                if grammar.currency_symbol and prefix.startswith(grammar.currency_symbol):
                    prefix = prefix[len(grammar.currency_symbol):].lstrip()
                return prefix or None
            seen += 1
    return None
