"""
data_transformation.py

Sign conventions shared by every bank profile: debits negative, credits
positive, amounts quantized to cents.
"""

from decimal import Decimal

CENTS = Decimal("0.01")


def normalize_transaction_amount(amount, transaction_type: str) -> Decimal:
    """
    Normalizes a transaction amount based on its type to enforce the convention:
    - Debits are negative.
    - Credits are positive.

    Args:
        amount: The amount as printed (Decimal, str or number).
        transaction_type (str): 'debit', 'credit' or 'none'. Any other value
            (including 'none') leaves the sign untouched.

    Returns:
        Decimal: The normalized amount with the correct sign.
    """
    amount_dec = Decimal(str(amount)).quantize(CENTS)
    ttype_lower = (transaction_type or "").lower()
    if ttype_lower == "debit":
        return -abs(amount_dec)
    if ttype_lower == "credit":
        return abs(amount_dec)
    return amount_dec


def transaction_type_for(amount: Decimal) -> str:
    """'credit' for money in, 'debit' for money out."""
    return "debit" if amount < 0 else "credit"
