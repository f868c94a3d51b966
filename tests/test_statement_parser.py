import datetime as dt
from decimal import Decimal

import pytest

from statementrecon import parse
from statementrecon.parsers.statement_parser import StatementParser
from statementrecon.parsers_core.errors import (
    MalformedInputError,
    NoTransactionsFoundError,
    ProfileConfigurationError,
)
from statementrecon.parsers_core.models import StatementDocument


def _assert_continuous(result):
    for prev, curr in zip(result.transactions, result.transactions[1:]):
        if prev.balance is None or curr.balance is None:
            continue
        assert abs(prev.balance + curr.amount - curr.balance) < Decimal("0.02"), (
            f"Balance break between {prev.description!r} and {curr.description!r}"
        )


def test_grocery_store_debit():
    """A single row whose balance falls by the amount is a debit."""
    result = parse(
        "Opening Balance 10,000.00\n01/12/2025 Grocery Store 150.00 9850.00\n",
        "statement.txt",
    )
    assert len(result.transactions) == 1
    txn = result.transactions[0]
    assert txn.date == dt.date(2025, 12, 1)
    assert txn.description == "Grocery Store"
    assert txn.amount == Decimal("-150.00")
    assert txn.balance == Decimal("9850.00")
    assert txn.transaction_type == "debit"
    assert txn.source_file == "statement.txt"
    assert result.report.valid


def test_fused_reference_number_recovered():
    result = parse(
        "Opening Balance 10,000.00\n01/12/2025 Deposit Ref123456150.00 10,150.00\n",
        "statement.txt",
    )
    txn = result.transactions[0]
    assert txn.amount == Decimal("150.00")
    assert txn.description == "Deposit Ref123456"
    assert txn.reconciliation == "suffix_recovery"


def test_opening_balance_row_dropped_but_metadata_kept():
    result = parse(
        "01/12/2025 Opening Balance 10,000.00\n"
        "02/12/2025 Grocery Store 150.00 9,850.00\n",
        "statement.txt",
    )
    assert [t.description for t in result.transactions] == ["Grocery Store"]
    assert result.metadata.opening_balance == Decimal("10000.00")
    assert result.transactions[0].amount == Decimal("-150.00")


def test_no_dates_raises_with_metadata():
    text = "Account Number: 1234567890\nOpening Balance: 100.00\nNo activity this period\n"
    with pytest.raises(NoTransactionsFoundError) as excinfo:
        parse(text, "empty.txt")
    error = excinfo.value
    assert error.code == "NO_TRANSACTIONS_FOUND"
    assert error.metadata.account_number == "1234567890"
    assert error.metadata.opening_balance == Decimal("100.00")
    assert any(w.startswith("[FORMAT_UNRECOGNIZED]") for w in error.warnings)


@pytest.mark.parametrize(
    "raw_text,source_file",
    [(None, "a.txt"), (123, "a.txt"), ("", "a.txt"), ("   \n\t", "a.txt"), ("text", None)],
)
def test_malformed_input(raw_text, source_file):
    with pytest.raises(MalformedInputError):
        parse(raw_text, source_file)


def test_generic_statement(generic_text):
    result = parse(generic_text, "generic.txt")
    meta = result.metadata
    assert meta.profile_code == "generic"
    assert meta.account_number == "1234567890"
    assert meta.client_name == "MR JOHN SMITH"
    assert meta.statement_id == "STM-2025-12"
    assert meta.transaction_count == 3
    assert meta.total_credits == Decimal("5000.00")
    assert meta.total_debits == Decimal("300.00")
    assert [t.amount for t in result.transactions] == [
        Decimal("-150.00"),
        Decimal("5000.00"),
        Decimal("-150.00"),
    ]
    assert result.transactions[2].description == "Coffee Shop Rosebank"
    assert result.report.valid
    assert result.warnings == [w for w in result.warnings if "FORMAT_UNRECOGNIZED" in w]


@pytest.mark.parametrize(
    "fixture_name,bank,amounts,closing",
    [
        (
            "capitec_text",
            "Capitec",
            ["-245.50", "1200.00", "-574.00", "-1000.00"],
            "4380.50",
        ),
        ("fnb_text", "FNB", ["-150.00", "2500.00", "-4200.00", "-30.00"], "8120.00"),
        (
            "standard_bank_text",
            "Standard Bank",
            ["-1250.00", "15000.00", "-95.00"],
            "33655.00",
        ),
        ("absa_text", "ABSA", ["-1250.00", "20000.00", "-830.45"], "30419.55"),
        ("nedbank_text", "Nedbank", ["1000.00", "-394.80"], "3105.20"),
    ],
)
def test_bank_samples(request, fixture_name, bank, amounts, closing):
    result = parse(request.getfixturevalue(fixture_name), f"{fixture_name}.pdf")
    assert result.metadata.bank_name == bank
    assert [t.amount for t in result.transactions] == [Decimal(a) for a in amounts]
    assert result.transactions[-1].balance == Decimal(closing)
    assert result.report.valid, result.report.warnings
    assert result.warnings == [], result.warnings
    _assert_continuous(result)
    for txn in result.transactions:
        assert txn.bank_name == bank
        assert txn.account == result.metadata.account_number
        assert txn.description and txn.description != "Transaction"


def test_fnb_year_from_statement_period(fnb_text):
    result = parse(fnb_text, "fnb.pdf")
    assert [t.date for t in result.transactions] == [
        dt.date(2025, 1, 2),
        dt.date(2025, 1, 5),
        dt.date(2025, 1, 7),
        dt.date(2025, 1, 9),
    ]
    assert result.transactions[2].description == "FNB App Payment To Landlord"


def test_absa_settlement_word_removed(absa_text):
    result = parse(absa_text, "absa.pdf")
    assert result.transactions[0].description == "Acb Debit Insurance"


def test_idempotent(capitec_text):
    first = parse(capitec_text, "capitec.pdf")
    second = parse(capitec_text, "capitec.pdf")
    assert first.model_dump_json() == second.model_dump_json()


def test_windows_line_endings(generic_text):
    unix = parse(generic_text, "a.txt")
    windows = parse(generic_text.replace("\n", "\r\n"), "a.txt")
    assert unix.model_dump_json() == windows.model_dump_json()


def test_mismatch_is_kept_with_warning():
    result = parse(
        "Opening Balance 1,000.00\n"
        "01/12/2025 Shop 100.00 900.00\n"
        "02/12/2025 Unknown debit -20.00 500.00\n"
        "03/12/2025 Shop 50.00 450.00\n",
        "a.txt",
    )
    assert len(result.transactions) == 3, "Mismatched rows are never dropped"
    assert result.transactions[1].reconciliation == "face_value"
    assert any(w.startswith("[RECONCILIATION_MISMATCH] chunk 1") for w in result.warnings)
    assert not result.report.valid
    assert any(w.startswith("[LEDGER_DISCONTINUITY]") for w in result.warnings)
    assert result.transactions[2].amount == Decimal("-50.00")


def test_row_without_amount_is_skipped_with_warning():
    result = parse(
        "Opening Balance 1,000.00\n"
        "01/12/2025 Shop 100.00 900.00\n"
        "02/12/2025 Reversal pending\n"
        "\n"
        "03/12/2025 Shop 50.00 850.00\n",
        "a.txt",
    )
    assert len(result.transactions) == 2
    assert any(w.startswith("[CHUNK_SKIPPED] chunk 1") for w in result.warnings)
    assert result.report.valid


def test_bad_calendar_date_skipped_but_balance_carried():
    result = parse(
        "Opening Balance 1,000.00\n"
        "01/02/2025 Shop 100.00 900.00\n"
        "31/02/2025 Shop 100.00 800.00\n"
        "01/03/2025 Shop 100.00 700.00\n",
        "a.txt",
    )
    assert len(result.transactions) == 2
    assert any(w.startswith("[DATE_UNPARSEABLE]") for w in result.warnings)
    assert result.transactions[-1].amount == Decimal("-100.00")
    assert result.transactions[-1].reconciliation == "delta"


def test_closing_balance_falls_back_to_last_row():
    result = parse(
        "Opening Balance 1,000.00\n01/12/2025 Shop 100.00 900.00\n", "a.txt"
    )
    assert result.metadata.closing_balance == Decimal("900.00")
    assert any("closing_balance taken from" in w for w in result.warnings)


def test_forced_profile(capitec_text):
    parser = StatementParser()
    result = parser.parse(capitec_text, "x.pdf", profile_code="capitec")
    assert result.metadata.profile_code == "capitec"
    with pytest.raises(ProfileConfigurationError):
        parser.parse(capitec_text, "x.pdf", profile_code="no_such_bank")


def test_parse_document_and_explicit_profiles(profiles, nedbank_text):
    parser = StatementParser(profiles=[profiles["nedbank"], profiles["generic"]])
    result = parser.parse_document(
        StatementDocument(raw_text=nedbank_text, source_file="ned.pdf")
    )
    assert result.metadata.profile_code == "nedbank"
    assert result.metadata.source_file == "ned.pdf"


FNB_WITHOUT_OPENING = (
    "First National Bank\n"
    "BBST0123456789\n"
    "MR PETER NAIDOO\n"
    "Gold Cheque Account : 62123456789\n"
    "Statement Period : 01 January 2025 to 31 January 2025\n"
    "Date Description Amount Balance Accrued Charges\n"
    "07 Jan FNB App Payment To Landlord 4,200.00 8,150.00Cr 30.00\n"
    "09 Jan #Monthly Account Fee 30.00 8,120.00Cr\n"
)


def test_fnb_fee_column_on_first_row_without_opening_balance():
    """The accrued-charges column must not become the running balance."""
    result = parse(FNB_WITHOUT_OPENING, "fnb.pdf")
    first, second = result.transactions
    assert first.reconciliation == "convention"
    assert first.amount == Decimal("-4200.00")
    assert first.balance == Decimal("8150.00")
    assert first.fee == Decimal("30.00")
    assert first.description == "FNB App Payment To Landlord"
    assert second.amount == Decimal("-30.00")
    assert second.reconciliation == "delta"
    assert second.fee is None
    assert result.metadata.opening_balance == Decimal("12350.00")
    assert result.report.valid, result.report.warnings
    assert not any("RECONCILIATION_MISMATCH" in w for w in result.warnings)


def test_fnb_fee_column_in_mismatch_fallback():
    text = FNB_WITHOUT_OPENING.replace(
        "Date Description", "Opening Balance 10,000.00 Cr\nDate Description"
    )
    result = parse(text, "fnb.pdf")
    first, second = result.transactions
    assert first.reconciliation == "face_value"
    assert first.amount == Decimal("-4200.00")
    assert first.balance == Decimal("8150.00")
    assert first.fee == Decimal("30.00")
    assert second.reconciliation == "delta", "Rows after a mismatch reconcile again"
    discontinuities = [w for w in result.warnings if w.startswith("[LEDGER_DISCONTINUITY]")]
    assert len(discontinuities) == 1, discontinuities
    assert "opening balance" in discontinuities[0]


def test_fnb_fee_kept_per_transaction(fnb_text):
    result = parse(fnb_text, "fnb.pdf")
    assert [t.fee for t in result.transactions] == [None, None, Decimal("30.00"), None]


def test_opening_balance_derived_from_first_row():
    text = (
        "Capitec Bank Limited\n"
        "MR THABO MOKOENA\n"
        "Unique Document No.: 3f2a9c1e-7b4d-4e21-9a55-0c8d2e6f1b90\n"
        "Account\n"
        "1234567890\n"
        "From Date: 01/11/2025\n"
        "To Date: 30/11/2025\n"
        "Transaction History\n"
        "Date Description Money In Money Out Balance\n"
        "03/11/2025 POS Purchase Checkers Sandton -245.50 4 754.50\n"
        "10/11/2025 Payment Received J SMITH 1 200.00 5 954.50\n"
        "* Includes VAT at 15%\n"
    )
    result = parse(text, "capitec.pdf")
    assert result.metadata.opening_balance == Decimal("5000.00")
    assert any("opening_balance derived" in w for w in result.warnings)
    assert result.transactions[1].amount == Decimal("1200.00")
    assert result.report.valid


def test_opening_balance_not_derived_after_delta():
    """A printed opening balance is never replaced."""
    result = parse(
        "Opening Balance 1,000.00\n01/12/2025 Shop 100.00 900.00\n", "a.txt"
    )
    assert result.metadata.opening_balance == Decimal("1000.00")
    assert not any("opening_balance derived" in w for w in result.warnings)


def test_year_less_dates_follow_the_given_parse_date():
    text = (
        "First National Bank\n"
        "Opening Balance 100.00 Cr\n"
        "14 Feb Card Purchase 40.00 60.00Cr\n"
    )
    parser = StatementParser(today=dt.date(2024, 6, 1))
    first = parser.parse(text, "fnb.pdf")
    second = parser.parse(text, "fnb.pdf")
    assert first.transactions[0].date == dt.date(2024, 2, 14)
    assert first.model_dump_json() == second.model_dump_json()
    assert any("2024-06-01" in w for w in first.warnings)
