import pytest


def pytest_sessionstart(session):
    """
    Called after the Session object has been created and
    before performing test collection and execution.
    """
    from statementrecon.parsers_core.autodiscover import autodiscover_profiles

    print("Populating profile registry for test session...")
    autodiscover_profiles()
    print("Profile registry populated.")


@pytest.fixture
def profiles():
    from statementrecon.parsers_core.registry import ProfileRegistry

    return {p.code: p for p in ProfileRegistry.snapshot()}


@pytest.fixture
def generic_text():
    return (
        "STATEMENT OF ACCOUNT\n"
        "MR JOHN SMITH\n"
        "Account Number: 1234-5678-90\n"
        "Statement No: STM-2025-12\n"
        "Statement Period: 01/12/2025 to 31/12/2025\n"
        "Opening Balance: 10,000.00\n"
        "Closing Balance: 14,700.00\n"
        "Date Description Amount Balance\n"
        "01/12/2025 Grocery Store 150.00 9,850.00\n"
        "03/12/2025 Salary ACME LTD 5,000.00 14,850.00\n"
        "05/12/2025 Coffee Shop\n"
        "Rosebank 150.00 14,700.00\n"
        "Page 1 of 1\n"
    )


@pytest.fixture
def capitec_text():
    return (
        "Capitec Bank Limited\n"
        "Main Account Statement\n"
        "MR THABO MOKOENA\n"
        "Unique Document No.: 3f2a9c1e-7b4d-4e21-9a55-0c8d2e6f1b90\n"
        "Account\n"
        "1234567890\n"
        "From Date: 01/11/2025\n"
        "To Date: 30/11/2025\n"
        "Opening Balance: R5 000.00\n"
        "Closing Balance: R4 380.50\n"
        "Transaction History\n"
        "Date Description Money In Money Out Balance\n"
        "01/11/2025 Opening Balance 5 000.00\n"
        "03/11/2025 POS Purchase Checkers Sandton -245.50 4 754.50\n"
        "10/11/2025 Payment Received J SMITH 1 200.00 5 954.50\n"
        "15/11/2025 Debit Order Vodacom -574.00 5 380.50\n"
        "28/11/2025 Cash Withdrawal ATM -1 000.00 4 380.50\n"
        "* Includes VAT at 15%\n"
        "Capitec Bank is an authorised financial services provider\n"
    )


@pytest.fixture
def fnb_text():
    return (
        "First National Bank\n"
        "BBST0123456789\n"
        "MR PETER NAIDOO\n"
        "Gold Cheque Account : 62123456789\n"
        "Statement Period : 01 January 2025 to 31 January 2025\n"
        "Statement Date : 01 February 2025\n"
        "Opening Balance 10,000.00 Cr\n"
        "Closing Balance 8,120.00 Cr\n"
        "Date Description Amount Balance Accrued Charges\n"
        "02 Jan POS Purchase Spar Rosebank 150.00 9,850.00Cr\n"
        "05 Jan Magtape Credit Salary 2,500.00Cr 12,350.00Cr\n"
        "Page 1 of 2\n"
        "Delivery Method EM\n"
        "Branch Number 250655\n"
        "07 Jan FNB App Payment To Landlord 4,200.00 8,150.00Cr 30.00\n"
        "09 Jan #Monthly Account Fee 30.00 8,120.00Cr\n"
    )


@pytest.fixture
def standard_bank_text():
    return (
        "The Standard Bank of South Africa Limited\n"
        "MRS ANNA VAN WYK\n"
        "Account Number: 0012 345 678\n"
        "Statement No: 17\n"
        "Statement from 01 March 2025 to 31 March 2025\n"
        "Details Service Fee Debits Credits Balance\n"
        "01 Mar BALANCE BROUGHT FORWARD 20,000.00\n"
        "04 Mar IB PAYMENT TO CITY POWER 1,250.00- 18,750.00\n"
        "12 Mar CREDIT TRANSFER ACME SALARY 15,000.00 33,750.00\n"
        "20 Mar MONTHLY MANAGEMENT FEE 95.00- 33,655.00\n"
        "VAT Summary\n"
        "Closing Balance 33,655.00\n"
    )


@pytest.fixture
def absa_text():
    return (
        "Absa Bank Limited\n"
        "Cheque Account Statement\n"
        "MR SIPHO DLAMINI\n"
        "Account 40-1234-5678\n"
        "Statement No: 88\n"
        "Statement Period: 1 Oct 2025 to 31 Oct 2025\n"
        "01/10/2025 Balance Brought Forward 12 500,00\n"
        "03/10/2025 Settlement Acb Debit Insurance 1 250,00- 11 250,00\n"
        "10/10/2025 Digital Transfer Cr Salary 20 000,00 31 250,00\n"
        "15/10/2025 Pos Purchase Woolworths 830,45- 30 419,55\n"
        "Charges Balance 30 419,55\n"
    )


@pytest.fixture
def nedbank_text():
    return (
        "Nedbank Ltd Reg No 1951/000009/06\n"
        "MR LERATO KHUMALO\n"
        "Account number: 1198765432\n"
        "Statement number: 305\n"
        "Statement date: 05/07/2025\n"
        "Statement period: 01/06/2025 – 30/06/2025\n"
        "Opening balance R 2,500.00\n"
        "Closing balance R 3,105.20\n"
        "Tran date Description Fees Debits Credits Balance\n"
        "02/06/2025 Cash deposit branch 1,000.00 3,500.00\n"
        "14/06/2025 Electricity prepaid -394.80 3,105.20\n"
    )
