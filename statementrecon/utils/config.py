# statementrecon/utils/config.py
import os
from decimal import Decimal

from dotenv import load_dotenv

# Thresholds below may be overridden from a .env file
load_dotenv()

# Define the base directory (root of the package)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Common configuration paths
COMMON_CONFIG = {
    "profile_dir": os.getenv(
        "STATEMENTRECON_PROFILE_DIR", os.path.join(BASE_DIR, "profiles")
    ),
    "generic_profile": "generic",
}

# Reconciliation thresholds and sentinels shared by every bank profile
RECONCILIATION_CONFIG = {
    # Absorbs rounding in printed balances (currency units)
    "tolerance": Decimal(os.getenv("STATEMENTRECON_TOLERANCE", "0.02")),
    # Anything above this is treated as a fused reference number, not an amount
    "max_plausible_amount": Decimal(
        os.getenv("STATEMENTRECON_MAX_AMOUNT", "10000000")
    ),
    "placeholder_description": "Transaction",
}

# Metadata fields that produce a warning when no anchor matches
REQUIRED_METADATA_FIELDS = [
    "account_number",
    "client_name",
    "statement_id",
    "opening_balance",
    "closing_balance",
]

# Supplemental metadata fields; missing values are silent
OPTIONAL_METADATA_FIELDS = [
    "statement_date",
    "statement_period_start",
    "statement_period_end",
]

# Month names as printed by the supported banks (English and Afrikaans)
MONTHS_MAP = {
    "jan": 1, "january": 1, "januarie": 1,
    "feb": 2, "february": 2, "februarie": 2,
    "mar": 3, "march": 3, "maart": 3, "mrt": 3,
    "apr": 4, "april": 4,
    "may": 5, "mei": 5,
    "jun": 6, "june": 6, "junie": 6,
    "jul": 7, "july": 7, "julie": 7,
    "aug": 8, "august": 8, "augustus": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10, "okt": 10, "oktober": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12, "des": 12, "desember": 12,
}
