import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Union

import pandas as pd

from statementrecon.parsers.statement_parser import StatementParser
from statementrecon.parsers_core.errors import StatementParseError
from statementrecon.parsers_core.models import ParseResult, StatementDocument

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y"

COLUMNS = [
    "date",
    "description",
    "amount",
    "balance",
    "fee",
    "account",
    "client_name",
    "bank_name",
    "source_file",
    "transaction_hash",
]


def compute_transaction_id(row):
    """
    Compute a deterministic transaction_id hash from key fields.
    Uses date, amount, description, and account if present.
    """
    key_fields = [
        str(row.get("date", "")),
        str(row.get("amount", "")),
        str(row.get("description", "")),
        str(row.get("account", "")),
    ]
    key_str = "|".join(key_fields)
    return hashlib.sha256(key_str.encode("utf-8")).hexdigest()


def result_to_dataframe(result: ParseResult) -> pd.DataFrame:
    """
    Flatten a ParseResult into one row per transaction with the downstream
    column contract: date as dd/mm/yyyy, signed 2dp amounts, and a
    transaction_hash for de-duplication.
    """
    rows = []
    for txn in result.transactions:
        rows.append(
            {
                "date": txn.date.strftime(DATE_FORMAT),
                "description": txn.description,
                "amount": txn.amount,
                "balance": txn.balance,
                "fee": txn.fee,
                "account": txn.account,
                "client_name": txn.client_name,
                "bank_name": txn.bank_name,
                "source_file": txn.source_file,
            }
        )
    df = pd.DataFrame(rows, columns=COLUMNS[:-1])
    if df.empty:
        df["transaction_hash"] = pd.Series(dtype=str)
        return df
    df["transaction_hash"] = df.apply(compute_transaction_id, axis=1)
    return df


def parse_many(
    documents: Iterable[StatementDocument],
    max_workers: int = 4,
    parser: Optional[StatementParser] = None,
) -> List[Union[ParseResult, StatementParseError]]:
    """
    Parse independent statements concurrently.

    Each statement is parsed sequentially on its own worker; results come back
    in input order. A document that fails with a StatementParseError yields the
    error object in its slot instead of aborting the batch.
    """
    documents = list(documents)
    parser = parser or StatementParser()

    def _run(document: StatementDocument):
        try:
            return parser.parse_document(document)
        except StatementParseError as e:
            logger.warning("Skipping %s: %s", document.source_file, e)
            return e

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(_run, documents))


def parse_many_to_dataframe(
    documents: Iterable[StatementDocument], max_workers: int = 4
) -> pd.DataFrame:
    """All transactions of a batch in one DataFrame; failed documents are logged and left out."""
    frames = [
        result_to_dataframe(result)
        for result in parse_many(documents, max_workers=max_workers)
        if isinstance(result, ParseResult)
    ]
    if not frames:
        return pd.DataFrame(columns=COLUMNS)
    return pd.concat(frames, ignore_index=True)
