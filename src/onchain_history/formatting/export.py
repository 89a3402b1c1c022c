"""Filtering and export of transaction histories."""

import csv
import io
import json
from collections.abc import Iterable
from enum import StrEnum

from onchain_history.core.models import TransactionStatus, TransactionType, UnifiedTransaction

CSV_COLUMNS = [
    "hash",
    "type",
    "status",
    "block_number",
    "timestamp",
    "from_address",
    "to_address",
    "value",
    "token_address",
    "token_symbol",
    "token_decimals",
    "token_amount",
    "token_id",
    "gas_used",
    "gas_price",
    "nonce",
    "method_selector",
    "error",
]


class Direction(StrEnum):
    """Direction filter relative to a wallet."""

    ALL = "all"
    SENT = "sent"
    RECEIVED = "received"


class ExportFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


def filter_transactions(
    transactions: Iterable[UnifiedTransaction],
    tx_type: TransactionType | None = None,
    status: TransactionStatus | None = None,
    direction: Direction = Direction.ALL,
    address: str | None = None,
) -> list[UnifiedTransaction]:
    """
    Keep the records matching every given criterion.

    Parameters
    ----------
    transactions : Iterable[UnifiedTransaction]
        Records to filter (order is preserved)
    tx_type : TransactionType | None
        Keep only this type
    status : TransactionStatus | None
        Keep only this status
    direction : Direction
        'sent' or 'received' relative to ``address``; 'all' disables the check
    address : str | None
        Wallet the direction refers to. Required unless direction is 'all'.

    Returns
    -------
    list[UnifiedTransaction]
        Matching records

    Raises
    ------
    ValueError
        If a direction is requested without an address

    """
    if direction != Direction.ALL and not address:
        msg = f"Direction '{direction}' needs an address"
        raise ValueError(msg)

    wallet = address.lower() if address else ""
    result = []
    for tx in transactions:
        if tx_type is not None and tx.type != tx_type:
            continue
        if status is not None and tx.status != status:
            continue
        if direction == Direction.SENT and tx.from_address.lower() != wallet:
            continue
        if direction == Direction.RECEIVED and (tx.to_address or "").lower() != wallet:
            continue
        result.append(tx)
    return result


def export_transactions(
    transactions: Iterable[UnifiedTransaction],
    fmt: ExportFormat = ExportFormat.CSV,
) -> str:
    """
    Serialize records for download.

    Integers are written as exact decimal strings in both formats.

    Parameters
    ----------
    transactions : Iterable[UnifiedTransaction]
        Records to export
    fmt : ExportFormat
        'csv' or 'json'

    Returns
    -------
    str
        The serialized document

    """
    rows = [tx.model_dump(mode="json") for tx in transactions]

    if fmt == ExportFormat.JSON:
        return json.dumps(rows, indent=2)

    stream = io.StringIO()
    writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({column: "" if row.get(column) is None else row[column] for column in CSV_COLUMNS})
    return stream.getvalue()
