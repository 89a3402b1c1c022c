"""Tests for filtering and exporting histories."""

import csv
import io
import json

import pytest

from onchain_history.core.models import TransactionStatus, TransactionType, UnifiedTransaction
from onchain_history.formatting import Direction, ExportFormat, export_transactions, filter_transactions
from onchain_history.formatting.export import CSV_COLUMNS

WALLET = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
TOKEN = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def history():
    return [
        UnifiedTransaction(
            hash="0x03",
            type=TransactionType.FUNGIBLE_TRANSFER,
            status=TransactionStatus.SUCCESS,
            from_address=OTHER,
            to_address=WALLET,
            token_address=TOKEN,
            token_symbol="USDC",
            token_decimals=6,
            token_amount=2**128,
            block_number=30,
            timestamp=1_700_000_360,
        ),
        UnifiedTransaction(
            hash="0x02",
            type=TransactionType.NATIVE,
            status=TransactionStatus.FAILED,
            from_address=WALLET,
            to_address=OTHER,
            value=10**18,
            block_number=20,
            timestamp=1_700_000_240,
            error="execution reverted",
        ),
        UnifiedTransaction(
            hash="0x01",
            type=TransactionType.CONTRACT_CALL,
            status=TransactionStatus.SUCCESS,
            from_address=WALLET,
            to_address=None,
            input="0x6080",
            block_number=10,
            timestamp=1_700_000_120,
        ),
    ]


def hashes(txs):
    return [tx.hash for tx in txs]


def test_filter_by_type(history):
    assert hashes(filter_transactions(history, tx_type=TransactionType.NATIVE)) == ["0x02"]


def test_filter_by_status(history):
    assert hashes(filter_transactions(history, status=TransactionStatus.SUCCESS)) == ["0x03", "0x01"]


def test_filter_by_direction(history):
    assert hashes(filter_transactions(history, direction=Direction.SENT, address=WALLET)) == ["0x02", "0x01"]
    assert hashes(filter_transactions(history, direction=Direction.RECEIVED, address=WALLET.upper())) == ["0x03"]


def test_filter_combined(history):
    result = filter_transactions(
        history,
        tx_type=TransactionType.CONTRACT_CALL,
        status=TransactionStatus.SUCCESS,
        direction=Direction.SENT,
        address=WALLET,
    )
    assert hashes(result) == ["0x01"]


def test_filter_without_criteria_keeps_everything(history):
    assert filter_transactions(history) == history


def test_direction_requires_address(history):
    with pytest.raises(ValueError, match="needs an address"):
        filter_transactions(history, direction=Direction.SENT)


def test_export_json(history):
    rows = json.loads(export_transactions(history, ExportFormat.JSON))

    assert [row["hash"] for row in rows] == ["0x03", "0x02", "0x01"]
    assert rows[0]["token_amount"] == str(2**128)
    assert rows[0]["type"] == "fungible-transfer"
    assert rows[1]["value"] == str(10**18)
    assert rows[2]["to_address"] is None


def test_export_csv(history):
    document = export_transactions(history, ExportFormat.CSV)

    lines = document.splitlines()
    assert lines[0] == ",".join(CSV_COLUMNS)

    rows = list(csv.DictReader(io.StringIO(document)))
    assert len(rows) == 3
    assert rows[0]["token_amount"] == str(2**128)
    assert rows[0]["token_symbol"] == "USDC"
    assert rows[1]["status"] == "failed"
    assert rows[1]["error"] == "execution reverted"
    assert rows[2]["to_address"] == ""
    assert rows[2]["token_amount"] == ""


def test_export_empty():
    assert json.loads(export_transactions([], ExportFormat.JSON)) == []
    assert export_transactions([]) == ",".join(CSV_COLUMNS) + "\n"
