"""Tests for display formatting."""

from datetime import datetime

import pytest

from onchain_history.core.models import TransactionStatus, TransactionType, UnifiedTransaction
from onchain_history.formatting import (
    explorer_url,
    format_amount,
    format_relative_time,
    format_timestamp,
    format_transaction,
    format_transactions,
    group_transactions_by_date,
    shorten,
)

WALLET = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
TOKEN = "0x3333333333333333333333333333333333333333"
TX_HASH = "0x" + "ab" * 32

NOW = 1_714_564_800.0


def make_transaction(**overrides):
    fields = {
        "hash": TX_HASH,
        "type": TransactionType.NATIVE,
        "status": TransactionStatus.SUCCESS,
        "from_address": WALLET,
        "to_address": OTHER,
        "value": 10**18,
        "block_number": 100,
        "timestamp": int(NOW) - 120,
        "gas_used": 21_000,
        "gas_price": 10**9,
    }
    fields.update(overrides)
    return UnifiedTransaction(**fields)


@pytest.mark.parametrize(
    ("amount", "decimals", "expected"),
    [
        (123450000, 6, "123.45"),
        (10**18, 18, "1"),
        (0, 18, "0"),
        (1_500_000, 6, "1.5"),
        (1234567891234, 6, "1234567.891234"),
        (1234567891234567, 9, "1234567.891234"),
        (42, 0, "42"),
        (10**30, 0, "1000000000000000000000000000000"),
        (2**256 - 1, 18, "115792089237316195423570985008687907853269984665640564039457.584007"),
    ],
)
def test_format_amount(amount, decimals, expected):
    assert format_amount(amount, decimals) == expected


def test_format_amount_dust():
    assert format_amount(1, 18) == "<0.000001"


@pytest.mark.parametrize(
    ("age", "expected"),
    [(10, "just now"), (59, "just now"), (120, "2m ago"), (7200, "2h ago"), (172800, "2d ago"), (604799, "6d ago")],
)
def test_relative_time_buckets(age, expected):
    assert format_relative_time(int(NOW) - age, now=NOW) == expected


def test_relative_time_after_a_week_is_a_date():
    timestamp = int(NOW) - 8 * 86400

    assert format_relative_time(timestamp, now=NOW) == datetime.fromtimestamp(timestamp).strftime("%b %d, %Y")


def test_format_timestamp_is_local_time():
    assert format_timestamp(int(NOW)) == datetime.fromtimestamp(NOW).strftime("%Y-%m-%d %H:%M:%S")


def test_shorten():
    assert shorten(TX_HASH) == "0xabab…abab"
    assert shorten(WALLET) == "0x1111…1111"
    assert shorten("0x1234") == "0x1234"
    assert shorten(None) == ""


def test_explorer_url(registry):
    assert explorer_url(1, TX_HASH, registry=registry) == f"https://etherscan.io/tx/{TX_HASH}"
    assert explorer_url(999999, TX_HASH, registry=registry) == ""


def test_format_native_transaction(registry):
    tx = make_transaction()

    item = format_transaction(tx, 1, viewer=WALLET, now=NOW, registry=registry)

    assert item.transaction == tx
    assert item.short_hash == "0xabab…abab"
    assert item.short_to == "0x2222…2222"
    assert item.type_label == "Transfer"
    assert item.status.label == "Success"
    assert item.status.color == "green"
    assert item.formatted_value == "1 ETH"
    assert item.formatted_amount == "1 ETH"
    assert item.formatted_gas == "0.000021"
    assert item.relative_time == "2m ago"
    assert item.direction == "sent"
    assert item.explorer_url == f"https://etherscan.io/tx/{TX_HASH}"


def test_format_fungible_transfer(registry):
    tx = make_transaction(
        type=TransactionType.FUNGIBLE_TRANSFER,
        from_address=OTHER,
        to_address=WALLET,
        value=0,
        token_address=TOKEN,
        token_symbol="USDC",
        token_decimals=6,
        token_amount=123450000,
    )

    item = format_transaction(tx, 1, viewer=WALLET.upper(), now=NOW, registry=registry)

    assert item.type_label == "Token Transfer"
    assert item.formatted_amount == "123.45 USDC"
    assert item.formatted_value == "0 ETH"
    assert item.direction == "received"


def test_format_token_without_metadata(registry):
    tx = make_transaction(type=TransactionType.FUNGIBLE_TRANSFER, value=0, token_address=TOKEN, token_amount=500)

    assert format_transaction(tx, 1, now=NOW, registry=registry).formatted_amount == "500 tokens"


def test_format_nft_and_multi_token(registry):
    nft = make_transaction(type=TransactionType.NON_FUNGIBLE_TRANSFER, value=0, token_address=TOKEN, token_id=42)
    multi = make_transaction(
        type=TransactionType.MULTI_TOKEN_TRANSFER, value=0, token_address=TOKEN, token_id=9, token_amount=4
    )

    assert format_transaction(nft, 1, now=NOW, registry=registry).formatted_amount == "NFT #42"
    assert format_transaction(multi, 1, now=NOW, registry=registry).formatted_amount == "4 × token #9"


def test_format_failed_and_pending(registry):
    failed = format_transaction(make_transaction(status=TransactionStatus.FAILED), 1, now=NOW, registry=registry)
    pending = format_transaction(make_transaction(status=TransactionStatus.PENDING), 1, now=NOW, registry=registry)

    assert (failed.status.label, failed.status.icon) == ("Failed", "✗")
    assert pending.status.label == "Pending"


def test_unknown_chain_falls_back(registry):
    item = format_transaction(make_transaction(), 999999, now=NOW, registry=registry)

    assert item.explorer_url == ""
    assert item.formatted_value == "1 ETH"


def test_direction(registry):
    self_transfer = make_transaction(to_address=WALLET)
    unrelated = make_transaction(from_address=OTHER, to_address=TOKEN)

    assert format_transaction(self_transfer, 1, viewer=WALLET, now=NOW, registry=registry).direction == "self"
    assert format_transaction(unrelated, 1, viewer=WALLET, now=NOW, registry=registry).direction == "unknown"
    assert format_transaction(unrelated, 1, now=NOW, registry=registry).direction == "unknown"


def test_format_transactions_keeps_order(registry):
    txs = [make_transaction(hash="0x01", block_number=2), make_transaction(hash="0x02", block_number=1)]

    items = format_transactions(txs, 1, now=NOW, registry=registry)

    assert [item.transaction.hash for item in items] == ["0x01", "0x02"]


def test_group_by_date():
    noon = datetime(2024, 5, 1, 12, 0).timestamp()
    today = make_transaction(hash="0x01", timestamp=int(noon) - 3600)
    yesterday = make_transaction(hash="0x02", timestamp=int(noon) - 86400)
    older = make_transaction(hash="0x03", timestamp=int(datetime(2024, 4, 26, 12, 0).timestamp()))
    also_today = make_transaction(hash="0x04", timestamp=int(noon) - 60)

    groups = group_transactions_by_date([today, yesterday, older, also_today], now=noon)

    assert list(groups) == ["Today", "Yesterday", "Apr 26, 2024"]
    assert [tx.hash for tx in groups["Today"]] == ["0x01", "0x04"]
