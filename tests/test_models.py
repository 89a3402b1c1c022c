"""Tests for Pydantic data models."""

import json

import pytest
from pydantic import ValidationError

from onchain_history.core.models import ChainConfig, TransactionStatus, TransactionType, UnifiedTransaction

WALLET = "0x1111111111111111111111111111111111111111"
TOKEN = "0x3333333333333333333333333333333333333333"


def make_transaction(**overrides):
    fields = {
        "hash": "0x" + "ab" * 32,
        "type": TransactionType.NATIVE,
        "status": TransactionStatus.SUCCESS,
        "from_address": WALLET,
        "to_address": TOKEN,
        "value": 10**18,
        "block_number": 100,
        "timestamp": 1_700_000_000,
    }
    fields.update(overrides)
    return UnifiedTransaction(**fields)


def test_unified_transaction_defaults():
    """Optional fields default to an empty native record."""
    tx = make_transaction()

    assert tx.token_address is None
    assert tx.token_amount is None
    assert tx.gas_used == 0
    assert tx.input == "0x"
    assert tx.error is None
    assert not tx.is_token_transfer


def test_unified_transaction_is_immutable():
    tx = make_transaction()

    with pytest.raises(ValidationError):
        tx.value = 1


def test_negative_value_rejected():
    with pytest.raises(ValidationError):
        make_transaction(value=-1)


def test_contract_creation_has_no_recipient():
    tx = make_transaction(to_address=None, type=TransactionType.CONTRACT_CALL, input="0x6080")
    assert tx.to_address is None


@pytest.mark.parametrize(
    "tx_type",
    [
        TransactionType.FUNGIBLE_TRANSFER,
        TransactionType.NON_FUNGIBLE_TRANSFER,
        TransactionType.MULTI_TOKEN_TRANSFER,
    ],
)
def test_is_token_transfer(tx_type):
    assert make_transaction(type=tx_type, value=0, token_address=TOKEN).is_token_transfer


def test_json_dump_keeps_big_integers_exact():
    """Amounts beyond float precision are serialized as decimal strings."""
    amount = 2**200 + 1
    tx = make_transaction(type=TransactionType.FUNGIBLE_TRANSFER, value=0, token_amount=amount)

    data = json.loads(tx.model_dump_json())

    assert data["token_amount"] == str(amount)
    assert data["value"] == "0"
    assert data["type"] == "fungible-transfer"
    assert data["block_number"] == 100
    # Python-mode dumps keep ints
    assert tx.model_dump()["token_amount"] == amount


def test_enum_values():
    assert TransactionType("native") is TransactionType.NATIVE
    assert TransactionStatus("pending") is TransactionStatus.PENDING
    assert str(TransactionType.CONTRACT_CALL) == "contract-call"


def test_chain_config_explorer_links():
    chain = ChainConfig(chain_id=1, name="Ethereum", rpc_url="http://node", explorer_url="https://etherscan.io")

    assert chain.tx_url("0xabc") == "https://etherscan.io/tx/0xabc"
    assert chain.address_url(WALLET) == f"https://etherscan.io/address/{WALLET}"


def test_chain_config_without_explorer():
    chain = ChainConfig(chain_id=31337, name="Local", rpc_url="http://localhost:8545")

    assert chain.tx_url("0xabc") == ""
    assert chain.native_symbol == "ETH"
    assert chain.native_decimals == 18


def test_chain_config_rejects_non_positive_id():
    with pytest.raises(ValidationError):
        ChainConfig(chain_id=0, name="Bad", rpc_url="http://node")
