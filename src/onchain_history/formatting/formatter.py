"""Display formatting for unified transactions."""

import time
from collections import OrderedDict
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import ROUND_DOWN, Decimal, localcontext
from typing import NamedTuple

from pydantic import BaseModel

from onchain_history.core.models import TransactionStatus, TransactionType, UnifiedTransaction
from onchain_history.core.registry import ChainRegistry, default_registry

MINUTE = 60
HOUR = 3600
DAY = 86400
WEEK = 604800

DATE_FORMAT = "%b %d, %Y"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

TYPE_LABELS = {
    TransactionType.NATIVE: "Transfer",
    TransactionType.FUNGIBLE_TRANSFER: "Token Transfer",
    TransactionType.NON_FUNGIBLE_TRANSFER: "NFT Transfer",
    TransactionType.MULTI_TOKEN_TRANSFER: "Multi-Token Transfer",
    TransactionType.CONTRACT_CALL: "Contract Call",
    TransactionType.INTERNAL: "Internal Transfer",
}


class StatusDisplay(NamedTuple):
    """Label, indicator and rich color for a status."""

    label: str
    icon: str
    color: str


STATUS_DISPLAY = {
    TransactionStatus.SUCCESS: StatusDisplay("Success", "✓", "green"),
    TransactionStatus.FAILED: StatusDisplay("Failed", "✗", "red"),
    TransactionStatus.PENDING: StatusDisplay("Pending", "…", "yellow"),
}


class FormattedTransaction(BaseModel):
    """
    Display-ready view of a ``UnifiedTransaction``.

    Attributes
    ----------
    transaction : UnifiedTransaction
        The untouched source record
    short_hash : str
        Shortened transaction hash
    short_from : str
        Shortened sender
    short_to : str
        Shortened recipient (empty for contract creation)
    type_label : str
        Human readable transaction type
    status : StatusDisplay
        Status label, icon and color
    formatted_value : str
        Native amount with currency symbol
    formatted_amount : str
        Token amount, token ID or native amount, whichever the record carries
    formatted_gas : str
        Fee paid (gas used * gas price) in native units
    formatted_time : str
        Absolute local time
    relative_time : str
        Age relative to now
    direction : str
        'sent', 'received', 'self' or 'unknown' relative to the viewer
    explorer_url : str
        Transaction link, empty for unknown chains

    """

    transaction: UnifiedTransaction
    short_hash: str
    short_from: str
    short_to: str
    type_label: str
    status: StatusDisplay
    formatted_value: str
    formatted_amount: str
    formatted_gas: str
    formatted_time: str
    relative_time: str
    direction: str
    explorer_url: str


def shorten(value: str | None, head: int = 6, tail: int = 4) -> str:
    """
    Shorten a hash or address to ``0x1234…abcd`` form.

    Parameters
    ----------
    value : str | None
        Hex string to shorten
    head : int
        Leading characters kept (including ``0x``)
    tail : int
        Trailing characters kept

    Returns
    -------
    str
        Shortened value; short inputs are returned unchanged, None becomes ""

    """
    if not value:
        return ""
    if len(value) <= head + tail + 1:
        return value
    return f"{value[:head]}…{value[-tail:]}"


def format_amount(amount: int, decimals: int, max_fraction_digits: int = 6) -> str:
    """
    Scale a base-unit integer by ``10**decimals`` for display.

    The fraction is truncated to ``max_fraction_digits`` digits and trailing
    zeros are removed; whole numbers have no decimal point. Arithmetic stays in
    ``Decimal`` so no precision is lost before truncation.

    Examples
    --------
    >>> format_amount(123450000, 6)
    '123.45'
    >>> format_amount(10**18, 18)
    '1'

    """
    if amount == 0:
        return "0"

    with localcontext() as ctx:
        # Enough digits for the whole integer plus the kept fraction
        ctx.prec = len(str(amount)) + max_fraction_digits + 2
        scaled = Decimal(amount).scaleb(-decimals)
        quantum = Decimal(1).scaleb(-max_fraction_digits)
        truncated = scaled.quantize(quantum, rounding=ROUND_DOWN)

    if truncated == 0:
        return f"<{quantum:f}"

    text = f"{truncated:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def type_label(tx_type: TransactionType) -> str:
    return TYPE_LABELS.get(tx_type, str(tx_type))


def status_display(status: TransactionStatus) -> StatusDisplay:
    return STATUS_DISPLAY[status]


def format_timestamp(timestamp: int) -> str:
    """Absolute local time, e.g. ``2024-05-01 13:45:10``."""
    return datetime.fromtimestamp(timestamp).strftime(DATETIME_FORMAT)


def format_date(timestamp: int) -> str:
    """Calendar date in local time, e.g. ``May 01, 2024``."""
    return datetime.fromtimestamp(timestamp).strftime(DATE_FORMAT)


def format_relative_time(timestamp: int, now: float | None = None) -> str:
    """
    Age of a timestamp in coarse buckets.

    Parameters
    ----------
    timestamp : int
        Chain time in seconds
    now : float | None
        Reference time. Uses the current time if None.

    Returns
    -------
    str
        'just now', 'Nm ago', 'Nh ago', 'Nd ago', or a calendar date after a week

    """
    now = time.time() if now is None else now
    age = now - timestamp

    if age < MINUTE:
        return "just now"
    if age < HOUR:
        return f"{int(age // MINUTE)}m ago"
    if age < DAY:
        return f"{int(age // HOUR)}h ago"
    if age < WEEK:
        return f"{int(age // DAY)}d ago"
    return format_date(timestamp)


def explorer_url(chain_id: int, tx_hash: str, registry: ChainRegistry | None = None) -> str:
    """Explorer link for a transaction; empty string for unknown chains."""
    chain = (registry or default_registry()).get_chain(chain_id)
    return chain.tx_url(tx_hash) if chain else ""


def address_url(chain_id: int, address: str, registry: ChainRegistry | None = None) -> str:
    """Explorer link for an address; empty string for unknown chains."""
    chain = (registry or default_registry()).get_chain(chain_id)
    return chain.address_url(address) if chain else ""


def format_gas_fee(tx: UnifiedTransaction, native_decimals: int = 18) -> str:
    return format_amount(tx.gas_used * tx.gas_price, native_decimals)


def format_token_amount(tx: UnifiedTransaction, native_symbol: str = "ETH", native_decimals: int = 18) -> str:
    """
    Amount the record moves, in the unit that matters for its type.

    Token amounts without known decimals are shown in base units.
    """
    symbol = tx.token_symbol or "tokens"

    if tx.type == TransactionType.NON_FUNGIBLE_TRANSFER:
        return f"{tx.token_symbol or 'NFT'} #{tx.token_id}"
    if tx.type == TransactionType.MULTI_TOKEN_TRANSFER:
        return f"{tx.token_amount or 0} × {tx.token_symbol or 'token'} #{tx.token_id}"
    if tx.type == TransactionType.FUNGIBLE_TRANSFER:
        return f"{format_amount(tx.token_amount or 0, tx.token_decimals or 0)} {symbol}"
    return f"{format_amount(tx.value, native_decimals)} {native_symbol}"


def transfer_direction(tx: UnifiedTransaction, viewer: str | None) -> str:
    if not viewer:
        return "unknown"

    viewer = viewer.lower()
    sent = tx.from_address.lower() == viewer
    received = (tx.to_address or "").lower() == viewer
    if sent and received:
        return "self"
    if sent:
        return "sent"
    if received:
        return "received"
    return "unknown"


def format_transaction(
    tx: UnifiedTransaction,
    chain_id: int,
    viewer: str | None = None,
    now: float | None = None,
    registry: ChainRegistry | None = None,
) -> FormattedTransaction:
    """
    Build the display view of one record without modifying it.

    Parameters
    ----------
    tx : UnifiedTransaction
        Record to format
    chain_id : int
        Chain the record belongs to (for currency and explorer)
    viewer : str | None
        Wallet whose perspective sets the direction
    now : float | None
        Reference time for relative ages
    registry : ChainRegistry | None
        Chain lookup. Uses the process-wide registry if None.

    Returns
    -------
    FormattedTransaction
        Display strings plus the original record

    """
    chain = (registry or default_registry()).get_chain(chain_id)
    native_symbol = chain.native_symbol if chain else "ETH"
    native_decimals = chain.native_decimals if chain else 18

    return FormattedTransaction(
        transaction=tx,
        short_hash=shorten(tx.hash),
        short_from=shorten(tx.from_address),
        short_to=shorten(tx.to_address),
        type_label=type_label(tx.type),
        status=status_display(tx.status),
        formatted_value=f"{format_amount(tx.value, native_decimals)} {native_symbol}",
        formatted_amount=format_token_amount(tx, native_symbol, native_decimals),
        formatted_gas=format_gas_fee(tx, native_decimals),
        formatted_time=format_timestamp(tx.timestamp),
        relative_time=format_relative_time(tx.timestamp, now=now),
        direction=transfer_direction(tx, viewer),
        explorer_url=chain.tx_url(tx.hash) if chain else "",
    )


def format_transactions(
    transactions: Iterable[UnifiedTransaction],
    chain_id: int,
    viewer: str | None = None,
    now: float | None = None,
    registry: ChainRegistry | None = None,
) -> list[FormattedTransaction]:
    """Batch form of ``format_transaction`` sharing one reference time."""
    now = time.time() if now is None else now
    return [format_transaction(tx, chain_id, viewer=viewer, now=now, registry=registry) for tx in transactions]


def group_transactions_by_date(
    transactions: Iterable[UnifiedTransaction],
    now: float | None = None,
) -> "OrderedDict[str, list[UnifiedTransaction]]":
    """
    Group records under 'Today', 'Yesterday' or their calendar date.

    Groups appear in first-seen order, so a newest-first input yields
    newest-first groups.
    """
    today = datetime.fromtimestamp(time.time() if now is None else now).date()
    yesterday = today - timedelta(days=1)

    groups: OrderedDict[str, list[UnifiedTransaction]] = OrderedDict()
    for tx in transactions:
        day = datetime.fromtimestamp(tx.timestamp).date()
        if day == today:
            label = "Today"
        elif day == yesterday:
            label = "Yesterday"
        else:
            label = day.strftime(DATE_FORMAT)
        groups.setdefault(label, []).append(tx)
    return groups
