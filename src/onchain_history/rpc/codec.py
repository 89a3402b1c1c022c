"""Hex quantity and topic helpers for raw JSON-RPC payloads."""

from eth_utils import is_hex_address, to_checksum_address

# Transfer(address,address,uint256), shared by ERC-20 and ERC-721
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
# TransferSingle(address,address,address,uint256,uint256), ERC-1155
TRANSFER_SINGLE_TOPIC = "0xc3d58168c5ae7397731d063d5bbf3d657854427343f4c083240f7aacaa2d0f62"


def to_hex(value: int) -> str:
    """Encode a non-negative integer as a JSON-RPC quantity."""
    return hex(value)


def from_hex(value: str | int | None) -> int:
    """
    Decode a JSON-RPC quantity.

    ``None`` and the empty quantity ``0x`` decode to 0. Integers pass through so
    providers that already decode quantities can be used unchanged.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if value in ("0x", ""):
        return 0
    return int(value, 16)


def pad_address(address: str) -> str:
    """
    Pad address to 32 bytes for topic filtering.

    Parameters
    ----------
    address : str
        Ethereum address (0x prefixed)

    Returns
    -------
    str
        Padded address for use in topics

    """
    clean_addr = address.lower().replace("0x", "")
    return "0x" + clean_addr.zfill(64)


def topic_to_address(topic: str) -> str:
    """Extract the checksummed address from a 32-byte indexed topic."""
    return to_checksum_address("0x" + topic[-40:])


def data_words(data: str) -> list[int]:
    """Split ABI-encoded log data into 32-byte unsigned integer words."""
    body = data[2:] if data.startswith("0x") else data
    return [int(body[i : i + 64], 16) for i in range(0, len(body) - len(body) % 64, 64)]


def normalize_address(address: str) -> str:
    """
    Validate and checksum a wallet address.

    Raises
    ------
    ValueError
        If the value is not a 20-byte hex address

    """
    if not isinstance(address, str) or not is_hex_address(address):
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    return to_checksum_address(address)


def method_selector(input_data: str | None) -> str | None:
    """Return the 4-byte function selector of calldata, or None for plain transfers."""
    if not input_data or len(input_data) < 10:
        return None
    return input_data[:10].lower()
