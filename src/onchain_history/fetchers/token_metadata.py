"""Best-effort token symbol and decimals lookup via eth_call."""

import logging
import threading
from typing import NamedTuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from onchain_history.rpc.client import ChainClient, SourceFetchError

logger = logging.getLogger(__name__)

SYMBOL_SELECTOR = "0x95d89b41"  # symbol()
DECIMALS_SELECTOR = "0x313ce567"  # decimals()


class TokenMetadata(NamedTuple):
    symbol: str | None = None
    decimals: int | None = None


class TokenMetadataResolver:
    """
    Resolve and memoize token metadata for one fetch.

    Not every contract implements the optional ERC-20 metadata functions, so
    each lookup degrades to None instead of failing the transfer record.

    Parameters
    ----------
    client : ChainClient
        Client for the chain the tokens live on
    enabled : bool
        When False every lookup returns empty metadata without RPC calls

    """

    def __init__(self, client: ChainClient, enabled: bool = True) -> None:
        self.client = client
        self.enabled = enabled
        self._cache: dict[str, TokenMetadata] = {}
        self._lock = threading.Lock()

    def resolve(self, token_address: str) -> TokenMetadata:
        if not self.enabled:
            return TokenMetadata()

        key = token_address.lower()
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        metadata = TokenMetadata(
            symbol=self._read_symbol(token_address),
            decimals=self._read_decimals(token_address),
        )
        with self._lock:
            self._cache[key] = metadata
        return metadata

    def _call(self, token_address: str, selector: str) -> bytes | None:
        try:
            result = self.client.call(token_address, selector)
        except SourceFetchError as e:
            logger.debug("eth_call %s on %s failed: %s", selector, token_address, e)
            return None
        if not result or result == "0x":
            return None
        return bytes.fromhex(result[2:] if result.startswith("0x") else result)

    def _read_symbol(self, token_address: str) -> str | None:
        raw = self._call(token_address, SYMBOL_SELECTOR)
        if raw is None:
            return None

        try:
            (symbol,) = decode(["string"], raw)
            return symbol or None
        except (DecodingError, UnicodeDecodeError, ValueError):
            pass

        # Older tokens (e.g. MKR) return bytes32 instead of string
        if len(raw) == 32:
            try:
                return raw.rstrip(b"\x00").decode("utf-8") or None
            except UnicodeDecodeError:
                return None
        return None

    def _read_decimals(self, token_address: str) -> int | None:
        raw = self._call(token_address, DECIMALS_SELECTOR)
        if raw is None or len(raw) < 32:
            return None
        decimals = int.from_bytes(raw[:32], "big")
        # uint8 by standard; anything larger is not a decimals value
        return decimals if decimals <= 255 else None
