"""Typed chain client on top of a raw JSON-RPC provider."""

from typing import Any

from onchain_history.rpc.codec import from_hex, pad_address, to_hex
from onchain_history.rpc.provider import RPCError, RPCProvider


class SourceFetchError(Exception):
    """
    A single unit of work (one block, one receipt, one log query) failed.

    Fetchers catch this per unit and degrade to a partial result; it never
    crosses the scanner boundary.
    """


class ChainClient:
    """
    Thin typed wrapper exposing the query shapes the fetchers need.

    Every provider failure is re-raised as ``SourceFetchError`` so fetchers only
    have one error type to absorb.

    Parameters
    ----------
    provider : RPCProvider
        Raw JSON-RPC provider for one chain
    chain_id : int
        Chain the provider is connected to

    """

    def __init__(self, provider: RPCProvider, chain_id: int) -> None:
        self.provider = provider
        self.chain_id = chain_id

    def _request(self, method: str, params: list[Any]) -> Any:
        try:
            return self.provider.make_request(method, params)
        except RPCError as e:
            raise SourceFetchError(str(e)) from e
        except Exception as e:
            msg = f"{method} failed: {e}"
            raise SourceFetchError(msg) from e

    def get_block_number(self) -> int:
        """Return the current chain head."""
        return from_hex(self._request("eth_blockNumber", []))

    def get_block(self, number: int, full_transactions: bool = True) -> dict[str, Any]:
        """
        Fetch a block by number.

        Raises
        ------
        SourceFetchError
            If the request fails or the node does not know the block

        """
        block = self._request("eth_getBlockByNumber", [to_hex(number), full_transactions])
        if block is None:
            msg = f"Block {number} not found"
            raise SourceFetchError(msg)
        return block

    def get_block_timestamp(self, number: int) -> int:
        """Fetch only the header of a block and return its timestamp."""
        return from_hex(self.get_block(number, full_transactions=False)["timestamp"])

    def get_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch a transaction receipt; None while the transaction is pending."""
        return self._request("eth_getTransactionReceipt", [tx_hash])

    def get_logs(
        self,
        topics: list[str | None],
        from_block: int,
        to_block: int,
        address: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Query event logs in an inclusive block range.

        Parameters
        ----------
        topics : list[str | None]
            Topic filter; None matches any value in that slot
        from_block : int
            First block of the range
        to_block : int
            Last block of the range
        address : str | None
            Restrict to logs emitted by this contract

        """
        log_filter: dict[str, Any] = {
            "fromBlock": to_hex(from_block),
            "toBlock": to_hex(to_block),
            "topics": topics,
        }
        if address:
            log_filter["address"] = address
        return self._request("eth_getLogs", [log_filter]) or []

    def get_transfer_logs(
        self,
        event_topic: str,
        address: str,
        slot: int,
        from_block: int,
        to_block: int,
    ) -> list[dict[str, Any]]:
        """
        Query logs of ``event_topic`` whose indexed topic at ``slot`` is ``address``.

        Event-log APIs only support equality on indexed parameters, so sender
        and recipient are queried separately by the caller.
        """
        topics: list[str | None] = [event_topic] + [None] * (slot - 1) + [pad_address(address)]
        return self.get_logs(topics, from_block, to_block)

    def call(self, to: str, data: str) -> str:
        """Execute a read-only ``eth_call`` against the latest block."""
        return self._request("eth_call", [{"to": to, "data": data}, "latest"])
