"""Shared machinery for sources built from token transfer event logs."""

import logging
from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, ClassVar, NamedTuple

from eth_utils import to_checksum_address

from onchain_history.core.models import TransactionStatus, UnifiedTransaction
from onchain_history.fetchers.base import BaseSourceFetcher
from onchain_history.fetchers.token_metadata import TokenMetadata, TokenMetadataResolver
from onchain_history.rpc.client import ChainClient, SourceFetchError
from onchain_history.rpc.codec import TRANSFER_TOPIC, data_words, from_hex, topic_to_address

logger = logging.getLogger(__name__)


class DecodedTransfer(NamedTuple):
    """Fields extracted from one transfer log."""

    tx_hash: str
    block_number: int
    token_address: str
    from_address: str
    to_address: str
    value: int
    token_id: int | None = None


class TransferLogFetcher(BaseSourceFetcher):
    """
    Base for sources that read an indexed transfer event.

    Logs are queried twice, once with the address as indexed sender and once
    as indexed recipient, because log filters only support equality per topic
    slot. Results are concatenated sender-first. Receipts are not fetched:
    records default to ``success`` with zero gas fields. Block timestamps come
    from one header lookup per distinct block; a record whose header cannot be
    fetched is skipped.
    """

    event_topic: ClassVar[str] = TRANSFER_TOPIC
    sender_slot: ClassVar[int] = 1
    recipient_slot: ClassVar[int] = 2

    def fetch(
        self,
        client: ChainClient,
        address: str,
        from_block: int,
        to_block: int,
    ) -> list[UnifiedTransaction]:
        logs = self._query_logs(client, address, from_block, to_block)

        transfers = []
        for log in logs:
            transfer = self._decode(log)
            if transfer is not None and self.accepts(transfer):
                transfers.append(transfer)

        if not transfers:
            return []

        timestamps = self._block_timestamps(client, sorted({t.block_number for t in transfers}))
        resolver = TokenMetadataResolver(client, enabled=self.config.resolve_token_metadata)

        transactions = []
        for transfer in transfers:
            timestamp = timestamps.get(transfer.block_number)
            if timestamp is None:
                continue
            try:
                metadata = resolver.resolve(transfer.token_address)
                transactions.append(self.build(transfer, timestamp, metadata))
            except ValueError as e:
                logger.warning("Skipping %s transfer in %s: %s", self.name, transfer.tx_hash, e)

        logger.debug("%s: %d transfers in blocks %d-%d", self.name, len(transactions), from_block, to_block)
        return transactions

    def _query_logs(
        self,
        client: ChainClient,
        address: str,
        from_block: int,
        to_block: int,
    ) -> list[dict[str, Any]]:
        logs: list[dict[str, Any]] = []
        for slot, role in ((self.sender_slot, "sender"), (self.recipient_slot, "recipient")):
            try:
                logs.extend(client.get_transfer_logs(self.event_topic, address, slot, from_block, to_block))
            except SourceFetchError as e:
                logger.warning("%s log query by %s failed for blocks %d-%d: %s", self.name, role, from_block, to_block, e)
        return logs

    def _decode(self, log: dict[str, Any]) -> DecodedTransfer | None:
        if log.get("removed"):
            return None
        try:
            return self.decode_log(log)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.debug("Undecodable %s log in %s: %s", self.name, log.get("transactionHash"), e)
            return None

    def decode_log(self, log: dict[str, Any]) -> DecodedTransfer | None:
        """
        Decode a ``Transfer(address,address,uint256)`` log.

        ERC-20 emits the value in ``data`` (3 topics); ERC-721 indexes the
        token ID as a fourth topic. Both shapes yield the same ``value`` field.
        """
        topics = log["topics"]
        if len(topics) == 4:
            value = from_hex(topics[3])
        elif len(topics) == 3:
            value = data_words(log["data"])[0]
        else:
            return None

        return DecodedTransfer(
            tx_hash=log["transactionHash"],
            block_number=from_hex(log["blockNumber"]),
            token_address=to_checksum_address(log["address"]),
            from_address=topic_to_address(topics[1]),
            to_address=topic_to_address(topics[2]),
            value=value,
        )

    def _block_timestamps(self, client: ChainClient, block_numbers: list[int]) -> dict[int, int]:
        timestamps: dict[int, int] = {}
        workers = min(self.config.page_size, len(block_numbers))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [(number, executor.submit(client.get_block_timestamp, number)) for number in block_numbers]
            for number, future in futures:
                try:
                    timestamps[number] = future.result()
                except SourceFetchError as e:
                    logger.warning("Skipping %s transfers in block %d: %s", self.name, number, e)
        return timestamps

    def _base_fields(self, transfer: DecodedTransfer, timestamp: int, metadata: TokenMetadata) -> dict[str, Any]:
        return {
            "hash": transfer.tx_hash,
            "status": TransactionStatus.SUCCESS,
            "from_address": transfer.from_address,
            "to_address": transfer.to_address,
            "value": 0,
            "token_address": transfer.token_address,
            "token_symbol": metadata.symbol,
            "block_number": transfer.block_number,
            "timestamp": timestamp,
        }

    @abstractmethod
    def accepts(self, transfer: DecodedTransfer) -> bool:
        """Whether this source keeps the decoded transfer."""

    @abstractmethod
    def build(self, transfer: DecodedTransfer, timestamp: int, metadata: TokenMetadata) -> UnifiedTransaction:
        """Turn an accepted transfer into a record."""
