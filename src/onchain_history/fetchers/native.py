"""Native-currency transactions found by walking blocks."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from eth_utils import to_checksum_address

from onchain_history.config import ScanConfig
from onchain_history.core.models import TransactionStatus, TransactionType, UnifiedTransaction
from onchain_history.fetchers.base import BaseSourceFetcher, SourceRegistry
from onchain_history.rpc.client import ChainClient, SourceFetchError
from onchain_history.rpc.codec import from_hex, method_selector

logger = logging.getLogger(__name__)


@SourceRegistry.register
class NativeTransferFetcher(BaseSourceFetcher):
    """
    Scan every block in the range for transactions sent from or to the address.

    Blocks are fetched in batches of ``page_size``; all blocks of a batch are
    requested concurrently, then the receipts of the matching transactions.
    A block that cannot be fetched is skipped without retry.
    """

    name = "native"
    priority = 10

    @classmethod
    def enabled(cls, config: ScanConfig) -> bool:
        return config.include_native_internal

    def fetch(
        self,
        client: ChainClient,
        address: str,
        from_block: int,
        to_block: int,
    ) -> list[UnifiedTransaction]:
        target = address.lower()
        page_size = self.config.page_size
        transactions: list[UnifiedTransaction] = []

        with ThreadPoolExecutor(max_workers=page_size) as executor:
            for batch_start in range(from_block, to_block + 1, page_size):
                batch_end = min(batch_start + page_size - 1, to_block)
                blocks = self._fetch_blocks(executor, client, batch_start, batch_end)

                matches = [
                    (block, tx)
                    for block in blocks
                    for tx in block.get("transactions") or []
                    if isinstance(tx, dict) and tx.get("hash") and self._involves(tx, target)
                ]
                if not matches:
                    continue

                receipts = self._fetch_receipts(executor, client, [tx["hash"] for _, tx in matches])
                for (block, tx), (receipt, receipt_failed) in zip(matches, receipts, strict=True):
                    try:
                        transactions.append(self._build(block, tx, receipt, receipt_failed))
                    except (AttributeError, KeyError, TypeError, ValueError) as e:
                        logger.warning("Skipping malformed transaction %s: %s", tx.get("hash"), e)

        logger.debug("native: %d transactions in blocks %d-%d", len(transactions), from_block, to_block)
        return transactions

    @staticmethod
    def _involves(tx: dict[str, Any], target: str) -> bool:
        sender = (tx.get("from") or "").lower()
        recipient = (tx.get("to") or "").lower()
        return target in (sender, recipient)

    @staticmethod
    def _fetch_blocks(
        executor: ThreadPoolExecutor,
        client: ChainClient,
        start: int,
        end: int,
    ) -> list[dict[str, Any]]:
        futures = [(number, executor.submit(client.get_block, number, True)) for number in range(start, end + 1)]

        blocks = []
        for number, future in futures:
            try:
                block = future.result()
            except SourceFetchError as e:
                logger.warning("Skipping block %d: %s", number, e)
                continue
            if isinstance(block, dict):
                blocks.append(block)
            else:
                logger.warning("Skipping block %d: unexpected response %r", number, block)
        return blocks

    @staticmethod
    def _fetch_receipts(
        executor: ThreadPoolExecutor,
        client: ChainClient,
        tx_hashes: list[str],
    ) -> list[tuple[dict[str, Any] | None, bool]]:
        futures = [(tx_hash, executor.submit(client.get_receipt, tx_hash)) for tx_hash in tx_hashes]

        receipts: list[tuple[dict[str, Any] | None, bool]] = []
        for tx_hash, future in futures:
            try:
                receipt = future.result()
            except SourceFetchError as e:
                logger.warning("Receipt for %s unavailable: %s", tx_hash, e)
                receipts.append((None, True))
                continue
            if receipt is None or isinstance(receipt, dict):
                receipts.append((receipt, False))
            else:
                logger.warning("Receipt for %s malformed: %r", tx_hash, receipt)
                receipts.append((None, True))
        return receipts

    @staticmethod
    def _build(
        block: dict[str, Any],
        tx: dict[str, Any],
        receipt: dict[str, Any] | None,
        receipt_failed: bool,
    ) -> UnifiedTransaction:
        error = None
        if receipt is None:
            status = TransactionStatus.PENDING
            if receipt_failed:
                error = "receipt unavailable"
        elif receipt.get("status") is None or from_hex(receipt["status"]) == 1:
            # Pre-Byzantium receipts carry no status field
            status = TransactionStatus.SUCCESS
        else:
            status = TransactionStatus.FAILED
            error = "execution reverted"

        input_data = tx.get("input") or "0x"
        gas_price = tx.get("gasPrice") or (receipt or {}).get("effectiveGasPrice")
        to_address = tx.get("to")

        return UnifiedTransaction(
            hash=tx["hash"],
            type=TransactionType.NATIVE if input_data in ("0x", "") else TransactionType.CONTRACT_CALL,
            status=status,
            from_address=to_checksum_address(tx["from"]),
            to_address=to_checksum_address(to_address) if to_address else None,
            value=from_hex(tx.get("value")),
            block_number=from_hex(block["number"]),
            timestamp=from_hex(block["timestamp"]),
            gas_used=from_hex((receipt or {}).get("gasUsed")),
            gas_price=from_hex(gas_price),
            nonce=from_hex(tx.get("nonce")),
            input=input_data,
            method_selector=method_selector(input_data),
            error=error,
        )
