"""ERC-1155 single transfers from TransferSingle event logs."""

from typing import Any

from eth_utils import to_checksum_address

from onchain_history.config import ScanConfig
from onchain_history.core.models import TransactionType, UnifiedTransaction
from onchain_history.fetchers.base import SourceRegistry
from onchain_history.fetchers.token_metadata import TokenMetadata
from onchain_history.fetchers.transfer_logs import DecodedTransfer, TransferLogFetcher
from onchain_history.rpc.codec import TRANSFER_SINGLE_TOPIC, data_words, from_hex, topic_to_address


@SourceRegistry.register
class MultiTokenTransferFetcher(TransferLogFetcher):
    """
    ``TransferSingle`` events sent from or to the address.

    The operator occupies the first indexed slot, so sender and recipient sit
    in topics 2 and 3. Batch transfers are not decoded.
    """

    name = "multi_token"
    priority = 40
    event_topic = TRANSFER_SINGLE_TOPIC
    sender_slot = 2
    recipient_slot = 3

    @classmethod
    def enabled(cls, config: ScanConfig) -> bool:
        return config.include_multi_token_transfers

    def decode_log(self, log: dict[str, Any]) -> DecodedTransfer | None:
        topics = log["topics"]
        if len(topics) != 4:
            return None

        token_id, amount = data_words(log["data"])[:2]
        return DecodedTransfer(
            tx_hash=log["transactionHash"],
            block_number=from_hex(log["blockNumber"]),
            token_address=to_checksum_address(log["address"]),
            from_address=topic_to_address(topics[2]),
            to_address=topic_to_address(topics[3]),
            value=amount,
            token_id=token_id,
        )

    def accepts(self, transfer: DecodedTransfer) -> bool:
        return transfer.value > 0

    def build(self, transfer: DecodedTransfer, timestamp: int, metadata: TokenMetadata) -> UnifiedTransaction:
        return UnifiedTransaction(
            type=TransactionType.MULTI_TOKEN_TRANSFER,
            token_id=transfer.token_id,
            token_amount=transfer.value,
            **self._base_fields(transfer, timestamp, metadata),
        )
