"""Fungible-token transfers from Transfer event logs."""

from onchain_history.config import ScanConfig
from onchain_history.core.models import TransactionType, UnifiedTransaction
from onchain_history.fetchers.base import SourceRegistry
from onchain_history.fetchers.token_metadata import TokenMetadata
from onchain_history.fetchers.transfer_logs import DecodedTransfer, TransferLogFetcher


@SourceRegistry.register
class FungibleTransferFetcher(TransferLogFetcher):
    """
    Every non-zero ``Transfer`` event sent from or to the address.

    The event signature is shared with ERC-721, so NFT transfers show up here
    as well; the reconciler keeps this record over the non-fungible one when
    both carry the same hash.
    """

    name = "fungible"
    priority = 20

    @classmethod
    def enabled(cls, config: ScanConfig) -> bool:
        return config.include_fungible_transfers

    def accepts(self, transfer: DecodedTransfer) -> bool:
        return transfer.value > 0

    def build(self, transfer: DecodedTransfer, timestamp: int, metadata: TokenMetadata) -> UnifiedTransaction:
        return UnifiedTransaction(
            type=TransactionType.FUNGIBLE_TRANSFER,
            token_decimals=metadata.decimals,
            token_amount=transfer.value,
            **self._base_fields(transfer, timestamp, metadata),
        )
