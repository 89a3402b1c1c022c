"""Non-fungible-token transfers classified from Transfer event logs."""

from onchain_history.config import ScanConfig
from onchain_history.core.models import TransactionType, UnifiedTransaction
from onchain_history.fetchers.base import SourceRegistry
from onchain_history.fetchers.token_metadata import TokenMetadata
from onchain_history.fetchers.transfer_logs import DecodedTransfer, TransferLogFetcher


@SourceRegistry.register
class NonFungibleTransferFetcher(TransferLogFetcher):
    """
    ``Transfer`` events whose value looks like a token ID.

    ERC-20 and ERC-721 share the event signature, so the asset kind is guessed
    from magnitude: a value below ``nft_value_threshold`` is treated as a token
    ID, anything larger as a fungible amount (left to the fungible source).
    This is best-effort: small fungible transfers are misclassified as NFTs.
    """

    name = "non_fungible"
    priority = 30

    @classmethod
    def enabled(cls, config: ScanConfig) -> bool:
        return config.include_non_fungible_transfers

    def accepts(self, transfer: DecodedTransfer) -> bool:
        return 0 < transfer.value < self.config.nft_value_threshold

    def build(self, transfer: DecodedTransfer, timestamp: int, metadata: TokenMetadata) -> UnifiedTransaction:
        return UnifiedTransaction(
            type=TransactionType.NON_FUNGIBLE_TRANSFER,
            token_id=transfer.value,
            **self._base_fields(transfer, timestamp, metadata),
        )
