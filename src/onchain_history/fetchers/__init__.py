"""Transaction sources. Importing this package registers every fetcher."""

from onchain_history.fetchers.base import BaseSourceFetcher, SourceRegistry
from onchain_history.fetchers.fungible import FungibleTransferFetcher
from onchain_history.fetchers.multi_token import MultiTokenTransferFetcher
from onchain_history.fetchers.native import NativeTransferFetcher
from onchain_history.fetchers.non_fungible import NonFungibleTransferFetcher

__all__ = [
    "BaseSourceFetcher",
    "FungibleTransferFetcher",
    "MultiTokenTransferFetcher",
    "NativeTransferFetcher",
    "NonFungibleTransferFetcher",
    "SourceRegistry",
]
