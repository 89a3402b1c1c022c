"""Transaction scanner orchestrating sources, reconciliation and caching."""

import logging
from concurrent.futures import ThreadPoolExecutor

from onchain_history.config import ScanConfig, get_scan_config
from onchain_history.core.cache import CacheKey, HistoryCache
from onchain_history.core.models import UnifiedTransaction
from onchain_history.core.reconciler import merge
from onchain_history.core.registry import ChainRegistry, default_registry
from onchain_history.fetchers import BaseSourceFetcher, SourceRegistry
from onchain_history.rpc.client import ChainClient, SourceFetchError
from onchain_history.rpc.codec import normalize_address

logger = logging.getLogger(__name__)


class TransactionScanner:
    """
    Builds a wallet's unified history by scanning a chain directly.

    Workflow:
    1. Resolve the chain (unknown chains fail before any RPC call)
    2. Resolve the block range (explicit bounds or the last ``max_block_range`` blocks)
    3. Return a fresh cached result if there is one
    4. Run every enabled source in parallel
    5. Merge, cache and return

    Only ``UnsupportedChainError`` (and ``ValueError`` for a malformed
    address) reaches the caller. Every other failure shrinks the result.

    Parameters
    ----------
    registry : ChainRegistry | None
        Chain lookup. Uses the process-wide registry if None.
    config : ScanConfig | None
        Scan configuration. Uses the process-wide config if None.
    cache : HistoryCache | None
        Result cache. A private in-memory cache is created if None.
    fetchers : list[BaseSourceFetcher] | None
        Sources in merge priority order. Uses the enabled registered sources if None.

    """

    def __init__(
        self,
        registry: ChainRegistry | None = None,
        config: ScanConfig | None = None,
        cache: HistoryCache | None = None,
        fetchers: list[BaseSourceFetcher] | None = None,
    ) -> None:
        self.config = config or get_scan_config()
        self.registry = registry or default_registry()
        self.cache = cache or HistoryCache(
            ttl=self.config.cache_ttl_seconds,
            enabled=self.config.cache_enabled,
        )
        self.fetchers = fetchers if fetchers is not None else SourceRegistry.create_enabled(self.config)

    def get_transactions(
        self,
        address: str,
        chain_id: int,
        from_block: int | None = None,
        to_block: int | None = None,
    ) -> list[UnifiedTransaction]:
        """
        Get the unified transaction history of an address.

        Parameters
        ----------
        address : str
            Wallet address (any letter case)
        chain_id : int
            Supported chain ID
        from_block : int | None
            First block to scan. Defaults to ``to_block - max_block_range``, floored at 0.
        to_block : int | None
            Last block to scan. Defaults to the current chain head.

        Returns
        -------
        list[UnifiedTransaction]
            Deduplicated records, newest block first. Possibly incomplete when
            some RPC requests failed.

        Raises
        ------
        UnsupportedChainError
            If the chain is not registered
        ValueError
            If ``address`` is not a 20-byte hex address

        """
        connection = self.registry.resolve(chain_id)
        address = normalize_address(address)

        if not self.config.enabled:
            logger.debug("Transaction history disabled, returning no transactions")
            return []

        client = ChainClient(connection.provider, chain_id)
        block_range = self._resolve_block_range(client, from_block, to_block)
        if block_range is None:
            return []
        start, end = block_range

        cached, found = self.cache.get(address, chain_id, start, end)
        if found:
            logger.debug("Cache hit for %s on chain %d blocks %d-%d", address, chain_id, start, end)
            return cached

        logger.debug("Scanning %s on chain %d blocks %d-%d", address, chain_id, start, end)
        transactions = merge(*self._run_fetchers(client, address, start, end))

        self.cache.put(CacheKey.build(address, chain_id, start, end), transactions)
        return transactions

    def _resolve_block_range(
        self,
        client: ChainClient,
        from_block: int | None,
        to_block: int | None,
    ) -> tuple[int, int] | None:
        if to_block is None:
            try:
                to_block = client.get_block_number()
            except SourceFetchError as e:
                logger.warning("Could not fetch chain head for chain %d: %s", client.chain_id, e)
                return None

        if from_block is None:
            from_block = max(0, to_block - self.config.max_block_range)

        if from_block < 0 or from_block > to_block:
            logger.warning("Empty block range %d-%d", from_block, to_block)
            return None

        return from_block, to_block

    def _run_fetchers(
        self,
        client: ChainClient,
        address: str,
        from_block: int,
        to_block: int,
    ) -> list[list[UnifiedTransaction]]:
        if not self.fetchers:
            return []

        # Every source is joined before merging
        with ThreadPoolExecutor(max_workers=len(self.fetchers)) as executor:
            futures = [
                (fetcher, executor.submit(fetcher.fetch, client, address, from_block, to_block))
                for fetcher in self.fetchers
            ]

            results = []
            for fetcher, future in futures:
                try:
                    results.append(future.result())
                except Exception:
                    logger.exception("Source %s failed, continuing without it", fetcher.name)
                    results.append([])
        return results

    def clear_cache(self) -> None:
        """Drop every cached history (e.g. after a reorg or a user refresh)."""
        self.cache.clear()
