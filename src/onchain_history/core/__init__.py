"""Core functionality including models, registry, reconciler, cache and scanner."""

from onchain_history.core.cache import CacheEntry, CacheKey, HistoryCache, InMemoryCacheStore
from onchain_history.core.models import (
    ChainConfig,
    TransactionStatus,
    TransactionType,
    UnifiedTransaction,
)
from onchain_history.core.reconciler import merge
from onchain_history.core.registry import ChainRegistry, ConnectionParams, UnsupportedChainError
from onchain_history.core.scanner import TransactionScanner

__all__ = [
    "CacheEntry",
    "CacheKey",
    "ChainConfig",
    "ChainRegistry",
    "ConnectionParams",
    "HistoryCache",
    "InMemoryCacheStore",
    "TransactionScanner",
    "TransactionStatus",
    "TransactionType",
    "UnifiedTransaction",
    "UnsupportedChainError",
    "merge",
]
