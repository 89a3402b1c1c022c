"""On-chain transaction history aggregator for EVM chains."""

from onchain_history.config import ScanConfig, get_scan_config
from onchain_history.core import (
    ChainRegistry,
    HistoryCache,
    TransactionScanner,
    TransactionStatus,
    TransactionType,
    UnifiedTransaction,
    UnsupportedChainError,
)

__version__ = "0.1.0"

__all__ = [
    "ChainRegistry",
    "HistoryCache",
    "ScanConfig",
    "TransactionScanner",
    "TransactionStatus",
    "TransactionType",
    "UnifiedTransaction",
    "UnsupportedChainError",
    "get_scan_config",
]
