"""RPC layer: HTTP transport, retry policy, typed chain client and hex codec."""

from onchain_history.rpc.client import ChainClient, SourceFetchError
from onchain_history.rpc.provider import HttpRPCProvider, RPCError, RPCProvider
from onchain_history.rpc.retry import RetryPolicy

__all__ = [
    "ChainClient",
    "HttpRPCProvider",
    "RPCError",
    "RPCProvider",
    "RetryPolicy",
    "SourceFetchError",
]
