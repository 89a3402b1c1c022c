"""Chain registry mapping chain IDs to connection parameters."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from onchain_history.config import ScanConfig, get_scan_config
from onchain_history.core.models import ChainConfig
from onchain_history.data import load_chain_definitions
from onchain_history.rpc.provider import HttpRPCProvider, RPCProvider
from onchain_history.rpc.retry import RetryPolicy

ProviderFactory = Callable[[ChainConfig, ScanConfig], RPCProvider]


class UnsupportedChainError(ValueError):
    """
    Raised when a chain ID has no registered connection parameters.

    Parameters
    ----------
    chain_id : int
        The unknown chain ID

    """

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Chain {chain_id} not supported")
        self.chain_id = chain_id


@dataclass(frozen=True)
class ConnectionParams:
    """
    Everything needed to talk to one chain.

    Attributes
    ----------
    chain : ChainConfig
        Static chain metadata (native currency, explorer)
    provider : RPCProvider
        Transport handle for JSON-RPC requests

    """

    chain: ChainConfig
    provider: RPCProvider

    @property
    def chain_id(self) -> int:
        return self.chain.chain_id


def default_provider_factory(chain: ChainConfig, config: ScanConfig) -> RPCProvider:
    """
    Create the transport selected by ``config.rpc_transport``.

    Parameters
    ----------
    chain : ChainConfig
        Chain to connect to
    config : ScanConfig
        Scan configuration with transport settings

    Returns
    -------
    RPCProvider
        HTTP provider, or an Ape provider when the 'ape' transport is selected

    """
    retry_policy = RetryPolicy(max_retries=config.rpc_max_retries)

    if config.rpc_transport == "ape" and chain.ape_network:
        # Ape is an optional extra
        from onchain_history.rpc.ape_provider import ApeRPCProvider

        return ApeRPCProvider(chain.ape_network, retry_policy=retry_policy)

    return HttpRPCProvider(chain.rpc_url, timeout=config.rpc_timeout, retry_policy=retry_policy)


class ChainRegistry:
    """
    Read-only lookup from chain ID to connection parameters.

    The map is built once at construction and never mutated afterwards, so it
    can be shared between threads without locking.

    Parameters
    ----------
    chains : Iterable[ChainConfig]
        Supported chains
    config : ScanConfig | None
        Scan configuration passed to the provider factory
    provider_factory : ProviderFactory | None
        Builds the transport for each chain. Defaults to ``default_provider_factory``.

    """

    def __init__(
        self,
        chains: Iterable[ChainConfig],
        config: ScanConfig | None = None,
        provider_factory: ProviderFactory | None = None,
    ) -> None:
        config = config or get_scan_config()
        factory = provider_factory or default_provider_factory

        self._chains = MappingProxyType({chain.chain_id: chain for chain in chains})
        self._connections = MappingProxyType(
            {chain_id: ConnectionParams(chain, factory(chain, config)) for chain_id, chain in self._chains.items()}
        )

    @classmethod
    def from_config_file(
        cls,
        config: ScanConfig | None = None,
        provider_factory: ProviderFactory | None = None,
    ) -> "ChainRegistry":
        """Build a registry from the bundled chains.yaml."""
        chains = [ChainConfig(**definition) for definition in load_chain_definitions()]
        return cls(chains, config=config, provider_factory=provider_factory)

    def resolve(self, chain_id: int) -> ConnectionParams:
        """
        Get connection parameters for a chain.

        Parameters
        ----------
        chain_id : int
            EIP-155 chain ID

        Returns
        -------
        ConnectionParams
            Chain metadata and RPC transport

        Raises
        ------
        UnsupportedChainError
            If the chain is not registered

        """
        connection = self._connections.get(chain_id)
        if connection is None:
            raise UnsupportedChainError(chain_id)
        return connection

    def get_chain(self, chain_id: int) -> ChainConfig | None:
        """Chain metadata, or None for unknown chains."""
        return self._chains.get(chain_id)

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def supported_chain_ids(self) -> list[int]:
        return list(self._chains.keys())

    def list_chains(self) -> list[ChainConfig]:
        return list(self._chains.values())

    def close(self) -> None:
        """Close every transport that holds network resources."""
        for connection in self._connections.values():
            close = getattr(connection.provider, "close", None)
            if close is not None:
                close()


@lru_cache(maxsize=1)
def default_registry() -> ChainRegistry:
    """Return the process-wide registry built from chains.yaml."""
    return ChainRegistry.from_config_file()
