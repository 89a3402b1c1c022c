"""Base source fetcher and auto-registration registry."""

from abc import ABC, abstractmethod
from typing import ClassVar

from onchain_history.config import ScanConfig
from onchain_history.core.models import UnifiedTransaction
from onchain_history.rpc.client import ChainClient


class BaseSourceFetcher(ABC):
    """
    Abstract base class for transaction sources.

    A fetcher turns raw chain data for one address and block range into
    ``UnifiedTransaction`` records. ``fetch`` must not raise on partial
    failure: a failed block, receipt or log query is logged and skipped so the
    other sources still contribute.

    Attributes
    ----------
    name : str
        Unique source identifier (must be set in subclass)
    priority : int
        Merge priority; lower values win hash collisions

    Parameters
    ----------
    config : ScanConfig
        Scan configuration

    """

    name: ClassVar[str] = ""
    priority: ClassVar[int] = 100

    def __init__(self, config: ScanConfig) -> None:
        if not self.name:
            msg = f"{self.__class__.__name__} must define 'name' attribute"
            raise ValueError(msg)
        self.config = config

    @classmethod
    @abstractmethod
    def enabled(cls, config: ScanConfig) -> bool:
        """Whether the configuration turns this source on."""

    @abstractmethod
    def fetch(
        self,
        client: ChainClient,
        address: str,
        from_block: int,
        to_block: int,
    ) -> list[UnifiedTransaction]:
        """
        Collect records touching ``address`` in ``[from_block, to_block]``.

        Parameters
        ----------
        client : ChainClient
            Client for the chain being scanned
        address : str
            Checksummed wallet address
        from_block : int
            First block (inclusive)
        to_block : int
            Last block (inclusive)

        Returns
        -------
        list[UnifiedTransaction]
            Best-effort records; possibly incomplete, never an exception

        """


class SourceRegistry:
    """
    Registry of fetcher classes, populated by the ``register`` decorator.

    The scanner asks the registry for the enabled sources in priority order,
    which is also the order the reconciler merges them in.
    """

    _fetchers: dict[str, type[BaseSourceFetcher]] = {}

    @classmethod
    def register(cls, fetcher_class: type[BaseSourceFetcher]) -> type[BaseSourceFetcher]:
        """
        Decorator to register a fetcher.

        Examples
        --------
        >>> @SourceRegistry.register
        ... class NativeFetcher(BaseSourceFetcher):
        ...     name = "native"
        ...     priority = 10

        """
        if not getattr(fetcher_class, "name", ""):
            msg = f"Fetcher {fetcher_class.__name__} must define 'name' attribute"
            raise ValueError(msg)

        cls._fetchers[fetcher_class.name] = fetcher_class
        return fetcher_class

    @classmethod
    def get_fetcher(cls, name: str) -> type[BaseSourceFetcher] | None:
        return cls._fetchers.get(name)

    @classmethod
    def get_all_fetchers(cls) -> list[type[BaseSourceFetcher]]:
        """All registered fetcher classes in priority order."""
        return sorted(cls._fetchers.values(), key=lambda fetcher_class: fetcher_class.priority)

    @classmethod
    def create_enabled(cls, config: ScanConfig) -> list[BaseSourceFetcher]:
        """Instantiate the fetchers the configuration enables, in priority order."""
        return [fetcher_class(config) for fetcher_class in cls.get_all_fetchers() if fetcher_class.enabled(config)]

    @classmethod
    def list_sources(cls) -> list[str]:
        return [fetcher_class.name for fetcher_class in cls.get_all_fetchers()]
