"""Node access through Ape's network manager (the ``ape`` extra)."""

import logging
import threading
from contextlib import ExitStack
from typing import Any

from ape import networks

from onchain_history.rpc.provider import RPCError
from onchain_history.rpc.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ApeRPCProvider:
    """
    Sends raw JSON-RPC calls through whichever node Ape is configured for.

    Safe to share between fetcher threads: the first call connects once.

    Chosen when ``TXHISTORY_RPC_TRANSPORT=ape``; the chain's ``rpc_url`` is then
    unused and Ape's own settings (``ape-config.yaml``, Infura or Alchemy keys)
    decide the endpoint. Nothing is opened until the first call.

    Parameters
    ----------
    network_choice : str
        Ape ecosystem/network pair such as 'base:mainnet'
    retry_policy : RetryPolicy | None
        Backoff for failed calls; one attempt when omitted

    """

    def __init__(self, network_choice: str, retry_policy: RetryPolicy | None = None) -> None:
        self.network_choice = network_choice
        self.retry_policy = retry_policy or RetryPolicy()
        self._session: ExitStack | None = None
        self._node = None
        self._connect_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._node is not None

    def connect(self) -> None:
        """Enter the Ape network context and keep a handle on its provider."""
        session = ExitStack()
        try:
            session.enter_context(networks.parse_network_choice(self.network_choice))
        except Exception as e:
            raise RPCError(f"Could not open Ape network {self.network_choice}: {e}") from e
        self._session = session
        self._node = networks.provider
        logger.debug("Connected to %s through Ape", self.network_choice)

    def disconnect(self) -> None:
        """Leave the network context; safe to call when never connected."""
        session, self._session, self._node = self._session, None, None
        if session is None:
            return
        try:
            session.close()
        except Exception as e:
            logger.debug("Ignoring error while leaving %s: %s", self.network_choice, e)

    def make_request(self, method: str, params: list[Any]) -> Any:
        """
        Execute one RPC method on the Ape provider.

        Raises
        ------
        RPCError
            When connecting fails or every attempt raises

        """
        if not self.connected:
            with self._connect_lock:
                # Checked again under the lock
                if not self.connected:
                    self.connect()

        try:
            return self.retry_policy.run(
                method,
                lambda: self._node.make_request(method, params),
                retry_on=(Exception,),
            )
        except Exception as e:
            raise RPCError(f"{method} failed on {self.network_choice}: {e}") from e

    close = disconnect

    def __enter__(self) -> "ApeRPCProvider":
        self.connect()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        self.disconnect()
