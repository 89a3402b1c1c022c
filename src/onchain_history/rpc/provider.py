"""JSON-RPC transport over HTTP."""

import itertools
import logging
from typing import Any, Protocol

import httpx

from onchain_history.rpc.retry import RetryPolicy

logger = logging.getLogger(__name__)


class RPCError(Exception):
    """A node call failed; ``code`` carries the JSON-RPC error code when there was one."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RPCProvider(Protocol):
    """Anything that can execute a raw JSON-RPC method call."""

    def make_request(self, method: str, params: list[Any]) -> Any:
        """Execute ``method`` with ``params`` and return the ``result`` member."""
        ...


class HttpRPCProvider:
    """
    JSON-RPC 2.0 provider talking to a node over HTTP.

    The underlying ``httpx.Client`` is thread-safe, so a single provider is
    shared by every fetcher thread working on the same chain.

    Parameters
    ----------
    url : str
        RPC endpoint URL
    timeout : float
        Request timeout in seconds
    retry_policy : RetryPolicy | None
        Backoff for failed calls; one attempt when omitted
    transport : httpx.BaseTransport | None
        Custom transport (used by tests to mock the node)

    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.retry_policy = retry_policy or RetryPolicy()
        self.client = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def make_request(self, method: str, params: list[Any]) -> Any:
        """
        POST one JSON-RPC 2.0 call and return its ``result`` member.

        Transport failures, non-2xx statuses, undecodable bodies and ``error``
        objects all surface as ``RPCError``; the retry policy decides whether
        another attempt is made.
        """
        return self.retry_policy.run(method, lambda: self._send(method, params), retry_on=(RPCError,))

    def _send(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            msg = f"{method} timed out: {e}"
            raise RPCError(msg) from e
        except httpx.HTTPStatusError as e:
            msg = f"{method} failed with HTTP {e.response.status_code}"
            raise RPCError(msg) from e
        except httpx.HTTPError as e:
            msg = f"{method} request failed: {e}"
            raise RPCError(msg) from e
        except ValueError as e:
            msg = f"{method} returned invalid JSON: {e}"
            raise RPCError(msg) from e

        error = body.get("error")
        if error:
            msg = f"{method}: {error.get('message', 'unknown error')}"
            raise RPCError(msg, code=error.get("code"))

        return body.get("result")

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "HttpRPCProvider":
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        self.close()
