"""Transport-level retry policy for RPC providers."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Exponential backoff schedule shared by the RPC transports.

    A failed unit of scan work is skipped rather than retried, so the default
    policy makes exactly one attempt. ``TXHISTORY_RPC_MAX_RETRIES`` raises it.

    Parameters
    ----------
    max_retries : int
        Retries after the first attempt
    base_delay : float
        Seconds to wait before the first retry
    max_delay : float
        Upper bound for any single wait
    backoff : float
        Multiplier applied to the wait after each retry
    sleep : Callable[[float], None]
        Wait function, injectable for tests

    """

    def __init__(
        self,
        max_retries: int = 0,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        backoff: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff = backoff
        self.sleep = sleep

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        """Wait before retry number ``retry`` (0-indexed), capped at ``max_delay``."""
        return min(self.base_delay * self.backoff**retry, self.max_delay)

    def run(
        self,
        method: str,
        send: Callable[[], T],
        retry_on: tuple[type[Exception], ...],
    ) -> T:
        """
        Call ``send`` until it succeeds or the retries are used up.

        Parameters
        ----------
        method : str
            RPC method name, for log messages
        send : Callable[[], T]
            Performs one attempt
        retry_on : tuple[type[Exception], ...]
            Exceptions that trigger a retry; anything else propagates at once

        Returns
        -------
        T
            Result of the first successful attempt

        Raises
        ------
        Exception
            The last exception once every attempt failed

        """
        retry = 0
        while True:
            try:
                return send()
            except retry_on as e:
                if retry >= self.max_retries:
                    raise
                delay = self.delay_for(retry)
                retry += 1
                logger.debug("%s failed (%s), retry %d/%d in %.1fs", method, e, retry, self.max_retries, delay)
                self.sleep(delay)
