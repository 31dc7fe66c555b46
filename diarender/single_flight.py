"""
SingleFlight - Collapses concurrent work for the same key into one call.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional

from .exceptions import RenderInterrupted


class _Call:
    """An in-flight call and the outcome shared with its waiters."""

    def __init__(self):
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self.waiters = 0


class SingleFlight:
    """
    Runs at most one call per key at a time.

    The first caller for a key executes the function; callers arriving
    while it runs wait for and share its result or exception. The entry is
    dropped as soon as the call finishes, so neither results nor failures
    are reused by later callers.
    """

    def __init__(
        self,
        wait_timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize coordinator.

        Args:
            wait_timeout: Seconds a waiter blocks before giving up, None to wait
                for as long as the call runs
            logger: Optional logger instance
        """
        self.wait_timeout = wait_timeout
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._calls: Dict[Hashable, _Call] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._calls

    def do(self, key: Hashable, fn: Callable[[], Any]) -> Any:
        """
        Run fn for key, or wait for the call already running for key.

        Raises:
            RenderInterrupted: If waiting exceeded wait_timeout
            Exception: Whatever fn raised, re-raised in every caller
        """
        with self._lock:
            call = self._calls.get(key)
            if call is not None:
                call.waiters += 1
                leader = False
            else:
                call = _Call()
                self._calls[key] = call
                leader = True

        if leader:
            return self._execute(key, call, fn)
        return self._wait(key, call)

    def _execute(self, key: Hashable, call: _Call, fn: Callable[[], Any]) -> Any:
        try:
            call.result = fn()
        except BaseException as e:
            call.error = e
        finally:
            with self._lock:
                del self._calls[key]
            call.done.set()

        if call.waiters:
            self.logger.debug(f"Shared result for {key} with {call.waiters} waiters")
        if call.error is not None:
            raise call.error
        return call.result

    def _wait(self, key: Hashable, call: _Call) -> Any:
        self.logger.debug(f"Waiting on in-flight call for {key}")
        if not call.done.wait(self.wait_timeout):
            raise RenderInterrupted(f"Gave up waiting for {key} after {self.wait_timeout}s")
        if call.error is not None:
            raise call.error
        return call.result
