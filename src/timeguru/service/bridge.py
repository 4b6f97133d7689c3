# SPDX-License-Identifier: MIT

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

from timeguru.errors import BridgeError, MutationInFlight

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncBridge:
    """
    Runs an asyncio event loop on a daemon thread and lets synchronous code
    hand it coroutines.

    ``submit`` returns a one-shot future the caller may wait on. ``call``
    blocks until the coroutine finishes and re-raises its exception in the
    calling thread. Only one blocking ``call`` may be outstanding at a time.
    ``close`` cancels whatever is still running, so a blocked ``call`` raises
    ``BridgeError`` instead of waiting forever.
    """

    def __init__(self, name: str = "timeguru-network") -> None:
        self._loop = asyncio.new_event_loop()
        self._call_lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(
            target=self._run_loop, name=name, daemon=True
        )
        self._started = threading.Event()
        self._thread.start()
        self._started.wait()

    def __enter__(self) -> "AsyncBridge":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        try:
            self._loop.run_forever()
        finally:
            self.__cancel_pending()
            self._loop.close()

    def __cancel_pending(self) -> None:
        pending = asyncio.all_tasks(self._loop)
        if not pending:
            return
        logger.debug("cancelling %d pending task(s)", len(pending))
        for task in pending:
            task.cancel()
        self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def in_loop_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def submit(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        if self._closed:
            coro.close()
            raise BridgeError("The network loop has been shut down")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def call(self, coro: Coroutine[Any, Any, T]) -> T:
        if self.in_loop_thread():
            coro.close()
            raise BridgeError("Blocking call issued from the network loop thread")
        if not self._call_lock.acquire(blocking=False):
            coro.close()
            raise MutationInFlight("Another operation is still in progress")
        try:
            return self.submit(coro).result()
        except concurrent.futures.CancelledError as e:
            raise BridgeError("The network loop was shut down during the call") from e
        finally:
            self._call_lock.release()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        logger.debug("network loop stopped")
