"""
Single-shot suspend/resume handle for a caller awaiting one result.

A Continuation wraps an asyncio.Future bound to the loop that created it.
It moves from pending to settled exactly once; later settlement attempts
are ignored and report False.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional


class Continuation:
    """
    A caller parked until exactly one value or failure arrives.

    Settlement may be requested from any thread: calls made off the owning
    loop are handed to it with call_soon_threadsafe.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[Any] = self._loop.create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle_success(self, value: Any) -> bool:
        """Resume the caller with ``value``. Returns False if already settled."""
        return self._settle(self._future.set_result, value)

    def settle_failure(self, reason: BaseException) -> bool:
        """Resume the caller by raising ``reason``. Returns False if already settled."""
        return self._settle(self._future.set_exception, reason)

    def _settle(self, setter, payload: Any) -> bool:
        if self._future.done():
            return False
        if self._on_owner_loop():
            setter(payload)
        else:
            self._loop.call_soon_threadsafe(self._settle_if_pending, setter, payload)
        return True

    def _settle_if_pending(self, setter, payload: Any) -> None:
        if not self._future.done():
            setter(payload)

    def _on_owner_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def discard(self) -> None:
        """Mark a settled outcome as read when no caller will ever wait for it."""
        if self._future.done() and not self._future.cancelled():
            self._future.exception()

    async def wait(self) -> Any:
        """Suspend until settled; return the value or raise the failure."""
        # shield: cancelling the waiter must not mark the continuation itself as settled
        return await asyncio.shield(self._future)
