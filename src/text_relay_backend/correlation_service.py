"""
Correlation of dispatched requests with their out-of-band callbacks.

This module owns the request lifecycle:
- Identifier generation and registration
- Dispatch to the external processor
- Suspension of the submitting caller until its callback or timeout
- Settlement of the caller from the callback handler
- Expiry of requests nobody answered

The CorrelationService is the single owner of the registry and of the
timers armed for each pending request. Both settlement paths go through
CorrelationRegistry.take(), so whichever of callback and timer gets there
first wins and the other observes nothing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

from .continuation import Continuation
from .errors import (
    CallbackReportedError,
    DispatchError,
    MissingIdentifier,
    RequestTimeout,
    UnknownIdentifier,
)
from .registry import CorrelationRegistry
from .utils import extract_callback_record

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 300_000

# Callback fields forwarded to the original caller
RESULT_FIELDS = ("sentiment", "explanation", "confidence", "final_result")


class Dispatcher(Protocol):
    async def dispatch(self, request_id: str, text: Any) -> None: ...

    async def aclose(self) -> None: ...


class CorrelationService:
    """
    Coordinates submissions with the callbacks that answer them.

    Attributes:
        registry: Pending requests keyed by request identifier
        dispatcher: Outbound client for the processor webhook
        timeout_ms: How long a submission waits for its callback
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        registry: Optional[CorrelationRegistry] = None,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self.dispatcher = dispatcher
        self.timeout_ms = timeout_ms
        self.registry = registry or CorrelationRegistry()
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    async def submit(self, text: Any) -> Dict[str, Any]:
        """
        Dispatch ``text`` to the processor and wait for its callback.

        This method:
        1. Generates a fresh request identifier
        2. Registers a continuation under it
        3. Arms the expiry timer
        4. Dispatches the text with the identifier embedded
        5. Suspends until the callback or the timer settles the continuation

        Returns:
            The result payload delivered by the callback

        Raises:
            DispatchError: The processor could not be reached
            RequestTimeout: No callback arrived within timeout_ms
            CallbackReportedError: The processor answered with an error
        """
        loop = asyncio.get_running_loop()
        request_id = str(uuid4())
        continuation = Continuation(loop)
        self.registry.register(request_id, continuation)
        self._timers[request_id] = loop.call_later(self.timeout_ms / 1000, self._expire, request_id)

        try:
            await self.dispatcher.dispatch(request_id, text)
        except DispatchError as exc:
            self._discard(request_id)
            continuation.discard()
            logger.error(f"Dispatch failed for request {request_id}: {exc.message}")
            raise
        except BaseException:
            self._discard(request_id)
            continuation.discard()
            raise

        logger.info(f"Request {request_id} dispatched; awaiting callback")
        try:
            return await continuation.wait()
        except asyncio.CancelledError:
            # Caller went away; nobody is left to receive the result
            self._discard(request_id)
            raise

    def handle_callback(self, body: Any) -> str:
        """
        Settle the pending request a processor callback answers.

        Args:
            body: Decoded callback body, an object or an array of objects

        Returns:
            The identifier of the settled request

        Raises:
            MissingIdentifier: The callback carries no ``db_id``
            UnknownIdentifier: No pending request matches ``db_id``
        """
        record = extract_callback_record(body)
        request_id = record.get("db_id")
        if not request_id:
            raise MissingIdentifier()

        continuation = self.registry.take(str(request_id))
        if continuation is None:
            logger.warning(f"No pending request found for requestId: {request_id}")
            raise UnknownIdentifier()
        self._cancel_timer(str(request_id))

        error = record.get("error")
        if error:
            continuation.settle_failure(CallbackReportedError(str(error)))
            logger.info(f"Request {request_id} settled with processor error: {error}")
        else:
            continuation.settle_success({key: record[key] for key in RESULT_FIELDS if key in record})
            logger.info(f"Request {request_id} settled with result")
        return str(request_id)

    def status(self, request_id: str) -> bool:
        """
        True while ``request_id`` is pending.

        Note:
            False covers never-registered, completed and expired identifiers
            alike; callers cannot tell these apart.
        """
        return self.registry.has(request_id)

    def health(self) -> Dict[str, int]:
        return {"pendingCount": self.registry.size()}

    async def aclose(self) -> None:
        """
        Stop the service: disarm timers, drop pending requests, close the dispatcher.

        Dropped callers are not resumed.
        """
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        dropped = self.registry.drain()
        logger.info(f"Correlation service stopped; dropped {len(dropped)} pending request(s)")
        await self.dispatcher.aclose()

    def _expire(self, request_id: str) -> None:
        self._timers.pop(request_id, None)
        continuation = self.registry.take(request_id)
        if continuation is None:
            return
        logger.warning(f"Request {request_id} timed out after {self.timeout_ms} ms")
        continuation.settle_failure(RequestTimeout())

    def _cancel_timer(self, request_id: str) -> None:
        timer = self._timers.pop(request_id, None)
        if timer is not None:
            timer.cancel()

    def _discard(self, request_id: str) -> None:
        self.registry.take(request_id)
        self._cancel_timer(request_id)
