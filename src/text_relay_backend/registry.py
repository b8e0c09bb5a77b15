"""
In-memory registry of requests awaiting their callback.

The registry maps a request identifier to the Continuation of the caller
waiting on it. Entries are removed only through take(), which looks up and
deletes in one locked step, so the callback path and the timeout path can
never both obtain the same entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from .continuation import Continuation
from .errors import DuplicateIdentifier


@dataclass
class PendingEntry:
    """
    A registered, not yet settled request.

    Attributes:
        id: Request identifier shared with the processor
        continuation: Handle used to resume the waiting caller
        created_at: Registration time (UTC)
    """

    id: str
    continuation: Continuation
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CorrelationRegistry:
    """
    Thread-safe mapping from request identifier to pending entry.

    Thread Safety:
        Every operation holds the registry lock, so take() is atomic with
        respect to register(), has() and size() from any thread or task.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, PendingEntry] = {}
        self._lock = Lock()

    def register(self, request_id: str, continuation: Continuation) -> PendingEntry:
        """
        Insert a new pending entry.

        Raises:
            DuplicateIdentifier: If ``request_id`` is already registered
        """
        with self._lock:
            if request_id in self._entries:
                raise DuplicateIdentifier(f"Request identifier already registered: {request_id}")
            entry = PendingEntry(id=request_id, continuation=continuation)
            self._entries[request_id] = entry
            return entry

    def take(self, request_id: str) -> Optional[Continuation]:
        """
        Remove the entry for ``request_id`` and return its continuation.

        Returns None when nothing is registered under the identifier, which
        includes entries already taken by an earlier callback or timer.
        """
        with self._lock:
            entry = self._entries.pop(request_id, None)
        return entry.continuation if entry else None

    def has(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._entries

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def drain(self) -> list[PendingEntry]:
        """Remove and return every entry without settling any of them."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        return entries
