"""
FIFO hand-off between transaction watchers and the relay loop.

Watchers put candidate transactions at the tail; the relay loop takes the head,
processes it to a terminal outcome and then marks it done. A transaction hash
stays a member from put() until task_done(), so duplicate observations of a
queued or in-flight transaction are ignored.

Producer and consumer run as tasks on the same event loop and no method awaits
while mutating state, so no lock is needed.
"""

import asyncio
import logging
from collections import OrderedDict, deque

from .models import PendingEntry

logger = logging.getLogger(__name__)


class RelayQueue:
    """De-duplicating FIFO queue of PendingEntry, bounded by max_pending."""

    def __init__(self, max_pending: int = 10_000) -> None:
        self.max_pending = max_pending
        self._entries: deque[PendingEntry] = deque()
        # Every hash currently queued or in flight
        self._members: OrderedDict[str, None] = OrderedDict()
        self._not_empty = asyncio.Event()
        self.in_flight: PendingEntry | None = None
        # Observations dropped because the queue was full
        self.rejected = 0

    def put(self, tx_hash: str, sequence: str | None = None) -> PendingEntry | None:
        """
        Append a candidate transaction unless it is already queued or in flight.

        When the queue is full the new observation is rejected and counted in
        `rejected`; admitted entries keep their order.

        Returns:
            The new entry, or None for a duplicate or rejected observation
        """
        tx_hash = _normalize(tx_hash)
        if tx_hash in self._members:
            return None

        if len(self._entries) >= self.max_pending:
            self.rejected += 1
            logger.warning(f"Queue full ({self.max_pending}), dropping new observation {tx_hash}")
            return None

        entry = PendingEntry(tx_hash=tx_hash, sequence=sequence)
        self._entries.append(entry)
        self._members[tx_hash] = None
        self._not_empty.set()
        return entry

    async def get(self) -> PendingEntry:
        """Wait for and remove the head entry; it stays a member until task_done()."""
        while not self._entries:
            self._not_empty.clear()
            await self._not_empty.wait()
        entry = self._entries.popleft()
        self.in_flight = entry
        return entry

    def task_done(self, entry: PendingEntry) -> None:
        """Forget an entry after its attempt reached a terminal outcome."""
        self._members.pop(entry.tx_hash, None)
        if self.in_flight is not None and self.in_flight.tx_hash == entry.tx_hash:
            self.in_flight = None

    def __contains__(self, tx_hash: object) -> bool:
        return isinstance(tx_hash, str) and _normalize(tx_hash) in self._members

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> list[str]:
        """Queued transaction hashes in processing order (excluding the in-flight one)."""
        return [entry.tx_hash for entry in self._entries]


def _normalize(tx_hash: str) -> str:
    tx_hash = tx_hash.lower()
    return tx_hash if tx_hash.startswith('0x') else f"0x{tx_hash}"
