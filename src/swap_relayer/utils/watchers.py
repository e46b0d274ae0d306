"""
Polling-based transaction discovery for the relay queue.

Two strategies share one polling loop:

- PendingTransactionWatcher enqueues every hash from a pending-transaction filter
- EmitterLogWatcher enqueues transactions whose logs show the Circle integration
  publishing a Wormhole message, together with the decoded sequence
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from web3 import AsyncWeb3, Web3

from ..relay_queue import RelayQueue
from ..sequence_extractor import LOG_MESSAGE_PUBLISHED_TOPIC, decode_sequence


class TransactionWatcher:
    """
    Base polling loop; subclasses implement initial_sync() and poll().
    """

    name = "transactions"

    def __init__(self, w3: AsyncWeb3, queue: RelayQueue):
        self.w3 = w3
        self.queue = queue
        self.is_running = False
        self.observed = 0
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def initial_sync(self) -> None:
        """Prepare polling state before the first poll."""

    async def poll(self) -> None:
        """Fetch new observations and enqueue them."""
        raise NotImplementedError

    def _observe(self, tx_hash: Any, sequence: str | None = None) -> None:
        if not isinstance(tx_hash, str):
            tx_hash = Web3.to_hex(tx_hash)
        if self.queue.put(tx_hash, sequence) is not None:
            self.observed += 1
            self.logger.debug(f"Queued {tx_hash}")

    async def start_polling(self, interval: int = 3) -> None:
        """
        Start polling at the specified interval.

        Args:
            interval: Polling interval in seconds
        """
        if self.is_running:
            self.logger.warning("Polling already running")
            return

        self.is_running = True
        self.logger.info(f"Starting polling for {self.name} every {interval} seconds")

        await self.initial_sync()

        while self.is_running:
            try:
                await self.poll()
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                self.logger.info("Polling cancelled")
                raise
            except Exception as e:
                self.logger.error(f"Error in polling loop: {e}")
                # Continue polling despite errors
                await asyncio.sleep(interval)

    async def stop(self) -> None:
        """Stop the polling loop."""
        self.logger.info(f"Stopping polling for {self.name}")
        self.is_running = False

    def get_status(self) -> Dict[str, Any]:
        return {
            "watcher": self.name,
            "is_running": self.is_running,
            "observed": self.observed,
        }


class PendingTransactionWatcher(TransactionWatcher):
    """Enqueues every transaction reported by an eth_newPendingTransactionFilter."""

    name = "pending transactions"

    def __init__(self, w3: AsyncWeb3, queue: RelayQueue):
        super().__init__(w3, queue)
        self.pending_filter: Any = None

    async def initial_sync(self) -> None:
        self.pending_filter = await self.w3.eth.filter('pending')

    async def poll(self) -> None:
        if self.pending_filter is None:
            await self.initial_sync()
        try:
            entries = await self.pending_filter.get_new_entries()
        except Exception:
            # Nodes drop filters on restart or inactivity; reinstall on the next poll
            self.pending_filter = None
            raise
        for tx_hash in entries:
            self._observe(tx_hash)


class EmitterLogWatcher(TransactionWatcher):
    """
    Enqueues transactions in which the Circle integration published a Wormhole message.
    """

    name = "LogMessagePublished events"

    def __init__(
        self,
        w3: AsyncWeb3,
        queue: RelayQueue,
        wormhole_address: str,
        emitter_address: str,
        lookback_blocks: int = 100,
    ):
        """
        Initialize the log watcher.

        Args:
            w3: Async Web3 client for the source chain
            queue: Relay queue to append observations to
            wormhole_address: Core bridge emitting LogMessagePublished
            emitter_address: Indexed sender to filter on (Circle integration contract)
            lookback_blocks: Number of blocks to look back on startup
        """
        super().__init__(w3, queue)
        self.wormhole_address = Web3.to_checksum_address(wormhole_address)
        self.emitter_address = Web3.to_checksum_address(emitter_address)
        self.lookback_blocks = lookback_blocks
        self.last_processed_block: Optional[int] = None

    def _topics(self) -> list[str]:
        sender_topic = Web3.to_bytes(hexstr=self.emitter_address).rjust(32, b'\0')
        return [Web3.to_hex(LOG_MESSAGE_PUBLISHED_TOPIC), Web3.to_hex(sender_topic)]

    async def _fetch(self, from_block: int, to_block: int) -> None:
        logs = await self.w3.eth.get_logs({
            'address': self.wormhole_address,
            'topics': self._topics(),
            'fromBlock': from_block,
            'toBlock': to_block,
        })
        if logs:
            self.logger.info(f"Found {len(logs)} {self.name} in blocks {from_block}-{to_block}")
        for log in logs:
            self._observe(log['transactionHash'], decode_sequence(bytes(log['data'])))

    async def initial_sync(self) -> None:
        """Catch up on messages published in the look-back window."""
        current_block = await self.w3.eth.block_number
        from_block = max(0, current_block - self.lookback_blocks)
        self.logger.info(f"Initial sync for {self.name} from block {from_block} to {current_block}")
        await self._fetch(from_block, current_block)
        self.last_processed_block = current_block

    async def poll(self) -> None:
        current_block = await self.w3.eth.block_number

        # Skip if no new blocks
        if self.last_processed_block is not None and current_block <= self.last_processed_block:
            return

        from_block = (
            self.last_processed_block + 1 if self.last_processed_block is not None else current_block
        )
        await self._fetch(from_block, current_block)
        # Only advanced after a successful fetch
        self.last_processed_block = current_block

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "last_processed_block": self.last_processed_block,
            "wormhole_address": self.wormhole_address,
            "emitter_address": self.emitter_address,
        })
        return status
