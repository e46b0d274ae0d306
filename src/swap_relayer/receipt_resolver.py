"""
Receipt resolution for candidate source-chain transactions.
"""

import asyncio
import logging

from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from .models import Receipt

logger = logging.getLogger(__name__)


class ReceiptResolver:
    """Polls the source chain for a transaction receipt with bounded retries."""

    def __init__(self, w3_source: AsyncWeb3, max_attempts: int, interval_ms: int) -> None:
        """
        Initialize the ReceiptResolver.

        Args:
            w3_source: Async Web3 client for the source chain
            max_attempts: Number of receipt lookups before giving up
            interval_ms: Pause between two lookups in milliseconds
        """
        self.w3_source = w3_source
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms

    async def resolve(self, tx_hash: str, expected_to: str) -> Receipt | None:
        """
        Fetch the receipt of tx_hash if it was sent to expected_to.

        A missing receipt and a transient RPC error both consume one attempt;
        there is no way to tell "never existed" from "not yet mined".

        Args:
            tx_hash: Source transaction hash
            expected_to: Swap contract the transaction must target

        Returns:
            The receipt, or None when it never showed up or targets another contract
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                raw = await self.w3_source.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                raw = None
            except Exception as e:
                logger.debug(f"Receipt lookup for {tx_hash} failed on attempt {attempt}: {e}")
                raw = None

            if raw is not None:
                receipt = Receipt.from_web3(raw)
                if not _same_address(receipt.to_address, expected_to):
                    logger.debug(f"Transaction {tx_hash} targets {receipt.to_address}, ignoring")
                    return None
                return receipt

            if attempt < self.max_attempts:
                await asyncio.sleep(self.interval_ms / 1000)

        logger.debug(f"No receipt for {tx_hash} after {self.max_attempts} attempts")
        return None


def _same_address(left: str | None, right: str) -> bool:
    if not left or not Web3.is_address(left):
        return False
    return Web3.to_checksum_address(left) == Web3.to_checksum_address(right)
