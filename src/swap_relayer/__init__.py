"""
Swap Relayer package.

Relays Wormhole/Circle cross-chain swaps from a source chain to the swap
contract on a destination chain.
"""

from .config import RelayerConfig
from .models import Outcome, PendingEntry, RedemptionProof
from .processor import RelayProcessor
from .relay_queue import RelayQueue
from .relayer import SwapRelayer

__all__ = [
    "RelayerConfig",
    "SwapRelayer",
    "RelayProcessor",
    "RelayQueue",
    "PendingEntry",
    "RedemptionProof",
    "Outcome",
]
__version__ = "0.1.0"
