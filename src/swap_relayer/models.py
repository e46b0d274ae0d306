"""
Shared data models for the swap relayer.

This module contains data classes and types used across the relayer components.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hexbytes import HexBytes
from web3 import Web3


@dataclass(frozen=True, slots=True)
class PendingEntry:
    """A candidate source-chain transaction waiting to be relayed.

    Identity is the transaction hash; the queue never holds two entries
    with the same hash.

    Attributes:
        tx_hash: 0x-prefixed transaction hash on the source chain
        sequence: Wormhole sequence when the watcher already decoded it
        observed_at: Unix timestamp of the observation
    """
    tx_hash: str
    sequence: str | None = None
    observed_at: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A single log emitted in a transaction receipt."""
    emitter_address: str
    topics: tuple[bytes, ...]
    data: bytes

    @classmethod
    def from_web3(cls, log: Any) -> "LogEntry":
        return cls(
            emitter_address=log['address'],
            topics=tuple(bytes(HexBytes(topic)) for topic in log.get('topics', [])),
            data=bytes(HexBytes(log.get('data', b''))),
        )


@dataclass(frozen=True, slots=True)
class Receipt:
    """Transaction receipt reduced to what the relay pipeline reads.

    Attributes:
        tx_hash: Transaction hash
        to_address: Recipient of the transaction (None for contract creation)
        logs: Logs in emission order
    """
    tx_hash: str
    to_address: str | None
    logs: tuple[LogEntry, ...]

    @classmethod
    def from_web3(cls, receipt: Any) -> "Receipt":
        tx_hash = receipt['transactionHash']
        if not isinstance(tx_hash, str):
            tx_hash = Web3.to_hex(tx_hash)
        return cls(
            tx_hash=tx_hash,
            to_address=receipt.get('to'),
            logs=tuple(LogEntry.from_web3(log) for log in receipt.get('logs', [])),
        )


@dataclass(frozen=True, slots=True)
class RedemptionProof:
    """The three artifacts the destination swap contract needs to redeem.

    All three must come from the same source transaction.
    """
    tx_hash: str
    encoded_wormhole_message: bytes
    circle_bridge_message: bytes
    circle_attestation: bytes

    def __post_init__(self) -> None:
        for name in ('encoded_wormhole_message', 'circle_bridge_message', 'circle_attestation'):
            if not getattr(self, name):
                raise ValueError(f"RedemptionProof for {self.tx_hash} is missing {name}")

    def as_call_args(self) -> dict[str, bytes]:
        """Struct argument for recvAndSwapExactNativeIn."""
        return {
            'encodedWormholeMessage': self.encoded_wormhole_message,
            'circleBridgeMessage': self.circle_bridge_message,
            'circleAttestation': self.circle_attestation,
        }


class EntryState(Enum):
    """Progress of a single entry through the relay pipeline."""
    QUEUED = "queued"
    RECEIPT_PENDING = "receipt_pending"
    SEQUENCE_CHECKED = "sequence_checked"
    ATTESTATIONS_PENDING = "attestations_pending"
    SUBMITTING = "submitting"
    DONE = "done"


class Outcome(Enum):
    """Terminal result of one relay attempt."""
    DONE = "done"
    DROPPED_NOT_FOUND = "dropped_not_found"
    DROPPED_NOT_A_SWAP = "dropped_not_a_swap"
    DROPPED_BRIDGE_MESSAGE_MISSING = "dropped_bridge_message_missing"
    DROPPED_ATTESTATION_TIMEOUT = "dropped_attestation_timeout"
    DROPPED_SUBMISSION_FAILED = "dropped_submission_failed"
    DROPPED_UNEXPECTED_ERROR = "dropped_unexpected_error"
    SKIPPED_ALREADY_SUBMITTED = "skipped_already_submitted"
