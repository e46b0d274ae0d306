"""
Per-entry error taxonomy for the swap relayer.

None of these errors is fatal to the process: the processor catches them at
the entry boundary, logs the drop and moves on to the next queued transaction.
"""

from .models import Outcome


class RelayError(Exception):
    """Base class for failures scoped to a single queue entry."""

    outcome: Outcome = Outcome.DROPPED_UNEXPECTED_ERROR

    def __init__(self, tx_hash: str, reason: str) -> None:
        super().__init__(f"{reason} (tx {tx_hash})")
        self.tx_hash = tx_hash
        self.reason = reason


class ReceiptUnavailable(RelayError):
    """No matching receipt after the receipt retry budget."""
    outcome = Outcome.DROPPED_NOT_FOUND


class NotASwapTransaction(RelayError):
    """No core-bridge sequence in the receipt; never retried."""
    outcome = Outcome.DROPPED_NOT_A_SWAP


class BridgeMessageMissing(RelayError):
    """Sequence present but the Circle bridge emitted no MessageSent log."""
    outcome = Outcome.DROPPED_BRIDGE_MESSAGE_MISSING


class AttestationTimeout(RelayError):
    """Guardian or Circle attestation not available within its budget."""
    outcome = Outcome.DROPPED_ATTESTATION_TIMEOUT

    def __init__(self, tx_hash: str, source: str) -> None:
        super().__init__(tx_hash, f"{source} attestation not available")
        self.source = source


class SubmissionFailure(RelayError):
    """Redemption submission or confirmation failed; never retried."""
    outcome = Outcome.DROPPED_SUBMISSION_FAILED


class AlreadySubmitted(RelayError):
    """A redemption for this source transaction was already attempted."""
    outcome = Outcome.SKIPPED_ALREADY_SUBMITTED
