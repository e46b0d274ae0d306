"""
Per-entry relay processing.

This module drives one queued transaction through the relay pipeline, keeping
the processing logic separate from the relay orchestration:

    QUEUED -> RECEIPT_PENDING -> SEQUENCE_CHECKED -> ATTESTATIONS_PENDING
           -> SUBMITTING -> DONE

Every failure is terminal for the entry. Components report "not found" or
"not ready" by returning None; the processor turns those into RelayError
subclasses and converts them into an Outcome at the entry boundary.
"""

import asyncio
import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass

from .attestation_poller import AttestationPoller
from .bridge_message import find_bridge_message, message_hash
from .errors import (
    AlreadySubmitted,
    AttestationTimeout,
    BridgeMessageMissing,
    NotASwapTransaction,
    ReceiptUnavailable,
    RelayError,
    SubmissionFailure,
)
from .guardian_client import GuardianAttestationClient, emitter_address_for
from .models import EntryState, Outcome, PendingEntry, RedemptionProof
from .receipt_resolver import ReceiptResolver
from .redemption import RedemptionSubmitter
from .sequence_extractor import extract_sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BridgeAddresses:
    """Source-chain contracts the processor matches receipts against."""
    swap_contract: str
    wormhole: str
    circle_integration: str
    circle_emitter: str
    wormhole_chain_id: int


class RelayProcessor:
    """Processes one PendingEntry at a time to a terminal Outcome."""

    MAX_SUBMITTED_HASHES: int = 10_000

    def __init__(
        self,
        addresses: BridgeAddresses,
        receipt_resolver: ReceiptResolver,
        guardian_client: GuardianAttestationClient,
        attestation_poller: AttestationPoller,
        submitter: RedemptionSubmitter,
    ) -> None:
        self.addresses = addresses
        self.receipt_resolver = receipt_resolver
        self.guardian_client = guardian_client
        self.attestation_poller = attestation_poller
        self.submitter = submitter

        # Source transactions a redemption was attempted for, oldest first
        self.submitted_tx_hashes: OrderedDict[str, None] = OrderedDict()
        self.outcomes: Counter[Outcome] = Counter()
        self.state: EntryState | None = None

    async def process(self, entry: PendingEntry) -> Outcome:
        """
        Run one relay attempt for entry.

        Never raises for per-entry failures; the returned Outcome says how the
        attempt ended.
        """
        try:
            outcome = await self._relay(entry)
            logger.info(f"Relayed {entry.tx_hash}")
        except RelayError as e:
            outcome = e.outcome
            log = logger.error if isinstance(e, SubmissionFailure) else logger.warning
            log(f"Dropping {entry.tx_hash}: {e.reason} [{outcome.value}]")
        except Exception as e:
            outcome = Outcome.DROPPED_UNEXPECTED_ERROR
            logger.error(f"Dropping {entry.tx_hash} after unexpected error: {e}", exc_info=True)
        finally:
            self.state = None

        self.outcomes[outcome] += 1
        return outcome

    async def _relay(self, entry: PendingEntry) -> Outcome:
        tx_hash = entry.tx_hash
        if tx_hash in self.submitted_tx_hashes:
            raise AlreadySubmitted(tx_hash, "redemption already attempted")
        self.state = EntryState.RECEIPT_PENDING

        receipt = await self.receipt_resolver.resolve(tx_hash, self.addresses.swap_contract)
        if receipt is None:
            raise ReceiptUnavailable(tx_hash, "no receipt for a swap contract call")

        sequence = entry.sequence or extract_sequence(receipt, self.addresses.wormhole)
        if sequence is None:
            raise NotASwapTransaction(tx_hash, "no Wormhole sequence, probably a redemption")
        self.state = EntryState.SEQUENCE_CHECKED
        logger.info(f"Found swap {tx_hash} with sequence {sequence}")

        bridge_message = find_bridge_message(receipt.logs, self.addresses.circle_emitter)
        if bridge_message is None:
            raise BridgeMessageMissing(tx_hash, "no Circle MessageSent log")

        self.state = EntryState.ATTESTATIONS_PENDING
        vaa, attestation = await self._fetch_attestations(sequence, bridge_message)
        # Fail closed: an attestation from one source is discarded if the other timed out
        if vaa is None:
            raise AttestationTimeout(tx_hash, "Wormhole")
        if attestation is None:
            raise AttestationTimeout(tx_hash, "Circle")

        proof = RedemptionProof(
            tx_hash=tx_hash,
            encoded_wormhole_message=vaa,
            circle_bridge_message=bridge_message,
            circle_attestation=attestation,
        )

        self._track_submitted_hash(tx_hash)

        self.state = EntryState.SUBMITTING
        if await self.submitter.submit(proof) is None:
            raise SubmissionFailure(tx_hash, "redemption was not confirmed")

        self.state = EntryState.DONE
        return Outcome.DONE

    async def _fetch_attestations(
        self, sequence: str, bridge_message: bytes
    ) -> tuple[bytes | None, bytes | None]:
        """
        Poll guardians and Circle concurrently.

        If either poll raises, the other is cancelled and awaited before the
        error propagates, so nothing keeps polling once the entry is dropped.
        """
        tasks = (
            asyncio.create_task(self.guardian_client.fetch_signed_vaa(
                self.addresses.wormhole_chain_id,
                emitter_address_for(self.addresses.circle_integration),
                sequence,
            )),
            asyncio.create_task(
                self.attestation_poller.get_attestation(message_hash(bridge_message))
            ),
        )
        try:
            vaa, attestation = await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return vaa, attestation

    def _track_submitted_hash(self, tx_hash: str) -> None:
        """Remember a submitted transaction, evicting the oldest at capacity."""
        if len(self.submitted_tx_hashes) >= self.MAX_SUBMITTED_HASHES:
            self.submitted_tx_hashes.popitem(last=False)
        self.submitted_tx_hashes[tx_hash] = None

    def get_stats(self) -> dict:
        """
        Get current processor statistics.

        Returns:
            Dictionary with one counter per outcome plus submitted hashes tracked
        """
        stats = {outcome.value: self.outcomes[outcome] for outcome in Outcome}
        stats['submitted_hashes'] = len(self.submitted_tx_hashes)
        return stats
