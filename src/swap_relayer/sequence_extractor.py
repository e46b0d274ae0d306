"""
Wormhole sequence extraction from source-chain receipts.

The core bridge emits

    LogMessagePublished(address indexed sender, uint64 sequence, uint32 nonce,
                        bytes payload, uint8 consistencyLevel)

for every outbound message. A swap-initiating transaction carries exactly one
such log from the Circle integration contract; a redemption carries none.
"""

import logging

from eth_abi import decode
from web3 import Web3

from .models import Receipt

logger = logging.getLogger(__name__)

LOG_MESSAGE_PUBLISHED_TOPIC: bytes = bytes(
    Web3.keccak(text="LogMessagePublished(address,uint64,uint32,bytes,uint8)")
)
LOG_MESSAGE_PUBLISHED_DATA_TYPES = ['uint64', 'uint32', 'bytes', 'uint8']


def decode_sequence(data: bytes) -> str:
    """Decode the sequence of a LogMessagePublished log as a decimal string."""
    sequence, _nonce, _payload, _consistency = decode(LOG_MESSAGE_PUBLISHED_DATA_TYPES, data)
    return str(sequence)


def extract_sequence(receipt: Receipt, core_bridge_address: str) -> str | None:
    """
    Return the Wormhole sequence of the first core-bridge message in the receipt.

    Args:
        receipt: Receipt of the candidate transaction
        core_bridge_address: Wormhole core bridge on the source chain

    Returns:
        Sequence as a decimal string, or None when the transaction published
        no Wormhole message (not a swap initiation)
    """
    bridge = Web3.to_checksum_address(core_bridge_address)
    for log in receipt.logs:
        if Web3.to_checksum_address(log.emitter_address) != bridge:
            continue
        if not log.topics or log.topics[0] != LOG_MESSAGE_PUBLISHED_TOPIC:
            continue
        return decode_sequence(log.data)
    return None
