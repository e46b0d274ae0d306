"""
Circle bridge message lookup in receipt logs.
"""

from collections.abc import Iterable

from eth_abi import decode
from web3 import Web3

from .models import LogEntry

MESSAGE_SENT_TOPIC: bytes = bytes(Web3.keccak(text="MessageSent(bytes)"))


def find_bridge_message(logs: Iterable[LogEntry], circle_emitter_address: str) -> bytes | None:
    """
    Return the raw message of the first MessageSent log from the Circle emitter.

    Args:
        logs: Receipt logs in emission order
        circle_emitter_address: Circle MessageTransmitter on the source chain

    Returns:
        Raw bridge message bytes, or None if the transaction emitted none
    """
    emitter = Web3.to_checksum_address(circle_emitter_address)
    for log in logs:
        if Web3.to_checksum_address(log.emitter_address) != emitter:
            continue
        if not log.topics or log.topics[0] != MESSAGE_SENT_TOPIC:
            continue
        (message,) = decode(['bytes'], log.data)
        return message
    return None


def message_hash(message: bytes) -> str:
    """0x-prefixed keccak256 of a bridge message, as keyed by the attestation API."""
    return Web3.to_hex(Web3.keccak(message))
