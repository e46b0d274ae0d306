"""Receipt and log builders for the relayer tests."""

from eth_abi import encode
from hexbytes import HexBytes

from swap_relayer.bridge_message import MESSAGE_SENT_TOPIC
from swap_relayer.sequence_extractor import LOG_MESSAGE_PUBLISHED_TOPIC

SWAP_CONTRACT = "0x1111111111111111111111111111111111111111"
WORMHOLE = "0x2222222222222222222222222222222222222222"
CIRCLE_INTEGRATION = "0x3333333333333333333333333333333333333333"
CIRCLE_EMITTER = "0x4444444444444444444444444444444444444444"
OTHER_CONTRACT = "0x5555555555555555555555555555555555555555"
TX_HASH = "0x" + "ab" * 32


def wormhole_log(sequence: int, sender: str = CIRCLE_INTEGRATION, address: str = WORMHOLE) -> dict:
    """Raw LogMessagePublished log as returned by web3."""
    return {
        'address': address,
        'topics': [
            HexBytes(LOG_MESSAGE_PUBLISHED_TOPIC),
            HexBytes(bytes.fromhex(sender[2:]).rjust(32, b'\0')),
        ],
        'data': HexBytes(encode(['uint64', 'uint32', 'bytes', 'uint8'], [sequence, 0, b'swap-payload', 1])),
    }


def circle_log(message: bytes, address: str = CIRCLE_EMITTER) -> dict:
    """Raw MessageSent(bytes) log as returned by web3."""
    return {
        'address': address,
        'topics': [HexBytes(MESSAGE_SENT_TOPIC)],
        'data': HexBytes(encode(['bytes'], [message])),
    }


def make_receipt(logs: list[dict], to: str = SWAP_CONTRACT, tx_hash: str = TX_HASH) -> dict:
    return {
        'transactionHash': HexBytes(tx_hash),
        'to': to,
        'logs': logs,
        'status': 1,
    }
