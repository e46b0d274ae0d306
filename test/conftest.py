"""Shared fixtures for the relayer tests."""

import pytest

from factories import CIRCLE_EMITTER, CIRCLE_INTEGRATION, SWAP_CONTRACT, WORMHOLE
from swap_relayer.processor import BridgeAddresses


@pytest.fixture
def addresses() -> BridgeAddresses:
    return BridgeAddresses(
        swap_contract=SWAP_CONTRACT,
        wormhole=WORMHOLE,
        circle_integration=CIRCLE_INTEGRATION,
        circle_emitter=CIRCLE_EMITTER,
        wormhole_chain_id=6,
    )
