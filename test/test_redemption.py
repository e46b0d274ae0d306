#!/usr/bin/env python3
"""Unit tests for RedemptionSubmitter module."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.types import Wei

from swap_relayer.models import RedemptionProof
from swap_relayer.redemption import (
    GAS_PARAMETERS_EIP1559,
    GAS_PARAMETERS_LEGACY,
    RedemptionSubmitter,
    gas_parameters_for,
)

TX_HASH = "0x" + "ab" * 32
REDEEM_HASH = b'\x12' * 32


@pytest.fixture
def proof():
    return RedemptionProof(
        tx_hash=TX_HASH,
        encoded_wormhole_message=b'vaa',
        circle_bridge_message=b'message',
        circle_attestation=b'attestation',
    )


@pytest.fixture
def mock_w3():
    """Create a mock async Web3 instance."""
    mock = MagicMock()
    mock.eth.wait_for_transaction_receipt = AsyncMock(return_value={'status': 1, 'blockNumber': 777})
    return mock


@pytest.fixture
def mock_contract():
    """Create a mock destination contract whose redeem call transacts successfully."""
    mock = MagicMock()
    call = MagicMock()
    call.transact = AsyncMock(return_value=REDEEM_HASH)
    mock.functions.recvAndSwapExactNativeIn = MagicMock(return_value=call)
    return mock


class TestGasParameters:
    """Test suite for gas profile selection."""

    @pytest.mark.parametrize("chain_id", [1, 5, 137, 80001, 43114, 43113])
    def test_eip1559_chains(self, chain_id):
        """Test that allow-listed chains use the EIP-1559 profile."""
        params = gas_parameters_for(chain_id)

        assert params == GAS_PARAMETERS_EIP1559
        assert 'gasPrice' not in params

    @pytest.mark.parametrize("chain_id", [56, 97, 31337])
    def test_legacy_chains(self, chain_id):
        """Test that other chains use the legacy gas price profile."""
        params = gas_parameters_for(chain_id)

        assert params == GAS_PARAMETERS_LEGACY
        assert params['gasPrice'] == Wei(20420690000)

    def test_returns_copy(self):
        """Test that callers cannot mutate the shared profile."""
        params = gas_parameters_for(5)
        params['gas'] = 1

        assert GAS_PARAMETERS_EIP1559['gas'] == 694200


class TestRedemptionSubmitter:
    """Test suite for RedemptionSubmitter."""

    @pytest.mark.asyncio
    async def test_submit_success(self, mock_w3, mock_contract, proof):
        """Test that a confirmed redemption returns its transaction hash."""
        submitter = RedemptionSubmitter(mock_w3, mock_contract, chain_id=43113)

        result = await submitter.submit(proof)

        assert result == "0x" + "12" * 32
        mock_contract.functions.recvAndSwapExactNativeIn.assert_called_once_with({
            'encodedWormholeMessage': b'vaa',
            'circleBridgeMessage': b'message',
            'circleAttestation': b'attestation',
        })
        transact = mock_contract.functions.recvAndSwapExactNativeIn.return_value.transact
        transact.assert_awaited_once_with(GAS_PARAMETERS_EIP1559)
        mock_w3.eth.wait_for_transaction_receipt.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_uses_legacy_gas(self, mock_w3, mock_contract, proof):
        """Test that non-EIP-1559 chains get a gas price."""
        submitter = RedemptionSubmitter(mock_w3, mock_contract, chain_id=97)

        await submitter.submit(proof)

        transact = mock_contract.functions.recvAndSwapExactNativeIn.return_value.transact
        transact.assert_awaited_once_with(GAS_PARAMETERS_LEGACY)

    @pytest.mark.asyncio
    async def test_reverted_redemption(self, mock_w3, mock_contract, proof):
        """Test that a reverted redemption is reported as failure."""
        mock_w3.eth.wait_for_transaction_receipt.return_value = {'status': 0, 'blockNumber': 777}
        submitter = RedemptionSubmitter(mock_w3, mock_contract, chain_id=5)

        assert await submitter.submit(proof) is None

    @pytest.mark.asyncio
    async def test_submission_error_is_not_retried(self, mock_w3, mock_contract, proof):
        """Test that a failing transact is caught and attempted only once."""
        transact = mock_contract.functions.recvAndSwapExactNativeIn.return_value.transact
        transact.side_effect = Exception("nonce too low")
        submitter = RedemptionSubmitter(mock_w3, mock_contract, chain_id=5)

        assert await submitter.submit(proof) is None
        transact.assert_awaited_once()
        mock_w3.eth.wait_for_transaction_receipt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_confirmation_timeout(self, mock_w3, mock_contract, proof):
        """Test that a confirmation timeout is treated as terminal failure."""
        mock_w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("no receipt")
        submitter = RedemptionSubmitter(mock_w3, mock_contract, chain_id=5)

        assert await submitter.submit(proof) is None
        mock_contract.functions.recvAndSwapExactNativeIn.return_value.transact.assert_awaited_once()


class TestRedemptionProof:
    """Test suite for RedemptionProof validation."""

    def test_rejects_missing_artifact(self):
        """Test that every proof field must be non-empty."""
        with pytest.raises(ValueError, match="circle_attestation"):
            RedemptionProof(
                tx_hash=TX_HASH,
                encoded_wormhole_message=b'vaa',
                circle_bridge_message=b'message',
                circle_attestation=b'',
            )
