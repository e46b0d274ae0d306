"""Redemption submission for the swap relayer.

This module submits the combined Wormhole/Circle proof to the destination
swap contract and waits for one confirmation. A failed submission is never
retried: the first transaction may still land after an apparent failure and a
second one would risk a duplicate redemption.
"""

import logging
from typing import TYPE_CHECKING, Any

from hexbytes import HexBytes
from web3 import Web3
from web3.types import TxParams, TxReceipt, Wei

from .models import RedemptionProof

if TYPE_CHECKING:
    from web3 import AsyncWeb3
    from web3.contract import AsyncContract

logger = logging.getLogger(__name__)

REDEEM_GAS_LIMIT = 694200

GAS_PARAMETERS_EIP1559: TxParams = {
    'gas': REDEEM_GAS_LIMIT,
    'maxFeePerGas': Wei(100420690000),
    'maxPriorityFeePerGas': Wei(1690000000),
}

GAS_PARAMETERS_LEGACY: TxParams = {
    'gas': REDEEM_GAS_LIMIT,
    'gasPrice': Wei(20420690000),
}

# EVM chain ids known to accept type-2 transactions
EIP1559_CHAIN_IDS: frozenset[int] = frozenset({
    1,      # Ethereum
    5,      # Goerli
    137,    # Polygon
    80001,  # Mumbai
    43114,  # Avalanche C-Chain
    43113,  # Fuji
})


def gas_parameters_for(chain_id: int) -> TxParams:
    """Fixed fee profile for the destination chain."""
    if chain_id in EIP1559_CHAIN_IDS:
        return dict(GAS_PARAMETERS_EIP1559)
    return dict(GAS_PARAMETERS_LEGACY)


class RedemptionSubmitter:
    """Submits recvAndSwapExactNativeIn on the destination chain."""

    def __init__(
        self,
        w3_target: "AsyncWeb3",
        contract: "AsyncContract",
        chain_id: int,
        redeem_function: str = "recvAndSwapExactNativeIn",
        confirmation_timeout: float = 120,
    ) -> None:
        """
        Initialize the RedemptionSubmitter.

        Args:
            w3_target: Signing async Web3 client for the destination chain
            contract: Destination swap contract
            chain_id: EVM chain id of the destination chain (selects the fee profile)
            redeem_function: Name of the redeem entry point on the contract
            confirmation_timeout: Seconds to wait for the redemption receipt
        """
        self.w3_target = w3_target
        self.contract = contract
        self.chain_id = chain_id
        self.redeem_function = redeem_function
        self.confirmation_timeout = confirmation_timeout
        self.gas_parameters: TxParams = gas_parameters_for(chain_id)

        mode = "EIP-1559" if 'maxFeePerGas' in self.gas_parameters else "legacy"
        logger.info(f"RedemptionSubmitter targeting chain {chain_id} with {mode} gas parameters")

    async def submit(self, proof: RedemptionProof) -> str | None:
        """
        Submit a redemption and wait for its confirmation.

        Args:
            proof: Matching VAA, Circle message and Circle attestation

        Returns:
            Destination transaction hash once confirmed, None on any failure
        """
        try:
            function: Any = getattr(self.contract.functions, self.redeem_function)
            tx_hash: HexBytes = await function(proof.as_call_args()).transact(dict(self.gas_parameters))
            logger.info(f"Redemption for {proof.tx_hash} submitted: {Web3.to_hex(tx_hash)}")

            receipt: TxReceipt = await self.w3_target.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.confirmation_timeout
            )
            if (status := receipt.get('status', 0)) != 1:
                logger.error(f"Redemption {Web3.to_hex(tx_hash)} for {proof.tx_hash} failed with status={status}")
                return None

            logger.info(f"Redemption for {proof.tx_hash} confirmed in block {receipt['blockNumber']}")
            return Web3.to_hex(tx_hash)

        except Exception as e:
            logger.error(f"Error submitting redemption for {proof.tx_hash}: {e}", exc_info=True)
            return None
