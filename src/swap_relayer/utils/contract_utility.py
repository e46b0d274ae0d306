import json
from dataclasses import dataclass
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract
from web3.middleware import SignAndSendRawMiddlewareBuilder


@dataclass(frozen=True, slots=True)
class SwapContractVersion:
    """
    Pairing of source and destination swap contract flavours.

    A source contract of one version relays into the other version on the
    destination chain; both expose WORMHOLE()/CIRCLE_INTEGRATION() on the
    source side and recvAndSwapExactNativeIn on the destination side.
    """
    name: str
    source_abi: str
    destination_abi: str
    redeem_function: str = "recvAndSwapExactNativeIn"


SWAP_CONTRACT_VERSIONS: dict[str, SwapContractVersion] = {
    "v2": SwapContractVersion(name="v2", source_abi="CrossChainSwapV2", destination_abi="CrossChainSwapV3"),
    "v3": SwapContractVersion(name="v3", source_abi="CrossChainSwapV3", destination_abi="CrossChainSwapV2"),
}


class ContractUtility:
    """
    Utility for contract interaction and ABI loading.

    Can be used in two modes:
    1. Signing mode: Initialize with an RPC URL and secret to send transactions
    2. Read-only mode: Initialize with an RPC URL only
    """

    CONTRACTS_DIR = Path(__file__).parent.parent / "contracts"

    def __init__(self, rpc_url: str = "", secret: str = ""):
        """
        Initialize the ContractUtility.

        Args:
            rpc_url: HTTP RPC endpoint (optional for ABI-only use)
            secret: Private key for transactions (optional for read-only use)
        """
        self.rpc_url = rpc_url
        self.account: LocalAccount | None = None
        if rpc_url and secret:
            self.w3 = self.setup_web3_middleware(secret)
        elif rpc_url:
            self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        else:
            self.w3 = None

    def setup_web3_middleware(self, secret: str) -> AsyncWeb3:
        if not secret:
            raise ValueError("Missing private key. Please set PRIVATE_KEY.")

        self.account = Account.from_key(secret)
        w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        w3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(self.account), layer=0)
        w3.eth.default_account = self.account.address
        return w3

    def get_contract(self, contract_name: str, address: str) -> AsyncContract:
        if self.w3 is None:
            raise RuntimeError("ContractUtility was created without an RPC URL")
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=self.get_contract_abi(contract_name),
        )

    @classmethod
    def get_contract_abi(cls, contract_name: str) -> list:
        """Fetches ABI of the given contract from the contracts folder"""
        contract_path = (cls.CONTRACTS_DIR / f"{contract_name}.json").resolve()

        with contract_path.open() as file:
            contract_data = json.load(file)

        return contract_data["abi"]
