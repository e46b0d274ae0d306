"""
Guardian network client for signed Wormhole messages (VAAs).

Queries the guardian REST API

    GET {host}/v1/signed_vaa/{chain_id}/{emitter}/{sequence} -> {"vaaBytes": base64}

against a list of hosts in preference order until a quorum-signed message is
available or the attempt budget is spent.
"""

import asyncio
import base64
import binascii
import logging

import httpx
from web3 import Web3

logger = logging.getLogger(__name__)


def emitter_address_for(address: str) -> str:
    """Left-pad an EVM address to the 32-byte hex emitter form (no 0x prefix)."""
    return Web3.to_bytes(hexstr=address).rjust(32, b'\0').hex()


class GuardianAttestationClient:
    """Fetches VAAs from the guardian network with bounded retries."""

    def __init__(
        self,
        rpc_hosts: tuple[str, ...] | list[str],
        max_attempts: int,
        interval_ms: int,
        request_timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the GuardianAttestationClient.

        Args:
            rpc_hosts: Guardian REST hosts, most preferred first
            max_attempts: Rounds over the host list before giving up
            interval_ms: Pause between two rounds in milliseconds
            request_timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not rpc_hosts:
            raise ValueError("At least one guardian RPC host is required")
        self.rpc_hosts = [host.rstrip('/') for host in rpc_hosts]
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.request_timeout = request_timeout
        self.transport = transport

    async def fetch_signed_vaa(self, chain_id: int, emitter_address: str, sequence: str) -> bytes | None:
        """
        Fetch the signed VAA for (chain_id, emitter_address, sequence).

        Args:
            chain_id: Wormhole chain id of the source chain
            emitter_address: 32-byte hex emitter (see emitter_address_for)
            sequence: Message sequence as a decimal string

        Returns:
            VAA bytes, or None after max_attempts rounds without a result
        """
        path = f"/v1/signed_vaa/{chain_id}/{emitter_address}/{sequence}"

        async with httpx.AsyncClient(transport=self.transport, timeout=self.request_timeout) as client:
            for attempt in range(1, self.max_attempts + 1):
                for host in self.rpc_hosts:
                    vaa = await self._query_host(client, host + path)
                    if vaa is not None:
                        logger.info(f"Signed VAA for sequence {sequence} found on {host}")
                        return vaa

                logger.debug(f"VAA for sequence {sequence} not available (attempt {attempt}/{self.max_attempts})")
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.interval_ms / 1000)

        return None

    async def _query_host(self, client: httpx.AsyncClient, url: str) -> bytes | None:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Guardian request {url} failed: {e}")
            return None

        if response.status_code != 200:
            return None

        try:
            vaa_b64 = response.json().get('vaaBytes')
            if not vaa_b64:
                return None
            return base64.b64decode(vaa_b64)
        except (ValueError, AttributeError, TypeError, binascii.Error) as e:
            logger.warning(f"Malformed guardian response from {url}: {e}")
            return None
