"""
Circle attestation service client.

Polls

    GET {api}/attestations/{message_hash} -> {"status": "pending"|"complete", "attestation": hex}

until the attestation for a Circle bridge message is complete.
"""

import asyncio
import logging

import httpx
from web3 import Web3

logger = logging.getLogger(__name__)


class AttestationPoller:
    """Polls the Circle attestation API with a fixed interval and bounded attempts."""

    def __init__(
        self,
        api_base_url: str,
        max_attempts: int,
        interval_ms: int,
        request_timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base_url = api_base_url.rstrip('/')
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.request_timeout = request_timeout
        self.transport = transport

    async def get_attestation(self, message_hash: str) -> bytes | None:
        """
        Wait for the attestation of a bridge message.

        Non-200 responses, a status other than "complete" and unreachable
        endpoints all count as "not ready yet".

        Args:
            message_hash: 0x-prefixed keccak256 of the bridge message

        Returns:
            Attestation bytes, or None after max_attempts polls
        """
        url = f"{self.api_base_url}/attestations/{message_hash}"

        async with httpx.AsyncClient(transport=self.transport, timeout=self.request_timeout) as client:
            for attempt in range(1, self.max_attempts + 1):
                attestation = await self._poll_once(client, url)
                if attestation is not None:
                    logger.info(f"Circle attestation complete for {message_hash[:10]}...")
                    return attestation

                logger.debug(
                    f"Attestation for {message_hash[:10]}... not ready "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.interval_ms / 1000)

        return None

    async def _poll_once(self, client: httpx.AsyncClient, url: str) -> bytes | None:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Attestation request failed: {e}")
            return None

        if response.status_code != 200:
            return None

        try:
            data = response.json()
        except ValueError:
            return None

        if not isinstance(data, dict):
            return None
        if data.get('status') != 'complete' or not data.get('attestation'):
            return None

        try:
            return Web3.to_bytes(hexstr=data['attestation'])
        except ValueError as e:
            logger.warning(f"Malformed attestation in response from {url}: {e}")
            return None
