"""Unit tests for the guardian client and the Circle attestation poller."""

import base64
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from swap_relayer.attestation_poller import AttestationPoller
from swap_relayer.guardian_client import GuardianAttestationClient, emitter_address_for

MESSAGE_HASH = "0x" + "cd" * 32
VAA = b'\x01\x00\x00\x00\x03signed-vaa'


def sequenced_transport(responses: list) -> tuple[httpx.MockTransport, list[httpx.Request]]:
    """Transport answering requests with the given responses (or raising exceptions) in order."""
    requests: list[httpx.Request] = []
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        result = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(result, Exception):
            raise result
        return result

    return httpx.MockTransport(handler), requests


class TestEmitterAddress:
    """Test suite for emitter_address_for."""

    def test_left_pads_to_32_bytes(self):
        """Test that an EVM address becomes a 64-char hex emitter."""
        emitter = emitter_address_for("0x3333333333333333333333333333333333333333")

        assert emitter == "00" * 12 + "33" * 20
        assert len(emitter) == 64


class TestGuardianAttestationClient:
    """Test suite for GuardianAttestationClient."""

    @pytest.mark.asyncio
    async def test_returns_vaa_bytes(self):
        """Test that base64 vaaBytes are decoded."""
        transport, requests = sequenced_transport([
            httpx.Response(200, json={"vaaBytes": base64.b64encode(VAA).decode()}),
        ])
        client = GuardianAttestationClient(["https://guardian.test"], max_attempts=3, interval_ms=0,
                                           transport=transport)

        vaa = await client.fetch_signed_vaa(6, "00" * 32, "42")

        assert vaa == VAA
        assert len(requests) == 1
        assert requests[0].url.path == f"/v1/signed_vaa/6/{'00' * 32}/42"

    @pytest.mark.asyncio
    async def test_retries_while_not_found(self):
        """Test that 404s are retried with the configured interval."""
        transport, requests = sequenced_transport([
            httpx.Response(404, json={"code": 5, "message": "requested VAA not found in store"}),
            httpx.Response(404, json={"code": 5, "message": "requested VAA not found in store"}),
            httpx.Response(200, json={"vaaBytes": base64.b64encode(VAA).decode()}),
        ])
        client = GuardianAttestationClient(["https://guardian.test"], max_attempts=5, interval_ms=250,
                                           transport=transport)

        with patch("swap_relayer.guardian_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            vaa = await client.fetch_signed_vaa(6, "00" * 32, "42")

        assert vaa == VAA
        assert len(requests) == 3
        assert [call.args[0] for call in mock_sleep.await_args_list] == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_falls_back_to_next_host(self):
        """Test that hosts are queried in preference order within an attempt."""
        transport, requests = sequenced_transport([
            httpx.ConnectError("unreachable"),
            httpx.Response(200, json={"vaaBytes": base64.b64encode(VAA).decode()}),
        ])
        client = GuardianAttestationClient(
            ["https://primary.test", "https://secondary.test"],
            max_attempts=1,
            interval_ms=0,
            transport=transport,
        )

        vaa = await client.fetch_signed_vaa(2, "11" * 32, "7")

        assert vaa == VAA
        assert [r.url.host for r in requests] == ["primary.test", "secondary.test"]

    @pytest.mark.asyncio
    async def test_exhaustion_returns_none(self):
        """Test that the attempt budget bounds the number of rounds."""
        transport, requests = sequenced_transport([httpx.Response(404)])
        client = GuardianAttestationClient(["https://a.test", "https://b.test"], max_attempts=3,
                                           interval_ms=0, transport=transport)

        vaa = await client.fetch_signed_vaa(6, "00" * 32, "42")

        assert vaa is None
        assert len(requests) == 6

    @pytest.mark.asyncio
    async def test_malformed_payload_is_not_ready(self):
        """Test that a 200 without vaaBytes is treated as not available."""
        transport, _ = sequenced_transport([httpx.Response(200, json={"unexpected": True})])
        client = GuardianAttestationClient(["https://guardian.test"], max_attempts=2, interval_ms=0,
                                           transport=transport)

        assert await client.fetch_signed_vaa(6, "00" * 32, "42") is None

    def test_requires_a_host(self):
        """Test that an empty host list is rejected."""
        with pytest.raises(ValueError):
            GuardianAttestationClient([], max_attempts=1, interval_ms=0)


class TestAttestationPoller:
    """Test suite for AttestationPoller."""

    @pytest.mark.asyncio
    async def test_complete_attestation(self):
        """Test that a complete status yields the attestation bytes."""
        transport, requests = sequenced_transport([
            httpx.Response(200, json={"status": "complete", "attestation": "0xdeadbeef"}),
        ])
        poller = AttestationPoller("https://iris.test/", max_attempts=3, interval_ms=0, transport=transport)

        attestation = await poller.get_attestation(MESSAGE_HASH)

        assert attestation == bytes.fromhex("deadbeef")
        assert str(requests[0].url) == f"https://iris.test/attestations/{MESSAGE_HASH}"

    @pytest.mark.asyncio
    async def test_pending_then_complete(self):
        """Test that pending statuses are polled at the fixed interval."""
        transport, requests = sequenced_transport([
            httpx.Response(200, json={"status": "pending_confirmations", "attestation": "PENDING"}),
            httpx.Response(200, json={"status": "pending"}),
            httpx.Response(200, json={"status": "complete", "attestation": "0x0102"}),
        ])
        poller = AttestationPoller("https://iris.test", max_attempts=5, interval_ms=2000, transport=transport)

        with patch("swap_relayer.attestation_poller.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            attestation = await poller.get_attestation(MESSAGE_HASH)

        assert attestation == b'\x01\x02'
        assert len(requests) == 3
        assert [call.args[0] for call in mock_sleep.await_args_list] == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_errors_are_swallowed_as_not_ready(self):
        """Test that non-200 statuses and network failures do not abort polling."""
        transport, requests = sequenced_transport([
            httpx.Response(404, json={"error": "Message hash not found"}),
            httpx.ConnectTimeout("timed out"),
            httpx.Response(500, text="internal error"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"status": "complete", "attestation": "0xaa"}),
        ])
        poller = AttestationPoller("https://iris.test", max_attempts=5, interval_ms=0, transport=transport)

        assert await poller.get_attestation(MESSAGE_HASH) == b'\xaa'
        assert len(requests) == 5

    @pytest.mark.asyncio
    async def test_exhaustion_returns_none(self):
        """Test that the poller gives up after max_attempts requests."""
        transport, requests = sequenced_transport([httpx.Response(200, json={"status": "pending"})])
        poller = AttestationPoller("https://iris.test", max_attempts=4, interval_ms=0, transport=transport)

        assert await poller.get_attestation(MESSAGE_HASH) is None
        assert len(requests) == 4
