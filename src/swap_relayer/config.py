"""
Configuration module for the swap relayer.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate. All retry intervals are expressed in milliseconds.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

logger = logging.getLogger(__name__)

DEFAULT_WORMHOLE_RPC_HOSTS = ("https://wormhole-v2-testnet-api.certus.one",)
DEFAULT_CIRCLE_ATTESTATION_URL = "https://iris-api-sandbox.circle.com"


def _validate_url(url: str, name: str) -> None:
    if not url:
        raise ValueError(f"{name} environment variable is required")
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https'):
        raise ValueError(
            f"Invalid {name} scheme: {parsed.scheme}. Expected http or https"
        )


def _checksum(obj: object, attr: str, name: str, required: bool = True) -> None:
    """Validate and checksum an address attribute on a frozen dataclass."""
    value = getattr(obj, attr)
    if not value:
        if required:
            raise ValueError(f"{name} environment variable is required")
        return
    if not Web3.is_address(value):
        raise ValueError(f"Invalid {name}: {value}")
    # Use object.__setattr__ since dataclass is frozen
    object.__setattr__(obj, attr, Web3.to_checksum_address(value))


@dataclass(frozen=True, slots=True)
class SourceChainConfig:
    """Configuration for the source chain.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint for the source chain
        swap_contract_address: Cross-chain swap contract users call to start a swap
        contract_version: Swap contract flavour deployed on the source chain
        circle_emitter_address: Circle MessageTransmitter emitting MessageSent
        wormhole_address: Core bridge override (read from the swap contract when unset)
        circle_integration_address: Wormhole Circle integration override
        wormhole_chain_id: Wormhole chain id override (read from the core bridge when unset)
    """

    rpc_url: str
    swap_contract_address: str
    circle_emitter_address: str
    contract_version: str = "v2"
    wormhole_address: str | None = None
    circle_integration_address: str | None = None
    wormhole_chain_id: int | None = None

    SUPPORTED_VERSIONS: ClassVar[set[str]] = {'v2', 'v3'}

    def __post_init__(self) -> None:
        _validate_url(self.rpc_url, "SRC_RPC")
        _checksum(self, 'swap_contract_address', "SRC_CONTRACT_ADDRESS")
        _checksum(self, 'circle_emitter_address', "CIRCLE_EMITTER")
        _checksum(self, 'wormhole_address', "WORMHOLE_ADDRESS", required=False)
        _checksum(self, 'circle_integration_address', "CIRCLE_INTEGRATION_ADDRESS", required=False)

        if self.contract_version not in self.SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported SRC_CONTRACT_TYPE: {self.contract_version}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_VERSIONS))}"
            )
        if self.wormhole_chain_id is not None and self.wormhole_chain_id <= 0:
            raise ValueError(f"WORMHOLE_CHAIN_ID must be positive, got {self.wormhole_chain_id}")


@dataclass(frozen=True, slots=True)
class TargetChainConfig:
    """Configuration for the destination chain.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint for the destination chain
        swap_contract_address: Swap contract exposing recvAndSwapExactNativeIn
        private_key: Key of the relayer account paying for redemptions
    """

    rpc_url: str
    swap_contract_address: str
    private_key: str = field(repr=False)

    def __post_init__(self) -> None:
        _validate_url(self.rpc_url, "DST_RPC")
        _checksum(self, 'swap_contract_address', "DST_CONTRACT_ADDRESS")

        if not self.private_key:
            raise ValueError(
                "PRIVATE_KEY environment variable is required. "
                "This is used to sign redemptions on the destination chain"
            )
        # Should be 64 hex chars, optionally with 0x prefix
        key = self.private_key.removeprefix('0x')
        if len(key) != 64:
            raise ValueError(
                f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
            )
        try:
            int(key, 16)
        except ValueError:
            raise ValueError("Invalid private key format. Must be hexadecimal") from None


@dataclass(frozen=True, slots=True)
class AttestationConfig:
    """Endpoints and retry budgets of the two attestation sources."""
    wormhole_rpc_hosts: tuple[str, ...] = DEFAULT_WORMHOLE_RPC_HOSTS
    circle_attestation_url: str = DEFAULT_CIRCLE_ATTESTATION_URL
    vaa_max_attempts: int = 20
    vaa_interval_ms: int = 2000
    attestation_max_attempts: int = 20
    attestation_interval_ms: int = 2000
    request_timeout: int = 30  # seconds per HTTP request

    def __post_init__(self) -> None:
        if not self.wormhole_rpc_hosts:
            raise ValueError("At least one Wormhole RPC host is required (WORMHOLE_RPC_HOSTS)")
        for host in self.wormhole_rpc_hosts:
            _validate_url(host, "WORMHOLE_RPC_HOSTS")
        _validate_url(self.circle_attestation_url, "CIRCLE_ATTESTATION_URL")

        if self.vaa_max_attempts <= 0:
            raise ValueError(f"VAA max attempts must be positive, got {self.vaa_max_attempts}")
        if self.attestation_max_attempts <= 0:
            raise ValueError(
                f"Attestation max attempts must be positive, got {self.attestation_max_attempts}"
            )
        if self.vaa_interval_ms < 0 or self.attestation_interval_ms < 0:
            raise ValueError("Attestation intervals must be non-negative")
        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Configuration for transaction discovery and the relay loop."""
    discovery_mode: str = "pending"
    polling_interval: int = 3  # seconds between watcher polls
    lookback_blocks: int = 100  # blocks to look back on startup (log discovery)
    relayer_interval_ms: int = 1000
    receipt_max_attempts: int = 10
    receipt_interval_ms: int = 1000
    max_pending: int = 10_000

    SUPPORTED_DISCOVERY_MODES: ClassVar[set[str]] = {'pending', 'logs'}

    def __post_init__(self) -> None:
        if self.discovery_mode not in self.SUPPORTED_DISCOVERY_MODES:
            raise ValueError(
                f"Unsupported DISCOVERY_MODE: {self.discovery_mode}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_DISCOVERY_MODES))}"
            )
        if self.polling_interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {self.polling_interval}")
        if self.polling_interval > 300:
            raise ValueError(f"Polling interval too long (max 300s), got {self.polling_interval}")
        if self.lookback_blocks < 0:
            raise ValueError(f"Lookback blocks must be non-negative, got {self.lookback_blocks}")
        if self.relayer_interval_ms < 0:
            raise ValueError(f"Relayer interval must be non-negative, got {self.relayer_interval_ms}")
        if self.receipt_max_attempts <= 0:
            raise ValueError(
                f"Receipt max attempts must be positive, got {self.receipt_max_attempts}"
            )
        if self.receipt_interval_ms < 0:
            raise ValueError(f"Receipt interval must be non-negative, got {self.receipt_interval_ms}")
        if self.max_pending <= 0:
            raise ValueError(f"Max pending must be positive, got {self.max_pending}")


def _env_int(name: str, default: int | None = None) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the swap relayer."""

    source_chain: SourceChainConfig
    target_chain: TargetChainConfig
    attestation: AttestationConfig = field(default_factory=AttestationConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_env(cls, discovery_mode: str | None = None) -> "RelayerConfig":
        """
        Load configuration from environment variables.

        Args:
            discovery_mode: Overrides DISCOVERY_MODE when given

        Returns:
            RelayerConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        source_config = SourceChainConfig(
            rpc_url=os.environ.get("SRC_RPC", ""),
            swap_contract_address=os.environ.get("SRC_CONTRACT_ADDRESS", ""),
            circle_emitter_address=os.environ.get("CIRCLE_EMITTER", ""),
            contract_version=os.environ.get("SRC_CONTRACT_TYPE", "v2").lower(),
            wormhole_address=os.environ.get("WORMHOLE_ADDRESS") or None,
            circle_integration_address=os.environ.get("CIRCLE_INTEGRATION_ADDRESS") or None,
            wormhole_chain_id=_env_int("WORMHOLE_CHAIN_ID"),
        )

        target_config = TargetChainConfig(
            rpc_url=os.environ.get("DST_RPC", ""),
            swap_contract_address=os.environ.get("DST_CONTRACT_ADDRESS", ""),
            private_key=os.environ.get("PRIVATE_KEY", ""),
        )

        hosts = os.environ.get("WORMHOLE_RPC_HOSTS", "")
        attestation_config = AttestationConfig(
            wormhole_rpc_hosts=(
                tuple(h.strip() for h in hosts.split(",") if h.strip())
                or DEFAULT_WORMHOLE_RPC_HOSTS
            ),
            circle_attestation_url=os.environ.get(
                "CIRCLE_ATTESTATION_URL", DEFAULT_CIRCLE_ATTESTATION_URL
            ),
            vaa_max_attempts=_env_int("VAA_MAX_ATTEMPTS", 20),
            vaa_interval_ms=_env_int("VAA_TIMEOUT", 2000),
            attestation_max_attempts=_env_int("ATTESTATION_MAX_ATTEMPTS", 20),
            attestation_interval_ms=_env_int("ATTESTATION_TIMEOUT", 2000),
            request_timeout=_env_int("REQUEST_TIMEOUT", 30),
        )

        monitoring_config = MonitoringConfig(
            discovery_mode=(discovery_mode or os.environ.get("DISCOVERY_MODE", "pending")).lower(),
            polling_interval=_env_int("POLLING_INTERVAL", 3),
            lookback_blocks=_env_int("LOOKBACK_BLOCKS", 100),
            relayer_interval_ms=_env_int("RELAYER_TIMEOUT", 1000),
            receipt_max_attempts=_env_int("RECEIPT_MAX_ATTEMPTS", 10),
            receipt_interval_ms=_env_int("RECEIPT_TIMEOUT", 1000),
            max_pending=_env_int("MAX_PENDING", 10_000),
        )

        return cls(
            source_chain=source_config,
            target_chain=target_config,
            attestation=attestation_config,
            monitoring=monitoring_config,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format (hiding sensitive data)."""
        logger.info("=" * 60)
        logger.info("Swap Relayer Configuration")
        logger.info("=" * 60)

        logger.info("Source Chain:")
        logger.info(f"  RPC URL: {self.source_chain.rpc_url}")
        logger.info(f"  Swap Contract: {self.source_chain.swap_contract_address} "
                    f"({self.source_chain.contract_version})")
        logger.info(f"  Circle Emitter: {self.source_chain.circle_emitter_address}")
        if self.source_chain.wormhole_address:
            logger.info(f"  Wormhole: {self.source_chain.wormhole_address}")
        if self.source_chain.circle_integration_address:
            logger.info(f"  Circle Integration: {self.source_chain.circle_integration_address}")

        logger.info("Target Chain:")
        logger.info(f"  RPC URL: {self.target_chain.rpc_url}")
        logger.info(f"  Swap Contract: {self.target_chain.swap_contract_address}")
        logger.info(f"  Private Key: {'[SET]' if self.target_chain.private_key else '[NOT SET]'}")

        logger.info("Attestations:")
        logger.info(f"  Wormhole RPC Hosts: {', '.join(self.attestation.wormhole_rpc_hosts)}")
        logger.info(f"  VAA: {self.attestation.vaa_max_attempts} attempts "
                    f"every {self.attestation.vaa_interval_ms}ms")
        logger.info(f"  Circle API: {self.attestation.circle_attestation_url}")
        logger.info(f"  Circle: {self.attestation.attestation_max_attempts} attempts "
                    f"every {self.attestation.attestation_interval_ms}ms")

        logger.info("Monitoring Settings:")
        logger.info(f"  Discovery Mode: {self.monitoring.discovery_mode}")
        logger.info(f"  Polling Interval: {self.monitoring.polling_interval} seconds")
        logger.info(f"  Relayer Interval: {self.monitoring.relayer_interval_ms}ms")
        logger.info(f"  Receipt: {self.monitoring.receipt_max_attempts} attempts "
                    f"every {self.monitoring.receipt_interval_ms}ms")
        logger.info(f"  Max Pending: {self.monitoring.max_pending}")
        logger.info("=" * 60)
