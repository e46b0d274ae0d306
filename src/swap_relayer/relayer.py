"""
Swap relayer implementation.

This module contains the main relayer service that wires the relay components
together, runs transaction discovery and the relay loop as two tasks sharing
a RelayQueue, and manages their lifecycle.
"""

import asyncio
import logging
from typing import Optional

from web3 import AsyncWeb3

from .attestation_poller import AttestationPoller
from .config import RelayerConfig
from .guardian_client import GuardianAttestationClient
from .processor import BridgeAddresses, RelayProcessor
from .receipt_resolver import ReceiptResolver
from .redemption import RedemptionSubmitter
from .relay_queue import RelayQueue
from .utils.contract_utility import SWAP_CONTRACT_VERSIONS, ContractUtility
from .utils.watchers import EmitterLogWatcher, PendingTransactionWatcher, TransactionWatcher

logger = logging.getLogger(__name__)


class SwapRelayer:
    """
    Main relayer service that orchestrates discovery and relaying.

    Entries are relayed strictly one at a time in observation order; the next
    entry is not touched until the head reaches a terminal outcome.
    """

    STATUS_LOG_INTERVAL = 30  # seconds

    def __init__(self, config: RelayerConfig):
        """
        Initialize the swap relayer.

        Args:
            config: Relayer configuration
        """
        self.config = config
        self.running = False
        self.version = SWAP_CONTRACT_VERSIONS[config.source_chain.contract_version]
        self.queue = RelayQueue(max_pending=config.monitoring.max_pending)

        self._init_utilities()

        # Built by init_components() once on-chain addresses are known
        self.addresses: Optional[BridgeAddresses] = None
        self.processor: Optional[RelayProcessor] = None
        self.watcher: Optional[TransactionWatcher] = None

        self.shutdown_event = asyncio.Event()

    def _init_utilities(self) -> None:
        """Create chain clients for both sides."""
        self.source_util = ContractUtility(rpc_url=self.config.source_chain.rpc_url)
        self.target_util = ContractUtility(
            rpc_url=self.config.target_chain.rpc_url,
            secret=self.config.target_chain.private_key,
        )
        self.w3_source: AsyncWeb3 = self.source_util.w3
        self.w3_target: AsyncWeb3 = self.target_util.w3

    @classmethod
    def from_env(cls, discovery_mode: str | None = None) -> "SwapRelayer":
        """
        Create a SwapRelayer instance from environment variables.

        Raises:
            ValueError: If required environment variables are missing
        """
        config = RelayerConfig.from_env(discovery_mode=discovery_mode)
        config.log_config()
        return cls(config)

    async def resolve_addresses(self) -> BridgeAddresses:
        """
        Read core bridge, Circle integration and Wormhole chain id from the source chain.

        Configured overrides skip the corresponding on-chain lookup.
        """
        source = self.config.source_chain
        swap_contract = self.source_util.get_contract(self.version.source_abi, source.swap_contract_address)

        wormhole = source.wormhole_address or await swap_contract.functions.WORMHOLE().call()
        circle_integration = (
            source.circle_integration_address
            or await swap_contract.functions.CIRCLE_INTEGRATION().call()
        )
        chain_id = source.wormhole_chain_id
        if chain_id is None:
            core_bridge = self.source_util.get_contract("IWormhole", wormhole)
            chain_id = int(await core_bridge.functions.chainId().call())

        addresses = BridgeAddresses(
            swap_contract=source.swap_contract_address,
            wormhole=AsyncWeb3.to_checksum_address(wormhole),
            circle_integration=AsyncWeb3.to_checksum_address(circle_integration),
            circle_emitter=source.circle_emitter_address,
            wormhole_chain_id=chain_id,
        )
        logger.info(f"Wormhole core bridge: {addresses.wormhole} (chain id {chain_id})")
        logger.info(f"Circle integration: {addresses.circle_integration}")
        return addresses

    async def init_components(self) -> None:
        """Build the processor and the watcher."""
        logger.info("Initializing relay components...")
        self.addresses = await self.resolve_addresses()

        attestation = self.config.attestation
        monitoring = self.config.monitoring

        target_chain_id = int(await self.w3_target.eth.chain_id)
        submitter = RedemptionSubmitter(
            w3_target=self.w3_target,
            contract=self.target_util.get_contract(
                self.version.destination_abi,
                self.config.target_chain.swap_contract_address,
            ),
            chain_id=target_chain_id,
            redeem_function=self.version.redeem_function,
        )

        self.processor = RelayProcessor(
            addresses=self.addresses,
            receipt_resolver=ReceiptResolver(
                self.w3_source,
                max_attempts=monitoring.receipt_max_attempts,
                interval_ms=monitoring.receipt_interval_ms,
            ),
            guardian_client=GuardianAttestationClient(
                attestation.wormhole_rpc_hosts,
                max_attempts=attestation.vaa_max_attempts,
                interval_ms=attestation.vaa_interval_ms,
                request_timeout=attestation.request_timeout,
            ),
            attestation_poller=AttestationPoller(
                attestation.circle_attestation_url,
                max_attempts=attestation.attestation_max_attempts,
                interval_ms=attestation.attestation_interval_ms,
                request_timeout=attestation.request_timeout,
            ),
            submitter=submitter,
        )
        self.watcher = self.build_watcher()

    def build_watcher(self) -> TransactionWatcher:
        """Select the discovery strategy from the configuration."""
        if self.config.monitoring.discovery_mode == "logs":
            if self.addresses is None:
                raise RuntimeError("Bridge addresses must be resolved before building a log watcher")
            return EmitterLogWatcher(
                self.w3_source,
                self.queue,
                wormhole_address=self.addresses.wormhole,
                emitter_address=self.addresses.circle_integration,
                lookback_blocks=self.config.monitoring.lookback_blocks,
            )
        return PendingTransactionWatcher(self.w3_source, self.queue)

    async def relay_loop(self) -> None:
        """Consume the queue head-first, one terminal outcome per entry."""
        if self.processor is None:
            raise RuntimeError("Relay processor not initialized")

        interval = self.config.monitoring.relayer_interval_ms / 1000
        while self.running:
            entry = await self.queue.get()
            try:
                await self.processor.process(entry)
            finally:
                self.queue.task_done(entry)
            await asyncio.sleep(interval)

    async def _periodic_status_logger(self) -> None:
        """Log status periodically while running."""
        while self.running:
            await asyncio.sleep(self.STATUS_LOG_INTERVAL)
            if self.processor is None:
                continue
            stats = self.processor.get_stats()
            logger.info(
                f"Status: {len(self.queue)} queued, "
                f"{self.queue.rejected} rejected (queue full), "
                f"{stats['done']} relayed, "
                f"{sum(v for k, v in stats.items() if k.startswith('dropped'))} dropped"
            )

    async def _check_task_health(self, tasks: dict[str, asyncio.Task]) -> bool:
        """Check if any critical task has failed."""
        for name, task in tasks.items():
            if task.done() and name != "status":  # status task can end normally
                try:
                    await task
                except Exception as e:
                    logger.error(f"{name} task failed: {e}", exc_info=True)
                return False
        return True

    async def _cleanup_tasks(self, tasks: dict[str, asyncio.Task]) -> None:
        """Stop the watcher and cancel all tasks."""
        if self.watcher:
            await self.watcher.stop()

        for task in tasks.values():
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass  # Expected when cancelling

    async def run(self) -> None:
        """Main event loop for the relayer service."""
        self.running = True
        logger.info("Swap relayer starting...")

        tasks: dict[str, asyncio.Task] = {}
        try:
            await self.init_components()
            if self.watcher is None:
                raise RuntimeError("Transaction watcher not properly initialized")

            tasks = {
                "watcher": asyncio.create_task(
                    self.watcher.start_polling(interval=self.config.monitoring.polling_interval)
                ),
                "relay": asyncio.create_task(self.relay_loop()),
                "status": asyncio.create_task(self._periodic_status_logger()),
            }

            logger.info(f"Listening to {self.watcher.name}...")

            # Wait until shutdown or task failure
            while self.running:
                try:
                    await asyncio.wait_for(self.shutdown_event.wait(), timeout=1.0)
                    break  # Shutdown requested
                except asyncio.TimeoutError:
                    pass

                if not await self._check_task_health(tasks):
                    logger.error("Critical task failure, shutting down")
                    break

        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)
            raise
        finally:
            self.running = False
            await self._cleanup_tasks(tasks)
            logger.info("Swap relayer stopped")

    def stop(self) -> None:
        """Stop the relayer service."""
        self.running = False
        self.shutdown_event.set()
