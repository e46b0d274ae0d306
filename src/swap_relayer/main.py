#!/usr/bin/env python3
"""Entry point for the swap relayer service."""

import argparse
import asyncio
import logging
import os
import sys

from swap_relayer.relayer import SwapRelayer


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


logger = logging.getLogger(__name__)


async def main() -> None:
    """Main entry point for the swap relayer."""
    parser = argparse.ArgumentParser(
        description="Wormhole/Circle cross-chain swap relayer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  SRC_RPC, DST_RPC            - RPC endpoints of the source and destination chains
  SRC_CONTRACT_ADDRESS        - Cross-chain swap contract on the source chain
  DST_CONTRACT_ADDRESS        - Cross-chain swap contract on the destination chain
  SRC_CONTRACT_TYPE           - Source contract version, v2 or v3 (default: v2)
  CIRCLE_EMITTER              - Circle MessageTransmitter on the source chain
  PRIVATE_KEY                 - Key paying for redemptions on the destination chain
  WORMHOLE_RPC_HOSTS          - Comma separated guardian REST hosts
  RELAYER_TIMEOUT             - Pause between relayed entries in ms
  RECEIPT_MAX_ATTEMPTS / RECEIPT_TIMEOUT
  VAA_MAX_ATTEMPTS / VAA_TIMEOUT
  ATTESTATION_MAX_ATTEMPTS / ATTESTATION_TIMEOUT
  LOG_LEVEL                   - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--discovery",
        choices=["pending", "logs"],
        default=None,
        help="Transaction discovery strategy (default: DISCOVERY_MODE or pending)"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger.info("=== Swap Relayer Starting ===")

    relayer = None
    try:
        relayer = SwapRelayer.from_env(discovery_mode=args.discovery)
        await relayer.run()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Required environment variables:")
        logger.error("  - SRC_RPC / DST_RPC: Source and destination RPC endpoints")
        logger.error("  - SRC_CONTRACT_ADDRESS / DST_CONTRACT_ADDRESS: Swap contracts")
        logger.error("  - CIRCLE_EMITTER: Circle MessageTransmitter address")
        logger.error("  - PRIVATE_KEY: Private key for signing redemptions")
        sys.exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received interrupt signal, shutting down...")
        if relayer is not None:
            relayer.stop()
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli()
