#!/usr/bin/env python3
"""Entry point for the Sloth relayer HTTP service."""

import argparse
import logging
import os
import sys

import uvicorn


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

from sloth_relayer.app import create_app
from sloth_relayer.config import RelayerConfig


def main() -> None:
    """Parse arguments, load configuration and serve the relay API."""
    parser = argparse.ArgumentParser(
        description="Sloth Relayer - submit signed create/buy/sell intents on behalf of users",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  RPC_URL              - Chain node RPC endpoint
  RELAYER_PRIVATE_KEY  - Relayer key that signs and pays for transactions
  FACTORY_ADDRESS      - Sloth factory contract address
  INDEXER_API_URL      - Downstream indexing API (optional)
  GAS_LIMIT            - Gas ceiling per transaction (default: 5000000)
  RECEIPT_TIMEOUT      - Seconds to wait for inclusion (default: 120)
  HOST / PORT          - HTTP bind (default: 0.0.0.0:7777)
  LOG_LEVEL            - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger.info("=== Sloth Relayer Starting ===")

    try:
        config = RelayerConfig.from_env()
        config.log_config()
        app = create_app(config)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Required environment variables:")
        logger.error("  - RPC_URL: Chain node RPC endpoint")
        logger.error("  - RELAYER_PRIVATE_KEY: Relayer private key")
        logger.error("  - FACTORY_ADDRESS: Sloth factory contract address")
        sys.exit(1)

    try:
        uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=args.log_level.lower())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
