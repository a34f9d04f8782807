"""
Configuration module for the Sloth relayer.

Configuration is loaded from environment variables into frozen dataclasses
that validate themselves on construction.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """Configuration for the chain the relayer submits to.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint of the chain node
        factory_address: Checksummed address of the Sloth factory contract
        private_key: Relayer private key used to sign and pay for transactions
    """

    rpc_url: str
    factory_address: str
    private_key: str = field(repr=False)

    def __post_init__(self) -> None:
        """Validate chain configuration."""
        if not self.rpc_url:
            raise ValueError("RPC URL is required (RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. Expected http or https"
            )

        if not self.factory_address:
            raise ValueError("Factory contract address is required (FACTORY_ADDRESS)")

        if not Web3.is_address(self.factory_address):
            raise ValueError(f"Invalid factory contract address: {self.factory_address}")

        checksummed = Web3.to_checksum_address(self.factory_address)
        if checksummed != self.factory_address:
            # Use object.__setattr__ since dataclass is frozen
            object.__setattr__(self, 'factory_address', checksummed)

        if not self.private_key:
            raise ValueError("Relayer private key is required (RELAYER_PRIVATE_KEY)")

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
class SubmissionConfig:
    """Gas budgeting and inclusion wait settings."""

    MAX_GAS_LIMIT: ClassVar[int] = 5_000_000

    gas_limit: int = 5_000_000
    receipt_timeout: float = 120.0  # seconds
    poll_latency: float = 0.5  # seconds between receipt polls

    def __post_init__(self) -> None:
        """Validate submission configuration."""
        if self.gas_limit <= 0:
            raise ValueError(f"Gas limit must be positive, got {self.gas_limit}")
        if self.gas_limit > self.MAX_GAS_LIMIT:
            raise ValueError(
                f"Gas limit exceeds the {self.MAX_GAS_LIMIT} ceiling, got {self.gas_limit}"
            )
        if self.receipt_timeout <= 0:
            raise ValueError(f"Receipt timeout must be positive, got {self.receipt_timeout}")
        if self.poll_latency <= 0:
            raise ValueError(f"Receipt poll latency must be positive, got {self.poll_latency}")


@dataclass(frozen=True, slots=True)
class IndexerConfig:
    """Downstream indexing API used for best-effort notifications."""

    api_url: str | None = None
    timeout: float = 10.0  # seconds per POST

    def __post_init__(self) -> None:
        """Validate indexer configuration."""
        if self.api_url:
            parsed = urlparse(self.api_url)
            if parsed.scheme not in ('http', 'https'):
                raise ValueError(
                    f"Invalid indexer URL scheme: {parsed.scheme}. Expected http or https"
                )
            object.__setattr__(self, 'api_url', self.api_url.rstrip('/'))
        if self.timeout <= 0:
            raise ValueError(f"Indexer timeout must be positive, got {self.timeout}")

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """HTTP bind settings."""

    host: str = "0.0.0.0"
    port: int = 7777

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}")


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the Sloth relayer."""

    chain: ChainConfig
    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "RelayerConfig":
        """
        Load configuration from environment variables.

        Returns:
            RelayerConfig: Validated configuration

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        rpc_url = os.environ.get("RPC_URL", "")
        if not rpc_url:
            raise ValueError(
                "RPC_URL environment variable is required. "
                "Example: https://sepolia.base.org"
            )

        factory_address = os.environ.get("FACTORY_ADDRESS", "")
        if not factory_address:
            raise ValueError(
                "FACTORY_ADDRESS environment variable is required. "
                "This is the address of the deployed Sloth factory contract"
            )

        private_key = os.environ.get("RELAYER_PRIVATE_KEY", "")
        if not private_key:
            raise ValueError(
                "RELAYER_PRIVATE_KEY environment variable is required. "
                "This key signs and pays for relayed transactions"
            )

        chain = ChainConfig(
            rpc_url=rpc_url,
            factory_address=factory_address,
            private_key=private_key,
        )

        submission = SubmissionConfig(
            gas_limit=int(os.environ.get("GAS_LIMIT", "5000000")),
            receipt_timeout=float(os.environ.get("RECEIPT_TIMEOUT", "120")),
            poll_latency=float(os.environ.get("RECEIPT_POLL_LATENCY", "0.5")),
        )

        indexer = IndexerConfig(
            api_url=os.environ.get("INDEXER_API_URL") or None,
            timeout=float(os.environ.get("INDEXER_TIMEOUT", "10")),
        )

        server = ServerConfig(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "7777")),
        )

        return cls(chain=chain, submission=submission, indexer=indexer, server=server)

    def log_config(self) -> None:
        """Log configuration settings (hiding sensitive data)."""
        logger.info("=" * 60)
        logger.info("Sloth Relayer Configuration")
        logger.info("=" * 60)

        logger.info("Chain:")
        logger.info(f"  RPC URL: {self.chain.rpc_url}")
        logger.info(f"  Factory: {self.chain.factory_address}")
        logger.info("  Relayer Key: [CONFIGURED]")

        logger.info("Submission:")
        logger.info(f"  Gas Limit: {self.submission.gas_limit}")
        logger.info(f"  Receipt Timeout: {self.submission.receipt_timeout} seconds")

        logger.info("Indexer:")
        logger.info(f"  API URL: {self.indexer.api_url or '[DISABLED]'}")
        logger.info(f"  Timeout: {self.indexer.timeout} seconds")

        logger.info(f"Server: {self.server.host}:{self.server.port}")
        logger.info("=" * 60)
