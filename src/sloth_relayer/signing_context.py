import asyncio
import functools
import json
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder

ABI_DIR = Path(__file__).parent / "abi"


class SigningContext:
    """
    The relayer's long-lived credential and its connection to the chain node.

    Built once at process start and handed to every component that reads from
    or submits to the chain. Transactions sent through ``w3`` are signed
    locally by the signing middleware and paid for by ``address``.
    """

    def __init__(self, rpc_url: str, secret: str) -> None:
        """
        Initialize the SigningContext.

        Args:
            rpc_url: RPC URL of the chain node (required)
            secret: Relayer private key (required)
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")
        if not secret:
            raise ValueError("Private key is required for signing transactions")

        self.rpc_url = rpc_url
        self.w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))

        account: LocalAccount = Account.from_key(secret)
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(account))
        self.w3.eth.default_account = account.address
        self.address: str = account.address

        # Serialises sends from this account so concurrent requests do not
        # race for the same pending nonce.
        self.submission_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Any) -> "SigningContext":
        return cls(rpc_url=config.chain.rpc_url, secret=config.chain.private_key)

    @staticmethod
    @functools.cache
    def get_contract_abi(contract_name: str) -> list[dict[str, Any]]:
        """Fetches ABI of the given contract from the bundled abi folder.

        Each file is read once per process; later calls return the same list.

        Args:
            contract_name: Name of the contract (without .json extension)

        Returns:
            List of ABI dictionaries for the contract

        Raises:
            FileNotFoundError: If the contract file doesn't exist
            json.JSONDecodeError: If the contract file is invalid JSON
        """
        contract_path: Path = (ABI_DIR / f"{contract_name}.json").resolve()

        with contract_path.open() as file:
            contract_data: dict[str, Any] = json.load(file)

        return contract_data["abi"]
