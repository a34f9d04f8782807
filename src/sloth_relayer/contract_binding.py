"""
Typed handles on the deployed Sloth contracts.
"""

import logging
from typing import Any

from web3 import Web3
from web3.contract import AsyncContract

from .signing_context import SigningContext

logger = logging.getLogger(__name__)


class ContractBinding:
    """A deployed contract's callable surface bound to one address."""

    FACTORY = "SlothFactory"
    SLOTH = "Sloth"

    def __init__(self, context: SigningContext, contract_name: str, address: str) -> None:
        """
        Bind a contract ABI to an address.

        Args:
            context: Signing context providing the web3 connection
            contract_name: Name of the bundled ABI (``SlothFactory`` or ``Sloth``)
            address: Deployed contract address
        """
        self.contract_name = contract_name
        self.address: str = Web3.to_checksum_address(address)
        self.abi: list[dict[str, Any]] = context.get_contract_abi(contract_name)
        self.contract: AsyncContract = context.w3.eth.contract(
            address=self.address,
            abi=self.abi
        )
        logger.debug(f"Bound {contract_name} at {self.address}")

    @classmethod
    def factory(cls, context: SigningContext, address: str) -> "ContractBinding":
        return cls(context, cls.FACTORY, address)

    @classmethod
    def sloth(cls, context: SigningContext, address: str) -> "ContractBinding":
        return cls(context, cls.SLOTH, address)

    @property
    def functions(self) -> Any:
        return self.contract.functions

    def __repr__(self) -> str:
        return f"ContractBinding({self.contract_name}@{self.address})"
