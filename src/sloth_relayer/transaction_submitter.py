"""Transaction submission for relayed requests.

This module sends the privileged ``*WithPermitRelayer`` transaction for a
verified request under a fixed gas ceiling, then waits for inclusion.
"""

import asyncio
import logging
from typing import Any, assert_never

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.types import TxReceipt

from .contract_binding import ContractBinding
from .errors import ChainRevertError, InclusionTimeout, TransportFault
from .schemas import BuyRequest, CreateTokenRequest, SellRequest
from .signing_context import SigningContext

logger = logging.getLogger(__name__)


def submission_call(
    request: CreateTokenRequest | BuyRequest | SellRequest,
    relayer: str,
) -> tuple[str, tuple[Any, ...]]:
    """Return the entry point name and its ordered arguments for a request."""
    v, r, s = request.signature.as_tuple()

    match request:
        case CreateTokenRequest():
            return "createWithPermitRelayer", (
                request.creator,
                request.params.as_struct(),
                request.deadline,
                v, r, s,
                request.nonce,
            )
        case BuyRequest():
            return "buyWithPermitRelayer", (
                request.buyer,
                request.recipient,
                request.native_amount,
                request.nonce,
                request.deadline,
                relayer,
                v, r, s,
            )
        case SellRequest():
            return "sellWithPermitRelayer", (
                request.seller,
                request.recipient,
                request.token_amount,
                request.nonce,
                request.deadline,
                relayer,
                v, r, s,
            )
        case _:
            assert_never(request)


class TransactionSubmitter:
    """Submits relayed transactions and waits for their receipts."""

    def __init__(
        self,
        context: SigningContext,
        gas_limit: int = 5_000_000,
        receipt_timeout: float = 120.0,
        poll_latency: float = 0.5,
    ) -> None:
        """
        Initialize the TransactionSubmitter.

        Args:
            context: Signing context that pays for and signs transactions
            gas_limit: Gas ceiling attached to every submission
            receipt_timeout: Seconds to wait for inclusion before giving up
            poll_latency: Seconds between receipt polls
        """
        self.context = context
        self.gas_limit = gas_limit
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency

    async def submit(
        self,
        request: CreateTokenRequest | BuyRequest | SellRequest,
        binding: ContractBinding,
    ) -> HexBytes:
        """
        Send the privileged entry point for ``request``.

        Only call this after the contract has verified the request's signature.

        Returns:
            Hash of the pending transaction

        Raises:
            ChainRevertError: If the node rejects the call as a contract revert
            TransportFault: If sending fails for any other reason
        """
        method, args = submission_call(request, self.context.address)
        logger.info(f"Submitting {method} to {binding.address} with gas={self.gas_limit}")

        try:
            async with self.context.submission_lock:
                tx_hash = await getattr(binding.functions, method)(*args).transact({
                    'gas': self.gas_limit,
                })
        except ContractLogicError as e:
            logger.error(f"✗ {method} rejected by contract: {e}")
            raise ChainRevertError(f"Transaction rejected: {e.message or e}") from e
        except Exception as e:
            logger.error(f"✗ {method} submission failed: {e}")
            raise TransportFault(f"Transaction submission failed: {e}") from e

        tx_hash = HexBytes(tx_hash)
        logger.info(f"✓ Transaction submitted: {Web3.to_hex(tx_hash)}")
        return tx_hash

    async def wait_for_inclusion(self, tx_hash: HexBytes) -> TxReceipt:
        """
        Wait until the node reports the transaction as included.

        Raises:
            InclusionTimeout: If no receipt appears within ``receipt_timeout``
            ChainRevertError: If the receipt reports failure
            TransportFault: If polling for the receipt fails
        """
        tx_hex = Web3.to_hex(tx_hash)
        try:
            receipt: TxReceipt = await self.context.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_latency,
            )
        except (TimeExhausted, asyncio.TimeoutError) as e:
            logger.error(f"Transaction {tx_hex} not included after {self.receipt_timeout}s")
            raise InclusionTimeout(
                f"Transaction {tx_hex} was not included within {self.receipt_timeout} seconds"
            ) from e
        except Exception as e:
            logger.error(f"Waiting for {tx_hex} failed: {e}")
            raise TransportFault(f"Failed to fetch receipt for {tx_hex}: {e}") from e

        if (status := receipt.get('status', 0)) != 1:
            logger.error(f"✗ Transaction {tx_hex} reverted with status={status}")
            raise ChainRevertError(f"Transaction reverted: {tx_hex}")

        logger.info(f"✓ Transaction {tx_hex} confirmed in block {receipt.get('blockNumber')}")
        return receipt

    async def submit_and_wait(
        self,
        request: CreateTokenRequest | BuyRequest | SellRequest,
        binding: ContractBinding,
    ) -> tuple[str, TxReceipt]:
        """Submit ``request`` and return its hex hash and successful receipt."""
        tx_hash = await self.submit(request, binding)
        receipt = await self.wait_for_inclusion(tx_hash)
        return Web3.to_hex(tx_hash), receipt
