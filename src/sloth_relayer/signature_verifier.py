"""
On-chain signature verification.

Signatures are never checked locally. The target contract's
``verify*SignatureWithRelayer`` view is the only authority, and it must be
called with arguments in exactly the order the contract declares.
"""

import logging
from typing import Any, assert_never

from .contract_binding import ContractBinding
from .errors import TransportFault
from .schemas import BuyRequest, CreateTokenRequest, SellRequest
from .signing_context import SigningContext

logger = logging.getLogger(__name__)


def verification_call(
    request: CreateTokenRequest | BuyRequest | SellRequest,
    relayer: str,
) -> tuple[str, tuple[Any, ...]]:
    """Return the view method name and its ordered arguments for a request."""
    v, r, s = request.signature.as_tuple()

    match request:
        case CreateTokenRequest():
            return "verifyCreateSignatureWithRelayer", (
                request.creator,
                request.params.as_struct(),
                request.deadline,
                v, r, s,
                relayer,
                request.nonce,
            )
        case BuyRequest():
            return "verifyBuySignatureWithRelayer", (
                request.buyer,
                request.recipient,
                request.native_amount,
                request.nonce,
                request.deadline,
                relayer,
                v, r, s,
            )
        case SellRequest():
            return "verifySellSignatureWithRelayer", (
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


class SignatureVerifier:
    """Asks the target contract whether a relay request's signature is valid."""

    def __init__(self, context: SigningContext) -> None:
        self.context = context

    async def verify(
        self,
        request: CreateTokenRequest | BuyRequest | SellRequest,
        binding: ContractBinding,
    ) -> bool:
        """
        Call the contract's verification view for ``request``.

        Args:
            request: The parsed relay request
            binding: Contract the request targets

        Returns:
            True if the contract accepts the signature for this relayer

        Raises:
            TransportFault: If the call itself fails
        """
        method, args = verification_call(request, self.context.address)
        logger.debug(f"Calling {method} on {binding.address}")

        try:
            valid = await getattr(binding.functions, method)(*args).call()
        except Exception as e:
            logger.error(f"{method} call failed on {binding.address}: {e}")
            raise TransportFault(f"Signature verification call failed: {e}") from e

        valid = bool(valid)
        logger.info(f"{method} on {binding.address} returned {valid}")
        return valid
