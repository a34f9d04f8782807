"""
Relay router.

This module dispatches one relay request through its pipeline:
verify -> submit -> wait for inclusion -> extract events -> notify.
Notification work is scheduled only after the response is decided.
"""

import logging
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any, Optional, assert_never

from web3.types import TxReceipt

from .contract_binding import ContractBinding
from .errors import EventDecodeError, EventNotFoundError, RelayError, VerificationFailure
from .event_extractor import SLOTH_CREATED, TOKEN_BOUGHT, TOKEN_SOLD, EventExtractor
from .models import DecodedEvent, RelayResponse
from .notification_forwarder import (
    NotificationForwarder,
    build_token_payload,
    build_trade_payload,
)
from .schemas import BuyRequest, CreateTokenRequest, SellRequest, TokenParams, parse_relay_request
from .signature_verifier import SignatureVerifier
from .signing_context import SigningContext
from .transaction_submitter import TransactionSubmitter

if TYPE_CHECKING:
    from .config import RelayerConfig

logger = logging.getLogger(__name__)

Work = Coroutine[Any, Any, Any]


def _jsonable(value: Any) -> Any:
    # uint256 values do not fit a JSON number safely
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return value


def _trade_fields(event: DecodedEvent) -> dict[str, Any]:
    return {name: _jsonable(value) for name, value in event.args.items()}


def _created_fields(event: DecodedEvent) -> dict[str, Any]:
    return {
        "tokenAddress": event["token"],
        "slothAddress": event["sloth"],
        "creator": event["creator"],
        "totalSupply": _jsonable(event["totalSupply"]),
        "saleAmount": _jsonable(event["saleAmount"]),
        "tokenOffset": _jsonable(event["tokenOffset"]),
        "nativeOffset": _jsonable(event["nativeOffset"]),
        "tokenId": _jsonable(event["tokenId"]),
        "whitelistEnabled": bool(event["whitelistEnabled"]),
        "factoryAddress": event["factory"],
    }


class RelayRouter:
    """Top-level dispatcher for relay requests."""

    def __init__(
        self,
        context: SigningContext,
        factory_address: str,
        verifier: SignatureVerifier | None = None,
        submitter: TransactionSubmitter | None = None,
        extractor: EventExtractor | None = None,
        forwarder: NotificationForwarder | None = None,
    ) -> None:
        """
        Initialize the router.

        Args:
            context: Process-wide signing context
            factory_address: Sloth factory contract that handles create-token
            verifier: Signature verifier (built from ``context`` if omitted)
            submitter: Transaction submitter (built from ``context`` if omitted)
            extractor: Event extractor (loads bundled ABIs if omitted)
            forwarder: Indexer forwarder (disabled if omitted)
        """
        self.context = context
        self.factory_address = factory_address
        self.verifier = verifier or SignatureVerifier(context)
        self.submitter = submitter or TransactionSubmitter(context)
        self.extractor = extractor or EventExtractor()
        self.forwarder = forwarder or NotificationForwarder(api_url=None)

    @classmethod
    def from_config(
        cls,
        config: "RelayerConfig",
        context: Optional[SigningContext] = None,
    ) -> "RelayRouter":
        context = context or SigningContext.from_config(config)
        return cls(
            context=context,
            factory_address=config.chain.factory_address,
            verifier=SignatureVerifier(context),
            submitter=TransactionSubmitter(
                context,
                gas_limit=config.submission.gas_limit,
                receipt_timeout=config.submission.receipt_timeout,
                poll_latency=config.submission.poll_latency,
            ),
            extractor=EventExtractor(),
            forwarder=NotificationForwarder.from_config(config),
        )

    async def relay(self, body: Any) -> RelayResponse:
        """
        Run one relay request to completion.

        Args:
            body: Decoded JSON request body

        Returns:
            The response to send; errors are returned, not raised
        """
        work: list[Work] = []
        try:
            request = parse_relay_request(body)
            logger.info(f"Relay {request.type} received, nonce={request.nonce}")

            match request:
                case CreateTokenRequest():
                    response, work = await self._relay_create(request)
                case BuyRequest():
                    response, work = await self._relay_buy(request)
                case SellRequest():
                    response, work = await self._relay_sell(request)
                case _:
                    assert_never(request)

        except (EventNotFoundError, EventDecodeError) as e:
            logger.error(f"Transaction succeeded on-chain but {e.message}; needs operator investigation")
            return RelayResponse.error(e.message, e.status_code)
        except RelayError as e:
            logger.warning(f"Relay failed: {e.message}")
            return RelayResponse.error(e.message, e.status_code)
        except Exception as e:
            logger.error(f"Unexpected relay error: {e}", exc_info=True)
            return RelayResponse.error("Internal relay error", 500)

        for item in work:
            self.forwarder.dispatch(item)

        logger.info(f"Relay {request.type} responded success={response.success} tx={response.body.get('txHash')}")
        return response

    def _bind(self, contract_name: str, address: str) -> ContractBinding:
        return ContractBinding(self.context, contract_name, address)

    async def _verify(
        self,
        request: CreateTokenRequest | BuyRequest | SellRequest,
        binding: ContractBinding,
    ) -> None:
        if not await self.verifier.verify(request, binding):
            raise VerificationFailure(f"Invalid {request.label} signature")
        logger.debug(f"Relay {request.type} verified")

    def _find_optional(self, receipt: TxReceipt, event_name: str) -> DecodedEvent | None:
        try:
            return self.extractor.find(receipt, event_name)
        except EventDecodeError as e:
            logger.warning(f"Ignoring undecodable optional event: {e.message}")
            return None

    async def _relay_create(self, request: CreateTokenRequest) -> tuple[RelayResponse, list[Work]]:
        factory = self._bind(ContractBinding.FACTORY, self.factory_address)
        await self._verify(request, factory)

        tx_hash, receipt = await self.submitter.submit_and_wait(request, factory)
        created = self.extractor.require(receipt, SLOTH_CREATED)
        logger.info(f"Sloth created: token={created['token']} sloth={created['sloth']}")

        # The initial buy only happens when a deposit was attached
        initial_buy = None
        if request.params.initial_deposit > 0:
            initial_buy = self._find_optional(receipt, TOKEN_BOUGHT)
            if initial_buy is None:
                logger.warning(f"No {TOKEN_BOUGHT} event in {tx_hash} despite initial deposit")

        fields = {"blockNumber": receipt.get('blockNumber'), **_created_fields(created)}
        work: list[Work] = [self._notify_created(created, request.params, tx_hash)]
        if initial_buy is not None:
            fields["initialBuy"] = _trade_fields(initial_buy)
            work.append(
                self._notify_trade("buy", initial_buy, created["sloth"], tx_hash, token_address=created["token"])
            )

        return RelayResponse.ok(tx_hash, **fields), work

    async def _relay_buy(self, request: BuyRequest) -> tuple[RelayResponse, list[Work]]:
        return await self._relay_trade(request, "buy", TOKEN_BOUGHT)

    async def _relay_sell(self, request: SellRequest) -> tuple[RelayResponse, list[Work]]:
        return await self._relay_trade(request, "sell", TOKEN_SOLD)

    async def _relay_trade(
        self,
        request: BuyRequest | SellRequest,
        kind: str,
        event_name: str,
    ) -> tuple[RelayResponse, list[Work]]:
        sloth = self._bind(ContractBinding.SLOTH, request.sloth_contract_address)
        await self._verify(request, sloth)

        tx_hash, receipt = await self.submitter.submit_and_wait(request, sloth)

        fields: dict[str, Any] = {"blockNumber": receipt.get('blockNumber')}
        work: list[Work] = []
        if (event := self._find_optional(receipt, event_name)) is not None:
            fields.update(_trade_fields(event))
            work.append(self._notify_trade(kind, event, sloth.address, tx_hash))
        else:
            logger.warning(f"No {event_name} event in {tx_hash}, skipping trade notification")

        return RelayResponse.ok(tx_hash, **fields), work

    async def _notify_created(self, event: DecodedEvent, params: TokenParams, tx_hash: str) -> None:
        await self.forwarder.post_token(build_token_payload(event, params, tx_hash))

    async def _notify_trade(
        self,
        kind: str,
        event: DecodedEvent,
        sloth_address: str,
        tx_hash: str,
        token_address: str | None = None,
    ) -> None:
        sloth = self._bind(ContractBinding.SLOTH, sloth_address)
        if token_address is None:
            token_address = await sloth.functions.token().call()
        price = await sloth.functions.getCurrentPrice().call()
        await self.forwarder.post_trade(build_trade_payload(kind, event, token_address, price, tx_hash))
