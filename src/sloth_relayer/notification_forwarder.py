"""
Best-effort notifications to the downstream indexing API.

The chain is the source of truth. A failed post is logged and dropped; it
never changes the relay response.
"""

import asyncio
import json
import logging
from collections.abc import Coroutine
from typing import Any

import httpx
from web3 import Web3

from .errors import NotificationError
from .models import DecodedEvent
from .schemas import TokenParams

logger = logging.getLogger(__name__)


def from_wei(value: int) -> float:
    """Normalise an 18-decimal on-chain amount."""
    return float(Web3.from_wei(value, "ether"))


def build_token_payload(event: DecodedEvent, params: TokenParams, tx_hash: str) -> dict[str, Any]:
    """Token-creation record from a decoded ``SlothCreated`` event."""
    return {
        "tokenAddress": event["token"],
        "slothAddress": event["sloth"],
        "creator": event["creator"],
        "name": params.name,
        "symbol": params.symbol,
        "tokenId": str(event["tokenId"]),
        "totalSupply": str(event["totalSupply"]),
        "saleAmount": str(event["saleAmount"]),
        "tokenOffset": str(event["tokenOffset"]),
        "nativeOffset": str(event["nativeOffset"]),
        "whitelistEnabled": bool(event["whitelistEnabled"]),
        "factoryAddress": event["factory"],
        "twitter": params.twitter,
        "telegram": params.telegram,
        "website": params.website,
        "categories": list(params.categories),
        "imageUrl": params.image_url,
        "description": params.description,
        "txHash": tx_hash,
    }


def build_trade_payload(
    kind: str,
    event: DecodedEvent,
    token_address: str,
    price: int,
    tx_hash: str,
) -> dict[str, Any]:
    """Trade record from a decoded ``TokenBought`` or ``TokenSold`` event."""
    user = event.args.get("buyer") or event.args.get("seller")
    return {
        "type": kind,
        "user": user,
        "recipient": event["recipient"],
        "tokenAddress": token_address,
        "amountToken": from_wei(event["tokenAmount"]),
        "amount": from_wei(event["nativeAmount"]),
        "price": from_wei(price),
        "txHash": tx_hash,
    }


class NotificationForwarder:
    """Posts token and trade records to the indexer as background tasks."""

    TOKENS_PATH = "/tokens"
    TRADES_PATH = "/trades"

    def __init__(self, api_url: str | None, timeout: float = 10.0) -> None:
        self.api_url = api_url.rstrip('/') if api_url else None
        self.timeout = timeout
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: Any) -> "NotificationForwarder":
        return cls(api_url=config.indexer.api_url, timeout=config.indexer.timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        if not self.api_url:
            raise NotificationError("Indexer API URL is not configured")

        url = self.api_url + path
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                logger.debug(f"Posting to {url}: {json.dumps(payload)}")
                response = await client.post(url, json=payload)
                response.raise_for_status()
                return response.json() if response.content else None
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationError(f"POST {url} failed: {e}") from e

    async def post_token(self, payload: dict[str, Any]) -> bool:
        """Forward a token-creation record. Returns False on failure."""
        try:
            await self._post(self.TOKENS_PATH, payload)
        except NotificationError as e:
            logger.error(f"Token notification for {payload.get('tokenAddress')} failed: {e}")
            return False
        logger.info(f"Indexed token {payload.get('tokenAddress')}")
        return True

    async def post_trade(self, payload: dict[str, Any]) -> bool:
        """Forward a trade record. Returns False on failure."""
        try:
            await self._post(self.TRADES_PATH, payload)
        except NotificationError as e:
            logger.error(f"Trade notification for {payload.get('txHash')} failed: {e}")
            return False
        logger.info(f"Indexed {payload.get('type')} trade {payload.get('txHash')}")
        return True

    def dispatch(self, work: Coroutine[Any, Any, Any]) -> asyncio.Task | None:
        """
        Run ``work`` in the background, detached from the caller's result.

        Returns:
            The scheduled task, or None if notifications are disabled
        """
        if not self.enabled:
            work.close()
            logger.debug("Indexer not configured, dropping notification")
            return None

        task = asyncio.create_task(self._guard(work))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, work: Coroutine[Any, Any, Any]) -> None:
        try:
            await work
        except Exception as e:
            logger.error(f"Notification task failed: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for every in-flight notification task."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
