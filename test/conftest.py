"""Shared test helpers: stub contracts, hand-built logs and receipts."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

RELAYER = Web3.to_checksum_address("0x" + "11" * 20)
FACTORY = Web3.to_checksum_address("0x" + "fa" * 20)
SLOTH = Web3.to_checksum_address("0x" + "aa" * 20)
TOKEN = Web3.to_checksum_address("0x" + "70" * 20)
USER = Web3.to_checksum_address("0x" + "bb" * 20)
OTHER = Web3.to_checksum_address("0x" + "cc" * 20)

TX_HASH = HexBytes("0x" + "ab" * 32)
TX_HASH_HEX = "0x" + "ab" * 32

R = "0x" + "12" * 32
S = "0x" + "34" * 32

SLOTH_CREATED_SIG = "SlothCreated(address,address,address,uint256,uint256,uint256,uint256,uint256,bool,address)"
TOKEN_BOUGHT_SIG = "TokenBought(address,address,uint256,uint256)"
TOKEN_SOLD_SIG = "TokenSold(address,address,uint256,uint256)"

TRANSACT_METHODS = ("createWithPermitRelayer", "buyWithPermitRelayer", "sellWithPermitRelayer")


def address_topic(address: str) -> HexBytes:
    return HexBytes(encode(["address"], [address]))


def sloth_created_log(
    token: str = TOKEN,
    sloth: str = SLOTH,
    creator: str = USER,
    total_supply: int = 1_000_000_000 * 10**18,
    sale_amount: int = 800_000_000 * 10**18,
    token_offset: int = 1_073_000_000 * 10**18,
    native_offset: int = 30 * 10**18,
    token_id: int = 42,
    whitelist: bool = False,
    factory: str = FACTORY,
    log_index: int = 0,
) -> dict[str, Any]:
    return {
        "address": FACTORY,
        "logIndex": log_index,
        "topics": [
            HexBytes(Web3.keccak(text=SLOTH_CREATED_SIG)),
            address_topic(token),
            address_topic(sloth),
            address_topic(creator),
        ],
        "data": HexBytes(encode(
            ["uint256", "uint256", "uint256", "uint256", "uint256", "bool", "address"],
            [total_supply, sale_amount, token_offset, native_offset, token_id, whitelist, factory],
        )),
    }


def trade_log(
    signature: str,
    actor: str = USER,
    recipient: str = USER,
    first_amount: int = 10**18,
    second_amount: int = 5 * 10**18,
    address: str = SLOTH,
    log_index: int = 1,
) -> dict[str, Any]:
    return {
        "address": address,
        "logIndex": log_index,
        "topics": [
            HexBytes(Web3.keccak(text=signature)),
            address_topic(actor),
            address_topic(recipient),
        ],
        "data": HexBytes(encode(["uint256", "uint256"], [first_amount, second_amount])),
    }


def transfer_log(log_index: int = 0) -> dict[str, Any]:
    return {
        "address": TOKEN,
        "logIndex": log_index,
        "topics": [
            HexBytes(Web3.keccak(text="Transfer(address,address,uint256)")),
            address_topic(SLOTH),
            address_topic(USER),
        ],
        "data": HexBytes(encode(["uint256"], [123])),
    }


def make_receipt(logs: list[dict[str, Any]], status: int = 1, block_number: int = 777) -> dict[str, Any]:
    return {
        "transactionHash": TX_HASH,
        "blockNumber": block_number,
        "status": status,
        "logs": logs,
    }


def make_binding(address: str, views: dict[str, Any] | None = None, tx_hash: HexBytes = TX_HASH) -> MagicMock:
    """A stub contract binding.

    ``views`` maps a view method name to its return value, or to an
    exception instance the call should raise.
    """
    binding = MagicMock()
    binding.address = address
    for method, result in (views or {}).items():
        fn = getattr(binding.functions, method)
        if isinstance(result, BaseException):
            fn.return_value.call = AsyncMock(side_effect=result)
        else:
            fn.return_value.call = AsyncMock(return_value=result)
    for method in TRANSACT_METHODS:
        getattr(binding.functions, method).return_value.transact = AsyncMock(return_value=tx_hash)
    return binding


def make_context(receipt: dict[str, Any] | None = None) -> MagicMock:
    context = MagicMock()
    context.address = RELAYER
    context.submission_lock = asyncio.Lock()
    context.w3.eth.wait_for_transaction_receipt = AsyncMock(return_value=receipt or make_receipt([]))
    return context


def signature_body(v: int = 27) -> dict[str, Any]:
    return {"v": v, "r": R, "s": S}


def sell_body(**overrides: Any) -> dict[str, Any]:
    body = {
        "type": "sell",
        "slothContractAddress": SLOTH,
        "seller": USER,
        "recipient": USER,
        "tokenAmount": "1000",
        "nonce": "7",
        "deadline": "4102444800",
        "signature": signature_body(),
    }
    body.update(overrides)
    return body


def buy_body(**overrides: Any) -> dict[str, Any]:
    body = {
        "type": "buy",
        "slothContractAddress": SLOTH,
        "buyer": USER,
        "recipient": OTHER,
        "nativeAmount": str(10**18),
        "nonce": "3",
        "deadline": "4102444800",
        "signature": signature_body(),
    }
    body.update(overrides)
    return body


def create_body(initial_deposit: int = 0, **overrides: Any) -> dict[str, Any]:
    body = {
        "type": "create-token",
        "creator": USER,
        "params": {
            "name": "Sloth Coin",
            "symbol": "SLOTH",
            "tokenId": "42",
            "initialDeposit": str(initial_deposit),
            "twitter": "https://x.com/slothcoin",
            "telegram": "https://t.me/slothcoin",
            "website": "https://sloth.example",
            "categories": ["meme", "animals"],
            "imageUrl": "ipfs://bafy-sloth",
            "description": "Slow and steady",
        },
        "nonce": "1",
        "deadline": "4102444800",
        "signature": signature_body(),
    }
    body.update(overrides)
    return body


def mock_client_factory(handler):
    """Patch target that builds real AsyncClients over a MockTransport."""
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(handler)
    return lambda **kwargs: real_client(transport=transport, **kwargs)
