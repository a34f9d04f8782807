"""
Request schemas for the relay endpoint.

The relay body is a tagged union discriminated by ``type``. Wire names are
camelCase; attributes are snake_case with aliases.
"""

import re
from typing import Annotated, Any, ClassVar, Literal, Union

from hexbytes import HexBytes
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from web3 import Web3

from .errors import RequestShapeError


def _checksum_address(value: str) -> str:
    if not Web3.is_address(value):
        raise ValueError(f"invalid address {value!r}")
    return Web3.to_checksum_address(value)


def _to_uint256(value: Any) -> int:
    if isinstance(value, str):
        try:
            value = int(value.strip(), 10)
        except ValueError:
            raise ValueError("must be a decimal integer") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("must be an integer")
    if not 0 <= value < 2**256:
        raise ValueError("must be a uint256")
    return value


Address = Annotated[str, AfterValidator(_checksum_address)]
Uint256 = Annotated[int, PlainValidator(_to_uint256)]

_SCALAR_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")


class Signature(BaseModel):
    """ECDSA signature over the contract's typed-data digest."""

    v: int
    r: str
    s: str

    @field_validator("v")
    @classmethod
    def _normalise_v(cls, v: int) -> int:
        if v in (0, 1):
            return v + 27
        if v not in (27, 28):
            raise ValueError("v must be 27 or 28")
        return v

    @field_validator("r", "s")
    @classmethod
    def _check_scalar(cls, value: str) -> str:
        if not _SCALAR_PATTERN.fullmatch(value):
            raise ValueError("must be a 0x-prefixed 32-byte hex string")
        return value.lower()

    def as_tuple(self) -> tuple[int, HexBytes, HexBytes]:
        return self.v, HexBytes(self.r), HexBytes(self.s)


class TokenParams(BaseModel):
    """Token creation parameters plus free-form listing metadata."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    token_id: Uint256 = Field(alias="tokenId")
    initial_deposit: Uint256 = Field(default=0, alias="initialDeposit")

    twitter: str = ""
    telegram: str = ""
    website: str = ""
    categories: list[str] = Field(default_factory=list)
    image_url: str = Field(default="", alias="imageUrl")
    description: str = ""

    def as_struct(self) -> tuple[str, str, int, int]:
        """The on-chain params struct, in declaration order."""
        return self.name, self.symbol, self.token_id, self.initial_deposit


class _RelayRequestBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    # Used in "Invalid <label> signature" messages
    label: ClassVar[str]

    nonce: Uint256
    deadline: Uint256
    signature: Signature


class CreateTokenRequest(_RelayRequestBase):
    label: ClassVar[str] = "create"

    type: Literal["create-token"]
    creator: Address
    params: TokenParams


class BuyRequest(_RelayRequestBase):
    label: ClassVar[str] = "buy"

    type: Literal["buy"]
    sloth_contract_address: Address = Field(alias="slothContractAddress")
    buyer: Address
    recipient: Address
    native_amount: Uint256 = Field(alias="nativeAmount")


class SellRequest(_RelayRequestBase):
    label: ClassVar[str] = "sell"

    type: Literal["sell"]
    sloth_contract_address: Address = Field(alias="slothContractAddress")
    seller: Address
    recipient: Address
    token_amount: Uint256 = Field(alias="tokenAmount")


RelayRequest = Annotated[
    Union[CreateTokenRequest, BuyRequest, SellRequest],
    Field(discriminator="type"),
]

REQUEST_TYPES = ("create-token", "buy", "sell")

_relay_request_adapter: TypeAdapter[RelayRequest] = TypeAdapter(RelayRequest)


def parse_relay_request(body: Any) -> CreateTokenRequest | BuyRequest | SellRequest:
    """
    Validate a decoded JSON body into one of the request variants.

    Raises:
        RequestShapeError: Unknown ``type`` or invalid fields
    """
    if not isinstance(body, dict):
        raise RequestShapeError("Invalid request: body must be a JSON object")

    if body.get("type") not in REQUEST_TYPES:
        raise RequestShapeError("Invalid request type")

    try:
        return _relay_request_adapter.validate_python(body)
    except ValidationError as e:
        first = e.errors()[0]
        # Drop the union tag pydantic prepends to the location
        location = ".".join(str(part) for part in first["loc"][1:]) or "body"
        raise RequestShapeError(f"Invalid request: {location}: {first['msg']}") from None
