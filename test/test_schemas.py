"""Unit tests for relay request parsing."""

import pytest
from hexbytes import HexBytes

from sloth_relayer.errors import RequestShapeError
from sloth_relayer.schemas import (
    BuyRequest,
    CreateTokenRequest,
    SellRequest,
    parse_relay_request,
)

from conftest import OTHER, R, S, SLOTH, USER, buy_body, create_body, sell_body, signature_body


class TestParseRelayRequest:
    """Test suite for the request union."""

    def test_sell_request(self):
        request = parse_relay_request(sell_body())

        assert isinstance(request, SellRequest)
        assert request.sloth_contract_address == SLOTH
        assert request.seller == USER
        assert request.token_amount == 1000
        assert request.nonce == 7
        assert request.deadline == 4102444800
        assert request.label == "sell"

    def test_buy_request(self):
        request = parse_relay_request(buy_body())

        assert isinstance(request, BuyRequest)
        assert request.recipient == OTHER
        assert request.native_amount == 10**18

    def test_create_request_with_metadata(self):
        request = parse_relay_request(create_body(initial_deposit=5 * 10**17))

        assert isinstance(request, CreateTokenRequest)
        assert request.params.as_struct() == ("Sloth Coin", "SLOTH", 42, 5 * 10**17)
        assert request.params.categories == ["meme", "animals"]
        assert request.params.image_url == "ipfs://bafy-sloth"

    def test_create_metadata_defaults(self):
        body = create_body()
        body["params"] = {"name": "A", "symbol": "B", "tokenId": 1}

        request = parse_relay_request(body)

        assert request.params.initial_deposit == 0
        assert request.params.categories == []
        assert request.params.description == ""

    def test_addresses_are_checksummed(self):
        request = parse_relay_request(sell_body(seller=USER.lower(), slothContractAddress=SLOTH.lower()))

        assert request.seller == USER
        assert request.sloth_contract_address == SLOTH

    def test_large_integers_survive(self):
        amount = 2**255 + 1
        request = parse_relay_request(sell_body(tokenAmount=str(amount)))

        assert request.token_amount == amount

    def test_unknown_fields_ignored(self):
        request = parse_relay_request(sell_body(extra="ignored"))

        assert isinstance(request, SellRequest)

    @pytest.mark.parametrize("kind", ["transfer", None, "", "SELL"])
    def test_unknown_type(self, kind):
        with pytest.raises(RequestShapeError, match="Invalid request type"):
            parse_relay_request(sell_body(type=kind))

    def test_missing_type(self):
        body = sell_body()
        del body["type"]

        with pytest.raises(RequestShapeError, match="Invalid request type"):
            parse_relay_request(body)

    def test_non_object_body(self):
        with pytest.raises(RequestShapeError, match="JSON object"):
            parse_relay_request(["sell"])

    def test_invalid_address(self):
        with pytest.raises(RequestShapeError, match="seller") as exc_info:
            parse_relay_request(sell_body(seller="0xBBB"))

        assert exc_info.value.status_code == 400

    def test_negative_amount(self):
        with pytest.raises(RequestShapeError, match="tokenAmount"):
            parse_relay_request(sell_body(tokenAmount="-1"))

    def test_missing_field(self):
        body = buy_body()
        del body["nativeAmount"]

        with pytest.raises(RequestShapeError, match="nativeAmount"):
            parse_relay_request(body)


class TestSignature:
    """Test suite for the signature triple."""

    def test_as_tuple(self):
        request = parse_relay_request(sell_body())

        v, r, s = request.signature.as_tuple()
        assert v == 27
        assert r == HexBytes(R)
        assert s == HexBytes(S)

    @pytest.mark.parametrize("v,expected", [(0, 27), (1, 28), (27, 27), (28, 28)])
    def test_v_normalised(self, v, expected):
        request = parse_relay_request(sell_body(signature=signature_body(v=v)))

        assert request.signature.v == expected

    def test_invalid_v(self):
        with pytest.raises(RequestShapeError, match="signature.v"):
            parse_relay_request(sell_body(signature=signature_body(v=29)))

    def test_short_r(self):
        with pytest.raises(RequestShapeError, match="signature.r"):
            parse_relay_request(sell_body(signature={"v": 27, "r": "0x1234", "s": S}))

    @pytest.mark.parametrize("scalar", [
        "0x" + "1_" * 31 + "11",
        "0x" + "1" * 63 + " ",
        " 0x" + "1" * 63,
        "0x" + "g" * 64,
        "1" * 66,
    ])
    def test_malformed_scalar_of_full_length(self, scalar):
        with pytest.raises(RequestShapeError, match="signature.s"):
            parse_relay_request(sell_body(signature={"v": 27, "r": R, "s": scalar}))

    def test_uppercase_scalar_lowercased(self):
        request = parse_relay_request(sell_body(signature={"v": 27, "r": "0x" + "AB" * 32, "s": S}))

        assert request.signature.r == "0x" + "ab" * 32
