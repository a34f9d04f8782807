"""
Event extraction from transaction receipts.

Logs are matched by their first topic against the keccak-256 hash of the
event's canonical signature, then decoded positionally: indexed inputs from
the remaining topics, everything else from the log data.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from eth_abi import decode as abi_decode
from hexbytes import HexBytes
from web3 import Web3

from .errors import EventDecodeError, EventNotFoundError
from .models import DecodedEvent
from .signing_context import SigningContext

logger = logging.getLogger(__name__)

SLOTH_CREATED = "SlothCreated"
TOKEN_BOUGHT = "TokenBought"
TOKEN_SOLD = "TokenSold"

# Minimum decoded arguments before an event is considered usable
MIN_FIELDS: dict[str, int] = {
    SLOTH_CREATED: 10,
    TOKEN_BOUGHT: 4,
    TOKEN_SOLD: 4,
}


def to_bytes_safe(value: Union[HexBytes, bytes, str]) -> bytes:
    """Convert HexBytes, bytes or a hex string to bytes."""
    if isinstance(value, (HexBytes, bytes)):
        return bytes(value)
    return Web3.to_bytes(hexstr=value)


@dataclass(frozen=True, slots=True)
class EventSchema:
    """Name and ordered inputs of one event.

    Attributes:
        name: Event name
        inputs: ``(name, type, indexed)`` per input, in declaration order
        min_fields: Fewer decoded arguments than this is a decode error
    """

    name: str
    inputs: tuple[tuple[str, str, bool], ...]
    min_fields: int = 0

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any]) -> "EventSchema":
        name = entry["name"]
        inputs = tuple(
            (item["name"], item["type"], bool(item.get("indexed", False)))
            for item in entry.get("inputs", [])
        )
        return cls(name=name, inputs=inputs, min_fields=MIN_FIELDS.get(name, len(inputs)))

    @property
    def signature(self) -> str:
        """Canonical signature, e.g. ``TokenBought(address,address,uint256,uint256)``."""
        return f"{self.name}({','.join(abi_type for _, abi_type, _ in self.inputs)})"

    @property
    def topic(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature))


def load_event_schemas(contract_names: Iterable[str] = ("SlothFactory", "Sloth")) -> dict[str, EventSchema]:
    """Collect event schemas from the bundled ABIs, first definition wins."""
    schemas: dict[str, EventSchema] = {}
    for contract_name in contract_names:
        for entry in SigningContext.get_contract_abi(contract_name):
            if entry.get("type") == "event" and entry["name"] not in schemas:
                schemas[entry["name"]] = EventSchema.from_abi(entry)
    return schemas


class EventExtractor:
    """Finds and decodes known events in transaction receipts."""

    def __init__(self, schemas: Mapping[str, EventSchema] | None = None) -> None:
        self.schemas: dict[str, EventSchema] = dict(schemas) if schemas is not None else load_event_schemas()

    def schema(self, event_name: str) -> EventSchema:
        try:
            return self.schemas[event_name]
        except KeyError:
            raise ValueError(f"Unknown event: {event_name}") from None

    def topic(self, event_name: str) -> bytes:
        return self.schema(event_name).topic

    def find(self, receipt: Mapping[str, Any], event_name: str) -> DecodedEvent | None:
        """
        Return the first log in ``receipt`` matching ``event_name``, decoded.

        Args:
            receipt: Transaction receipt with a ``logs`` list
            event_name: Name of a known event

        Returns:
            The decoded event, or None if no log carries the event's topic

        Raises:
            EventDecodeError: If the matching log cannot be decoded
        """
        schema = self.schema(event_name)
        expected_topic = schema.topic

        for i, log in enumerate(receipt.get('logs') or []):
            topics = log.get('topics') or []
            if not topics:
                continue
            if to_bytes_safe(topics[0]) != expected_topic:
                continue

            log_index = log.get('logIndex', i)
            logger.debug(f"Found {event_name} at log index {log_index}")
            return self.decode(log, schema, log_index)

        return None

    def require(self, receipt: Mapping[str, Any], event_name: str) -> DecodedEvent:
        """
        Like :meth:`find`, but a missing event is an error.

        Raises:
            EventNotFoundError: If no log carries the event's topic
        """
        event = self.find(receipt, event_name)
        if event is None:
            match receipt.get('transactionHash'):
                case None:
                    tx_hex = "unknown"
                case str() as tx_hex:
                    pass
                case tx_hash:
                    tx_hex = Web3.to_hex(tx_hash)
            raise EventNotFoundError(f"{event_name} event not found in transaction {tx_hex}")
        return event

    def decode(self, log: Mapping[str, Any], schema: EventSchema, log_index: int = 0) -> DecodedEvent:
        """Decode one log entry according to ``schema``."""
        topics = [to_bytes_safe(t) for t in log.get('topics') or []]
        indexed = [(name, abi_type) for name, abi_type, is_indexed in schema.inputs if is_indexed]
        unindexed = [(name, abi_type) for name, abi_type, is_indexed in schema.inputs if not is_indexed]

        if len(topics) - 1 != len(indexed):
            raise EventDecodeError(
                f"{schema.name} log has {len(topics) - 1} indexed topics, expected {len(indexed)}"
            )

        try:
            indexed_values = [
                abi_decode([abi_type], topic)[0]
                for (_, abi_type), topic in zip(indexed, topics[1:])
            ]
            data_values = abi_decode(
                [abi_type for _, abi_type in unindexed],
                to_bytes_safe(log.get('data') or b''),
            )
        except Exception as e:
            raise EventDecodeError(f"Failed to decode {schema.name} log: {e}") from e

        decoded: dict[str, Any] = {}
        by_name = dict(zip([name for name, _ in indexed], indexed_values))
        by_name.update(zip([name for name, _ in unindexed], data_values))
        for name, abi_type, _ in schema.inputs:
            value = by_name[name]
            if abi_type == "address":
                value = Web3.to_checksum_address(value)
            decoded[name] = value

        if len(decoded) < schema.min_fields:
            raise EventDecodeError(
                f"{schema.name} decoded {len(decoded)} fields, expected at least {schema.min_fields}"
            )

        address = log.get('address') or ""
        return DecodedEvent(
            name=schema.name,
            args=decoded,
            address=Web3.to_checksum_address(address) if address else "",
            log_index=log_index,
        )
