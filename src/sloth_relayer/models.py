"""
Shared data models for the Sloth relayer.

This module contains the immutable records passed between relay components.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class DecodedEvent:
    """An event decoded from a transaction receipt log.

    Attributes:
        name: Event name, e.g. ``SlothCreated``
        args: Decoded arguments in ABI declaration order
        address: Address of the contract that emitted the log
        log_index: Position of the log inside the receipt
    """

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    address: str = ""
    log_index: int = 0

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def positional(self) -> tuple[Any, ...]:
        """Return the decoded values in declaration order."""
        return tuple(self.args.values())


@dataclass(frozen=True, slots=True)
class RelayResponse:
    """Outcome of one relay call, ready to be serialised as the HTTP response."""

    status_code: int
    body: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))

    @classmethod
    def ok(cls, tx_hash: str, **fields: Any) -> "RelayResponse":
        return cls(status_code=200, body={"success": True, "txHash": tx_hash, **fields})

    @classmethod
    def error(cls, message: str, status_code: int = 400) -> "RelayResponse":
        return cls(status_code=status_code, body={"success": False, "error": message})
