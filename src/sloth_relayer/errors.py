"""
Error taxonomy for the Sloth relayer.

Every failure the relay pipeline can hit maps to one of these classes. The
router turns them into a structured ``{"success": false, "error": ...}`` body
with the status code carried by the exception.
"""


class RelayError(Exception):
    """Base class for errors that abort a relay request."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class RequestShapeError(RelayError):
    """Unknown ``type`` discriminator or malformed request fields."""


class VerificationFailure(RelayError):
    """The contract's verification view rejected the signature."""


class TransportFault(RelayError):
    """Node unreachable or a call-level exception during verify/submit/wait."""

    status_code = 500


class InclusionTimeout(TransportFault):
    """The transaction was not included within the receipt timeout."""


class ChainRevertError(RelayError):
    """Transaction was included with status 0, or rejected by the contract."""


class EventNotFoundError(RelayError):
    """A mandatory event is missing from a successful transaction's logs."""


class EventDecodeError(RelayError):
    """A matching log could not be decoded into the event's fields."""


class NotificationError(Exception):
    """A downstream indexer post failed. Logged only, never returned to callers."""
