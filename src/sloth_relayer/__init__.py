"""
Sloth Relayer package.

Meta-transaction relay service: contract-verified signatures, gas paid by the
relayer, events forwarded to the indexer.
"""

from .config import RelayerConfig
from .event_extractor import EventExtractor
from .models import DecodedEvent, RelayResponse
from .relay_router import RelayRouter
from .signing_context import SigningContext

__all__ = ["RelayerConfig", "RelayRouter", "EventExtractor", "SigningContext", "DecodedEvent", "RelayResponse"]
__version__ = "0.1.0"
