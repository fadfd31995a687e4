"""
Cœur du bridge LSP WebSocket.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    BridgeError,
    ConfigurationError,
    BackendSpawnError,
    FramingError,
    EnvelopeError,
)
from .envelope import (
    MISSING,
    Envelope,
    RequestMessage,
    NotificationMessage,
    ResponseMessage,
    parse_envelope,
    envelope_to_dict,
    decode_envelope,
    encode_envelope,
)

__all__ = [
    "BridgeError",
    "ConfigurationError",
    "BackendSpawnError",
    "FramingError",
    "EnvelopeError",
    "MISSING",
    "Envelope",
    "RequestMessage",
    "NotificationMessage",
    "ResponseMessage",
    "parse_envelope",
    "envelope_to_dict",
    "decode_envelope",
    "encode_envelope",
]
