"""
Relais LSP: transports, réécritures et sessions.
"""

from .framing import StreamMessageReader, StreamMessageWriter, encode_frame
from .websocket_transport import WebSocketMessageReader, WebSocketMessageWriter
from .rewrite import MessageRewriter, inject_workspace_root, normalize_document_uri
from .relay import SessionStats, pump_client_to_backend, pump_backend_to_client
from .session import BridgeSession

__all__ = [
    "StreamMessageReader",
    "StreamMessageWriter",
    "encode_frame",
    "WebSocketMessageReader",
    "WebSocketMessageWriter",
    "MessageRewriter",
    "inject_workspace_root",
    "normalize_document_uri",
    "SessionStats",
    "pump_client_to_backend",
    "pump_backend_to_client",
    "BridgeSession",
]
