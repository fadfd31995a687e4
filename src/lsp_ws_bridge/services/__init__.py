"""
Services du bridge LSP WebSocket.
"""

from .backend_process import (
    BackendCommand,
    BackendProcess,
    build_backend_command,
    build_backend_env,
)
from .session_registry import SessionRegistry

__all__ = [
    "BackendCommand",
    "BackendProcess",
    "build_backend_command",
    "build_backend_env",
    "SessionRegistry",
]
