"""
Transport JSON-RPC côté client: un message JSON par frame WebSocket.
"""
import logging
from typing import Optional, Union

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

from ..core.envelope import Envelope, decode_envelope, encode_envelope

logger = logging.getLogger(__name__)


class WebSocketMessageReader:
    """Lit les messages du client (frames texte, ou binaires UTF-8)."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def read_raw(self) -> Optional[Union[str, bytes]]:
        """
        Attend la prochaine frame.

        Returns:
            Texte, octets bruts (frame binaire, décodée par `decode_envelope`),
            ou None quand le client s'est déconnecté
        """
        try:
            message = await self._websocket.receive()
        except WebSocketDisconnect:
            return None
        if message["type"] == "websocket.disconnect":
            return None

        text = message.get("text")
        if text is not None:
            return text
        data = message.get("bytes")
        if data is not None:
            return data
        return ""

    async def read(self) -> Optional[Envelope]:
        """
        Lit et décode le prochain message.

        Raises:
            EnvelopeError: Frame non décodable (la connexion reste utilisable)
        """
        raw = await self.read_raw()
        if raw is None:
            return None
        return decode_envelope(raw)


class WebSocketMessageWriter:
    """Écrit les messages vers le client."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def write(self, envelope: Envelope) -> None:
        await self._websocket.send_text(encode_envelope(envelope))

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def close(self, code: int, reason: str = "") -> None:
        """Ferme la connexion si elle est encore ouverte."""
        if not self.is_open:
            return
        try:
            await self._websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            # Fermeture concurrente côté client
            logger.debug("Fermeture WebSocket ignorée: %s", e)
