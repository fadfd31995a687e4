"""
Transport JSON-RPC côté backend: framing LSP `Content-Length` sur stdio.

    Content-Length: <N>\\r\\n
    \\r\\n
    <N octets de JSON UTF-8>
"""
import asyncio
import json
from typing import Dict, Optional

from ..core.constants import HEADER_TERMINATOR, CONTENT_LENGTH_HEADER
from ..core.envelope import Envelope, decode_envelope, envelope_to_dict
from ..core.exceptions import FramingError


def encode_frame(payload: Dict) -> bytes:
    """Encode un objet JSON avec son en-tête Content-Length."""
    body = json.dumps(payload, separators=(",", ":")).encode("ascii")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


def parse_headers(header_blob: bytes) -> Dict[str, str]:
    """Parse le bloc d'en-têtes (noms en minuscules)."""
    headers: Dict[str, str] = {}
    for raw_line in header_blob.decode("ascii", errors="replace").split("\r\n"):
        if ":" not in raw_line:
            continue
        key, value = raw_line.split(":", 1)
        headers[key.strip().lower()] = value.strip()
    return headers


def content_length(headers: Dict[str, str]) -> int:
    raw = headers.get(CONTENT_LENGTH_HEADER)
    if raw is None:
        raise FramingError("En-tête Content-Length absent", header=repr(headers))
    try:
        length = int(raw)
    except ValueError:
        raise FramingError(f"Content-Length invalide: {raw!r}", header=raw)
    if length < 0:
        raise FramingError(f"Content-Length négatif: {length}", header=raw)
    return length


class StreamMessageReader:
    """Lit des messages LSP framés depuis un asyncio.StreamReader (stdout du backend)."""

    def __init__(self, reader: asyncio.StreamReader):
        self._reader = reader

    async def read_body(self) -> Optional[bytes]:
        """
        Lit le corps brut du prochain message.

        Returns:
            Corps JSON (bytes), ou None en fin de flux propre

        Raises:
            FramingError: Flux interrompu au milieu d'un message ou en-tête invalide
        """
        try:
            header_blob = await self._reader.readuntil(HEADER_TERMINATOR)
        except asyncio.IncompleteReadError as e:
            if not e.partial.strip():
                return None
            raise FramingError("Flux interrompu au milieu d'un en-tête", header=e.partial.decode("ascii", "replace"))
        except asyncio.LimitOverrunError as e:
            raise FramingError(f"En-tête trop long: {e}")

        length = content_length(parse_headers(header_blob[: -len(HEADER_TERMINATOR)]))
        try:
            return await self._reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise FramingError(f"Corps tronqué: {len(e.partial)}/{length} octets")

    async def read(self) -> Optional[Envelope]:
        """
        Lit et décode le prochain message.

        Raises:
            FramingError: Framing cassé (fatal pour la session)
            EnvelopeError: Corps non décodable (le flux reste synchronisé)
        """
        body = await self.read_body()
        if body is None:
            return None
        return decode_envelope(body)


class StreamMessageWriter:
    """Écrit des messages LSP framés vers un asyncio.StreamWriter (stdin du backend)."""

    def __init__(self, writer: asyncio.StreamWriter):
        self._writer = writer

    async def write(self, envelope: Envelope) -> None:
        self._writer.write(encode_frame(envelope_to_dict(envelope)))
        await self._writer.drain()

    async def close(self) -> None:
        try:
            self._writer.close()
            await self._writer.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            pass
