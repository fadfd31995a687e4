"""
Boucles de relais JSON-RPC (une par direction).

Chaque boucle lit un message, l'écrit de l'autre côté, puis passe au suivant:
l'ordre d'écriture est donc l'ordre d'arrivée. Seul le sens client -> backend
passe par les règles de réécriture.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from ..core.envelope import Envelope, preview
from ..core.exceptions import EnvelopeError
from .rewrite import MessageRewriter, RULE_ROOT_INJECTION

logger = logging.getLogger(__name__)


class MessageReader(Protocol):
    async def read(self) -> Optional[Envelope]: ...


class MessageWriter(Protocol):
    async def write(self, envelope: Envelope) -> None: ...


@dataclass
class SessionStats:
    """Compteurs de trafic d'une session."""
    client_to_backend: int = 0
    backend_to_client: int = 0
    dropped_from_client: int = 0
    dropped_from_backend: int = 0
    rewrites: Dict[str, int] = field(default_factory=dict)

    def record_rewrites(self, rules) -> None:
        for rule in rules:
            self.rewrites[rule] = self.rewrites.get(rule, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_to_backend": self.client_to_backend,
            "backend_to_client": self.backend_to_client,
            "dropped_from_client": self.dropped_from_client,
            "dropped_from_backend": self.dropped_from_backend,
            "rewrites": dict(self.rewrites),
        }


async def pump_client_to_backend(
    reader: MessageReader,
    writer: MessageWriter,
    rewriter: MessageRewriter,
    stats: SessionStats,
    *,
    log_prefix: str = "",
    preview_chars: int = 200,
) -> None:
    """
    Relaie client -> backend jusqu'à la déconnexion du client.

    Les frames non décodables sont ignorées (loggées); une erreur d'écriture
    côté backend remonte à l'appelant.
    """
    while True:
        try:
            envelope = await reader.read()
        except EnvelopeError as e:
            stats.dropped_from_client += 1
            logger.warning("%sMessage client ignoré: %s", log_prefix, e)
            continue
        if envelope is None:
            return

        applied = rewriter.apply(envelope)
        if applied:
            stats.record_rewrites(applied)
            if RULE_ROOT_INJECTION in applied:
                logger.info("%sConfiguration projet injectée: rootUri=%s", log_prefix, envelope.params["rootUri"])

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s→ Client vers backend: %s", log_prefix, preview(envelope, preview_chars))

        await writer.write(envelope)
        stats.client_to_backend += 1


async def pump_backend_to_client(
    reader: MessageReader,
    writer: MessageWriter,
    stats: SessionStats,
    *,
    log_prefix: str = "",
    preview_chars: int = 200,
) -> None:
    """
    Relaie backend -> client sans modification jusqu'à la fin de stdout.

    FramingError et les erreurs d'envoi WebSocket remontent à l'appelant.
    """
    while True:
        try:
            envelope = await reader.read()
        except EnvelopeError as e:
            stats.dropped_from_backend += 1
            logger.warning("%sMessage backend ignoré: %s", log_prefix, e)
            continue
        if envelope is None:
            return

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s← Backend vers client: %s", log_prefix, preview(envelope, preview_chars))

        await writer.write(envelope)
        stats.backend_to_client += 1
