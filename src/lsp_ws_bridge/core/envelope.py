"""
Modèle des messages JSON-RPC 2.0 relayés par le bridge.

Un message est une union étiquetée {requête, réponse, notification}:
- `method` + `id`  -> RequestMessage
- `method` seul     -> NotificationMessage
- sinon             -> ResponseMessage

Les champs inconnus (y compris `jsonrpc`) sont conservés dans `extra` et
réémis tels quels. Un champ absent en entrée reste absent en sortie.
"""
import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Union

from .exceptions import EnvelopeError


class _Missing:
    """Marqueur de champ absent (distinct de `null`)."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_REQUEST_KEYS = {"id", "method", "params"}
_RESPONSE_KEYS = {"id", "result", "error"}


@dataclass
class RequestMessage:
    """Requête JSON-RPC: attend une réponse portant le même id."""
    id: Any
    method: Any
    params: Any = MISSING
    extra: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "request"


@dataclass
class NotificationMessage:
    """Notification JSON-RPC: pas d'id, pas de réponse."""
    method: Any
    params: Any = MISSING
    extra: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "notification"


@dataclass
class ResponseMessage:
    """Réponse JSON-RPC (result ou error)."""
    id: Any = MISSING
    result: Any = MISSING
    error: Any = MISSING
    extra: Dict[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "response"

    @property
    def is_error(self) -> bool:
        return self.error is not MISSING


Envelope = Union[RequestMessage, NotificationMessage, ResponseMessage]


def parse_envelope(obj: Any) -> Envelope:
    """
    Construit l'enveloppe typée à partir d'un objet JSON décodé.

    Args:
        obj: Objet JSON (doit être un dict)

    Returns:
        RequestMessage, NotificationMessage ou ResponseMessage

    Raises:
        EnvelopeError: Si le payload n'est pas un objet JSON
    """
    if not isinstance(obj, dict):
        raise EnvelopeError(
            message=f"Payload JSON-RPC non objet: {type(obj).__name__}",
            content_preview=repr(obj),
        )

    if "method" in obj:
        extra = {k: v for k, v in obj.items() if k not in _REQUEST_KEYS}
        if "id" in obj:
            return RequestMessage(
                id=obj["id"],
                method=obj["method"],
                params=obj.get("params", MISSING),
                extra=extra,
            )
        return NotificationMessage(
            method=obj["method"],
            params=obj.get("params", MISSING),
            extra=extra,
        )

    extra = {k: v for k, v in obj.items() if k not in _RESPONSE_KEYS}
    return ResponseMessage(
        id=obj.get("id", MISSING),
        result=obj.get("result", MISSING),
        error=obj.get("error", MISSING),
        extra=extra,
    )


def envelope_to_dict(envelope: Envelope) -> Dict[str, Any]:
    """Reconstruit l'objet JSON d'une enveloppe (champs absents omis)."""
    payload: Dict[str, Any] = {}
    if "jsonrpc" in envelope.extra:
        payload["jsonrpc"] = envelope.extra["jsonrpc"]

    if isinstance(envelope, RequestMessage):
        candidates = (("id", envelope.id), ("method", envelope.method), ("params", envelope.params))
    elif isinstance(envelope, NotificationMessage):
        candidates = (("method", envelope.method), ("params", envelope.params))
    else:
        candidates = (("id", envelope.id), ("result", envelope.result), ("error", envelope.error))

    for key, value in candidates:
        if value is not MISSING:
            payload[key] = value

    for key, value in envelope.extra.items():
        if key not in payload:
            payload[key] = value
    return payload


def decode_envelope(raw: Union[str, bytes]) -> Envelope:
    """
    Décode un message JSON (texte ou UTF-8) en enveloppe.

    Raises:
        EnvelopeError: UTF-8 invalide, JSON invalide ou payload non objet
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EnvelopeError(
                message=f"UTF-8 invalide: {e}",
                content_preview=bytes(raw).decode("utf-8", errors="replace"),
            ) from e
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError as e:
        raise EnvelopeError(
            message=f"JSON invalide: {e}",
            content_preview=raw,
        ) from e
    return parse_envelope(obj)


def encode_envelope(envelope: Envelope) -> str:
    """Sérialise une enveloppe en JSON compact (ASCII: les surrogates isolés restent échappés)."""
    return json.dumps(envelope_to_dict(envelope), separators=(",", ":"))


def get_method(envelope: Envelope) -> Optional[str]:
    """Retourne la méthode si elle est une chaîne, sinon None."""
    method = getattr(envelope, "method", None)
    return method if isinstance(method, str) else None


def preview(envelope: Envelope, max_chars: int) -> str:
    """Aperçu JSON tronqué pour les logs de trafic."""
    text = encode_envelope(envelope)
    if max_chars > 0 and len(text) > max_chars:
        return text[:max_chars] + "…"
    return text
