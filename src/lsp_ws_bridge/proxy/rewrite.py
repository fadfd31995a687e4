"""
Règles de réécriture appliquées au trafic client -> backend.

1. Injection de la racine: `initialize` reçoit `rootUri` et un
   `workspaceFolders` à une entrée pointant sur la racine du workspace.
2. Normalisation d'URI: `params.textDocument.uri` non `file://` est joint
   à la racine du workspace puis exprimé en `file://`.

Les deux règles modifient l'enveloppe en place. Aucune autre méthode n'est
inspectée: le relais reste agnostique au protocole.
"""
import logging
from typing import List

from ..core.constants import INITIALIZE_METHOD, WORKSPACE_FOLDER_NAME
from ..core.envelope import (
    MISSING,
    Envelope,
    RequestMessage,
    NotificationMessage,
    get_method,
)
from ..core.uris import to_file_uri, is_file_uri, join_workspace_path

logger = logging.getLogger(__name__)

RULE_ROOT_INJECTION = "root_injection"
RULE_URI_NORMALIZATION = "uri_normalization"


def inject_workspace_root(envelope: Envelope, workspace_root: str) -> bool:
    """
    Force rootUri/workspaceFolders sur un message `initialize`.

    Returns:
        True si l'enveloppe a été modifiée
    """
    if not isinstance(envelope, (RequestMessage, NotificationMessage)):
        return False
    if get_method(envelope) != INITIALIZE_METHOD:
        return False

    if envelope.params is MISSING or envelope.params is None:
        envelope.params = {}
    if not isinstance(envelope.params, dict):
        logger.warning(
            "initialize avec params non objet (%s): racine non injectée",
            type(envelope.params).__name__,
        )
        return False

    root_uri = to_file_uri(workspace_root)
    envelope.params["rootUri"] = root_uri
    envelope.params["workspaceFolders"] = [
        {
            "uri": root_uri,
            "name": WORKSPACE_FOLDER_NAME,
        }
    ]
    return True


def normalize_document_uri(envelope: Envelope, workspace_root: str) -> bool:
    """
    Rend absolu `params.textDocument.uri` quand il n'est pas déjà en file://.

    Returns:
        True si l'enveloppe a été modifiée
    """
    params = getattr(envelope, "params", None)
    if not isinstance(params, dict):
        return False
    text_document = params.get("textDocument")
    if not isinstance(text_document, dict):
        return False
    uri = text_document.get("uri")
    if not isinstance(uri, str) or not uri:
        return False
    if is_file_uri(uri):
        return False

    text_document["uri"] = to_file_uri(join_workspace_path(workspace_root, uri))
    return True


class MessageRewriter:
    """Applique les règles activées, dans l'ordre, à chaque message client."""

    def __init__(self, workspace_root: str, inject_root: bool = True, normalize_uris: bool = True):
        self.workspace_root = workspace_root
        self.inject_root = inject_root
        self.normalize_uris = normalize_uris

    def apply(self, envelope: Envelope) -> List[str]:
        """
        Réécrit l'enveloppe en place.

        Returns:
            Noms des règles effectivement appliquées
        """
        applied = []
        if self.inject_root and inject_workspace_root(envelope, self.workspace_root):
            applied.append(RULE_ROOT_INJECTION)
        if self.normalize_uris and normalize_document_uri(envelope, self.workspace_root):
            applied.append(RULE_URI_NORMALIZATION)
        return applied
