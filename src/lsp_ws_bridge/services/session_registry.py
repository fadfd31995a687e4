"""
Registre des sessions LSP actives.

Une instance par application (stockée dans `app.state`), jamais de registre
global au niveau module: chaque session possède son propre backend.
"""
from typing import Set, Dict, Any, List, TYPE_CHECKING

if TYPE_CHECKING:
    from ..proxy.session import BridgeSession


class SessionRegistry:
    """Suit les sessions bridge vivantes (observabilité uniquement)."""

    def __init__(self):
        self.active_sessions: Set["BridgeSession"] = set()
        self.total_sessions: int = 0

    def register(self, session: "BridgeSession"):
        """Enregistre une nouvelle session."""
        self.active_sessions.add(session)
        self.total_sessions += 1

    def unregister(self, session: "BridgeSession"):
        """Retire une session terminée."""
        self.active_sessions.discard(session)

    def get_session_count(self) -> int:
        """Retourne le nombre de sessions actives."""
        return len(self.active_sessions)

    def is_active(self, session: "BridgeSession") -> bool:
        """Vérifie si une session est encore enregistrée."""
        return session in self.active_sessions

    def snapshot(self) -> List[Dict[str, Any]]:
        """Description de chaque session active, triée par date de début."""
        described = [session.describe() for session in self.active_sessions]
        return sorted(described, key=lambda item: item["started_at"])
