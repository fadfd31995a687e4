"""
Exceptions personnalisées pour le bridge LSP WebSocket.
"""


class BridgeError(Exception):
    """Exception de base pour toutes les erreurs du bridge."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(BridgeError):
    """Erreur de configuration (paramètre manquant, valeur invalide, cible non inscriptible)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class BackendSpawnError(BridgeError):
    """Le serveur de langage n'a pas pu être lancé (exécutable absent, cwd invalide)."""

    def __init__(self, message: str, command: list = None, cwd: str = None):
        details = {}
        if command:
            details["command"] = list(command)
        if cwd:
            details["cwd"] = cwd
        super().__init__(
            message=message,
            code="backend_spawn_error",
            details=details
        )


class FramingError(BridgeError):
    """Flux stdio du backend illisible (en-tête Content-Length absent, corps tronqué)."""

    def __init__(self, message: str, header: str = None):
        details = {}
        if header:
            details["header"] = header[:100]
        super().__init__(
            message=message,
            code="framing_error",
            details=details
        )


class EnvelopeError(BridgeError):
    """Message JSON-RPC non décodable (JSON invalide ou payload non objet)."""

    def __init__(self, message: str, content_preview: str = None):
        details = {}
        if content_preview:
            details["preview"] = content_preview[:100]
        super().__init__(
            message=message,
            code="envelope_error",
            details=details
        )
