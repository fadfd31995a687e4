"""
LSP WebSocket Bridge - Application FastAPI Factory.
Une connexion WebSocket = un serveur de langage stdio dédié.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket

from .api.router import api_router
from .config.settings import BridgeSettings
from .proxy.session import BridgeSession
from .services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


def create_app(settings: BridgeSettings) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        settings: Configuration validée du bridge

    Returns:
        Instance configurée de FastAPI
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        # Startup
        _startup(app)
        yield
        # Shutdown
        _shutdown(app)

    app = FastAPI(
        title="LSP WebSocket Bridge",
        description="Bridge WebSocket vers un serveur de langage stdio, un processus par connexion",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.sessions = SessionRegistry()

    # Inclusion des routes API
    app.include_router(api_router)

    # WebSocket endpoint LSP
    @app.websocket(settings.ws_path)
    async def lsp_endpoint(websocket: WebSocket):
        """
        Endpoint WebSocket LSP.

        Chaque connexion acceptée lance son propre backend; la session dure
        jusqu'à la fermeture du socket ou la fin du backend.
        """
        await websocket.accept()
        session = BridgeSession(
            websocket,
            app.state.settings,
            registry=app.state.sessions,
        )
        await session.run()

    return app


def _startup(app: FastAPI):
    """Initialisation au démarrage."""
    settings = app.state.settings
    logger.info("Bridge LSP prêt sur le chemin %s", settings.ws_path)
    logger.info("Racine d'exécution: %s", settings.workspace_root)


def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    remaining = app.state.sessions.get_session_count()
    if remaining:
        logger.warning("Arrêt avec %d session(s) encore active(s)", remaining)
    logger.info("Bridge LSP arrêté")
