"""
Session bridge: une connexion WebSocket <-> un backend stdio dédié.

Cycle de vie:
1. spawn du backend (cwd = racine du workspace)
2. deux tâches de relais + une tâche stderr + une tâche d'attente de fin
3. à la première fin (client parti, stdout du backend fermé, backend mort):
   arrêt du backend, annulation des tâches restantes, fermeture du socket
"""
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import WebSocket

from ..config.settings import BridgeSettings
from ..core.constants import (
    BACKEND_DRAIN_TIMEOUT,
    WS_CLOSE_NORMAL,
    WS_CLOSE_INTERNAL_ERROR,
)
from ..core.exceptions import BackendSpawnError
from ..services.backend_process import BackendProcess, build_backend_command
from ..services.session_registry import SessionRegistry
from .framing import StreamMessageReader, StreamMessageWriter
from .relay import SessionStats, pump_client_to_backend, pump_backend_to_client
from .rewrite import MessageRewriter
from .websocket_transport import WebSocketMessageReader, WebSocketMessageWriter

logger = logging.getLogger(__name__)

# Raisons de fin de session
REASON_CLIENT_CLOSED = "client_closed"
REASON_BACKEND_SPAWN_ERROR = "backend_spawn_error"
REASON_BACKEND_EXITED = "backend_exited"
REASON_BACKEND_STREAM_CLOSED = "backend_stream_closed"
REASON_BACKEND_STREAM_ERROR = "backend_stream_error"
REASON_BACKEND_WRITE_ERROR = "backend_write_error"


class BridgeSession:
    """
    État d'une connexion: socket client, backend, lecteurs/écrivains des deux côtés.

    La session possède seule son backend; rien n'est partagé entre sessions.
    """

    def __init__(
        self,
        websocket: WebSocket,
        settings: BridgeSettings,
        *,
        registry: Optional[SessionRegistry] = None,
        backend: Optional[BackendProcess] = None,
    ):
        self.session_id = uuid.uuid4().hex[:8]
        self.log_prefix = f"[{self.session_id}] "
        self.settings = settings
        self.workspace_root = settings.workspace_root
        self.registry = registry
        self.backend = backend or BackendProcess(build_backend_command(settings), log_prefix=self.log_prefix)
        self.stats = SessionStats()
        self.started_at = datetime.now(timezone.utc).isoformat()
        self.close_reason: Optional[str] = None

        self.client_reader = WebSocketMessageReader(websocket)
        self.client_writer = WebSocketMessageWriter(websocket)
        self.backend_reader: Optional[StreamMessageReader] = None
        self.backend_writer: Optional[StreamMessageWriter] = None
        self.rewriter = MessageRewriter(
            settings.workspace_root,
            inject_root=settings.inject_root_uri,
            normalize_uris=settings.normalize_document_uris,
        )

    def describe(self) -> Dict[str, Any]:
        """Résumé pour le health check."""
        return {
            "session_id": self.session_id,
            "started_at": self.started_at,
            "backend_pid": self.backend.pid,
            "backend_running": self.backend.is_running,
            "stats": self.stats.to_dict(),
        }

    async def run(self) -> None:
        """Exécute la session jusqu'à sa fin (le socket doit déjà être accepté)."""
        if self.registry is not None:
            self.registry.register(self)
        logger.info("%sClient connecté, lancement du backend...", self.log_prefix)
        try:
            await self._run()
        finally:
            if self.registry is not None:
                self.registry.unregister(self)
            logger.info(
                "%sSession terminée (%s): %s",
                self.log_prefix,
                self.close_reason,
                self.stats.to_dict(),
            )

    async def _run(self) -> None:
        try:
            await self.backend.start()
        except BackendSpawnError as e:
            logger.error("%sErreur processus backend: %s", self.log_prefix, e)
            self.close_reason = REASON_BACKEND_SPAWN_ERROR
            await self.client_writer.close(WS_CLOSE_INTERNAL_ERROR, "backend unavailable")
            return

        self.backend_reader = StreamMessageReader(self.backend.stdout)
        self.backend_writer = StreamMessageWriter(self.backend.stdin)

        client_task = asyncio.create_task(
            pump_client_to_backend(
                self.client_reader,
                self.backend_writer,
                self.rewriter,
                self.stats,
                log_prefix=self.log_prefix,
                preview_chars=self.settings.log_preview_chars,
            )
        )
        backend_task = asyncio.create_task(
            pump_backend_to_client(
                self.backend_reader,
                self.client_writer,
                self.stats,
                log_prefix=self.log_prefix,
                preview_chars=self.settings.log_preview_chars,
            )
        )
        stderr_task = asyncio.create_task(self.backend.log_stderr())
        exit_task = asyncio.create_task(self.backend.wait())

        try:
            done, _pending = await asyncio.wait(
                {client_task, backend_task, exit_task},
                return_when=asyncio.FIRST_COMPLETED,
            )

            if client_task in done:
                failed = not client_task.cancelled() and client_task.exception() is not None
                self.close_reason = REASON_BACKEND_WRITE_ERROR if failed else REASON_CLIENT_CLOSED
            elif backend_task in done:
                failed = not backend_task.cancelled() and backend_task.exception() is not None
                self.close_reason = REASON_BACKEND_STREAM_ERROR if failed else REASON_BACKEND_STREAM_CLOSED
            else:
                self.close_reason = REASON_BACKEND_EXITED
                # Laisse passer ce que le backend a écrit avant de mourir
                await asyncio.wait({backend_task}, timeout=BACKEND_DRAIN_TIMEOUT)
        finally:
            try:
                await self._teardown(client_task, backend_task, stderr_task, exit_task)
            finally:
                # Session annulée pendant l'arrêt: le backend ne lui survit pas
                self.backend.kill()

    async def _teardown(
        self,
        client_task: asyncio.Task,
        backend_task: asyncio.Task,
        stderr_task: asyncio.Task,
        exit_task: asyncio.Task,
    ) -> None:
        # Plus rien ne doit partir vers le backend
        await self._reap(client_task, "relais client -> backend")

        if self.close_reason == REASON_CLIENT_CLOSED:
            logger.info("%sClient déconnecté, arrêt du backend...", self.log_prefix)
        await self.backend.terminate()

        await self._reap(backend_task, "relais backend -> client")
        await self._reap(exit_task, "attente du backend")
        await asyncio.wait({stderr_task}, timeout=BACKEND_DRAIN_TIMEOUT)
        await self._reap(stderr_task, "lecture stderr")

        if self.close_reason != REASON_CLIENT_CLOSED:
            await self.client_writer.close(self._close_code(), self.close_reason or "")

    def _close_code(self) -> int:
        clean_end = self.close_reason in (REASON_BACKEND_EXITED, REASON_BACKEND_STREAM_CLOSED)
        if clean_end and self.backend.returncode == 0:
            return WS_CLOSE_NORMAL
        return WS_CLOSE_INTERNAL_ERROR

    async def _reap(self, task: asyncio.Task, label: str) -> None:
        """Annule la tâche si besoin et récupère son exception éventuelle."""
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning("%s%s terminé en erreur: %s", self.log_prefix, label, e)
