"""
Gestion du processus serveur de langage (un par connexion WebSocket).

Le backend est lancé en mode stdio avec cwd = racine du workspace pour qu'il
retrouve son pyrightconfig.json et le .venv du projet. Il n'est jamais
partagé ni relancé: une session terminée emporte son backend.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from ..config.settings import BridgeSettings
from ..core.constants import (
    BACKEND_TERMINATE_TIMEOUT,
    DEFAULT_STREAM_LIMIT,
    NODE_EXECUTABLE,
)
from ..core.exceptions import BackendSpawnError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendCommand:
    command: str
    args: list[str]
    env: dict[str, str]
    cwd: str

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


def build_backend_env(extra_pythonpath: Optional[str], base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Environnement hérité, avec PYTHONPATH préfixé par le répertoire projet si demandé."""
    env = dict(os.environ if base is None else base)
    if extra_pythonpath:
        existing = env.get("PYTHONPATH")
        env["PYTHONPATH"] = extra_pythonpath if not existing else f"{extra_pythonpath}{os.pathsep}{existing}"
    return env


def build_backend_command(settings: BridgeSettings) -> BackendCommand:
    """
    Construit la commande du backend.

    - `*.js` -> lancé via node (pyright-langserver.js d'un node_modules)
    - `*.py` -> lancé via l'interpréteur courant
    - sinon  -> exécutable lancé directement
    """
    path = settings.backend_path
    args = list(settings.backend_args)
    env = build_backend_env(settings.extra_pythonpath)

    if path.endswith(".js"):
        return BackendCommand(command=NODE_EXECUTABLE, args=[path, *args], env=env, cwd=settings.workspace_root)
    if path.endswith(".py"):
        return BackendCommand(command=sys.executable, args=[path, *args], env=env, cwd=settings.workspace_root)
    return BackendCommand(command=path, args=args, env=env, cwd=settings.workspace_root)


class BackendProcess:
    """Handle d'un backend: spawn, flux stdio, stderr loggé, arrêt."""

    def __init__(self, command: BackendCommand, *, log_prefix: str = ""):
        self.command = command
        self._log_prefix = log_prefix
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._reaper: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """
        Lance le processus.

        Raises:
            BackendSpawnError: Exécutable introuvable, non exécutable, cwd invalide
        """
        if self._proc is not None:
            raise RuntimeError("Backend déjà lancé pour cette session")
        try:
            self._proc = await asyncio.create_subprocess_exec(
                self.command.command,
                *self.command.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=DEFAULT_STREAM_LIMIT,
                cwd=self.command.cwd,
                env=self.command.env,
            )
        except OSError as e:
            raise BackendSpawnError(
                message=f"Impossible de lancer le backend: {e}",
                command=self.command.argv,
                cwd=self.command.cwd,
            ) from e
        logger.info("%sBackend lancé (pid=%s, cwd=%s)", self._log_prefix, self._proc.pid, self.command.cwd)

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode if self._proc else None

    @property
    def is_running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    @property
    def stdin(self) -> asyncio.StreamWriter:
        assert self._proc is not None and self._proc.stdin is not None
        return self._proc.stdin

    @property
    def stdout(self) -> asyncio.StreamReader:
        assert self._proc is not None and self._proc.stdout is not None
        return self._proc.stdout

    async def wait(self) -> int:
        assert self._proc is not None
        return await self._proc.wait()

    async def log_stderr(self) -> None:
        """Relaye stderr vers les logs ligne par ligne (jamais vers le client)."""
        assert self._proc is not None and self._proc.stderr is not None
        stream = self._proc.stderr
        while True:
            try:
                line = await stream.readline()
            except ValueError as e:
                # Ligne au-delà de la limite du StreamReader
                logger.warning("%sBackend stderr illisible: %s", self._log_prefix, e)
                return
            if not line:
                return
            text = line.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.warning("%sBackend stderr: %s", self._log_prefix, text)

    async def terminate(self, timeout: float = BACKEND_TERMINATE_TIMEOUT) -> Optional[int]:
        """
        Arrête le backend: SIGTERM, puis SIGKILL après `timeout` secondes.

        Returns:
            Code de retour, ou None si le backend n'a jamais été lancé
        """
        proc = self._proc
        if proc is None:
            return None
        if proc.returncode is None:
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(proc.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("%sBackend sourd à SIGTERM, kill (pid=%s)", self._log_prefix, proc.pid)
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()
        logger.info("%sBackend arrêté (pid=%s, code=%s)", self._log_prefix, proc.pid, proc.returncode)
        return proc.returncode

    def kill(self) -> Optional[asyncio.Task]:
        """
        SIGKILL immédiat, utilisable sans attendre (session annulée).

        Returns:
            Tâche qui récupère le code de retour (évite un zombie), ou None si
            le backend n'est pas vivant ou si aucune boucle ne tourne
        """
        proc = self._proc
        if proc is None or proc.returncode is not None:
            return None
        logger.warning("%sArrêt forcé du backend (pid=%s)", self._log_prefix, proc.pid)
        try:
            proc.kill()
        except ProcessLookupError:
            pass

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._reaper = loop.create_task(proc.wait())
        return self._reaper
