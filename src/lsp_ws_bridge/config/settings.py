"""
Dataclasses pour la configuration.
"""
import os
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from ..core.uris import to_file_uri
from ..core.constants import (
    DEFAULT_HOST,
    DEFAULT_BACKEND_PATH,
    DEFAULT_BACKEND_ARGS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_PREVIEW_CHARS,
    DEFAULT_WS_MAX_SIZE,
    PRESET_CLI,
    PRESETS,
)


@dataclass
class BridgeSettings:
    """Configuration globale du bridge (figée au démarrage)."""
    port: int
    workspace_root: str
    python_files_root: Optional[str] = None
    host: str = DEFAULT_HOST
    ws_path: str = "/lsp"
    backend_path: str = DEFAULT_BACKEND_PATH
    backend_args: List[str] = field(default_factory=lambda: list(DEFAULT_BACKEND_ARGS))
    extra_pythonpath: Optional[str] = None
    inject_root_uri: bool = True
    normalize_document_uris: bool = True
    deploy_config: bool = True
    config_template: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_preview_chars: int = DEFAULT_LOG_PREVIEW_CHARS
    ws_max_size: int = DEFAULT_WS_MAX_SIZE
    preset: str = PRESET_CLI

    def __post_init__(self):
        # Racine absolue: elle sert de cwd au backend et de base aux URIs file://
        self.workspace_root = os.path.abspath(self.workspace_root)
        if not self.ws_path.startswith("/"):
            self.ws_path = "/" + self.ws_path

    @property
    def root_uri(self) -> str:
        """URI file:// de la racine du workspace."""
        return to_file_uri(self.workspace_root)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeSettings":
        """Crée une instance depuis un dictionnaire (clés absentes = défauts)."""
        preset = data.get("preset", PRESET_CLI)
        preset_defaults = PRESETS.get(preset, PRESETS[PRESET_CLI])
        return cls(
            port=data["port"],
            workspace_root=data["workspace_root"],
            python_files_root=data.get("python_files_root"),
            host=data.get("host", DEFAULT_HOST),
            ws_path=data.get("ws_path", preset_defaults["ws_path"]),
            backend_path=data.get("backend_path", DEFAULT_BACKEND_PATH),
            backend_args=list(data.get("backend_args", DEFAULT_BACKEND_ARGS)),
            extra_pythonpath=data.get("extra_pythonpath"),
            inject_root_uri=data.get("inject_root_uri", True),
            normalize_document_uris=data.get("normalize_document_uris", True),
            deploy_config=data.get("deploy_config", True),
            config_template=data.get("config_template"),
            log_level=data.get("log_level", DEFAULT_LOG_LEVEL),
            log_preview_chars=data.get("log_preview_chars", DEFAULT_LOG_PREVIEW_CHARS),
            ws_max_size=data.get("ws_max_size", DEFAULT_WS_MAX_SIZE),
            preset=preset,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Vue sérialisable (health check, logs de démarrage)."""
        return {
            "preset": self.preset,
            "host": self.host,
            "port": self.port,
            "ws_path": self.ws_path,
            "workspace_root": self.workspace_root,
            "python_files_root": self.python_files_root,
            "backend_path": self.backend_path,
            "backend_args": list(self.backend_args),
            "extra_pythonpath": self.extra_pythonpath,
            "inject_root_uri": self.inject_root_uri,
            "normalize_document_uris": self.normalize_document_uris,
            "deploy_config": self.deploy_config,
        }
