"""
Configuration du bridge LSP WebSocket.
"""

from .settings import BridgeSettings
from .loader import resolve_settings, load_env_file, env_var_name
from .deployer import deploy_server_config, render_server_config

__all__ = [
    "BridgeSettings",
    "resolve_settings",
    "load_env_file",
    "env_var_name",
    "deploy_server_config",
    "render_server_config",
]
