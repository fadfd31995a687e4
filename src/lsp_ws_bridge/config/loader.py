"""src.lsp_ws_bridge.config.loader

Résolution de la configuration du bridge.

Sources, par ordre de priorité:
1. arguments de ligne de commande
2. variables d'environnement `LSP_BRIDGE_*` (un fichier `.env` est chargé au préalable)
3. valeurs de repli du preset (`cli` ou `env`)

Le preset `cli` n'a aucune valeur de repli pour le port et les racines:
ils sont obligatoires. Le preset `env` fournit des valeurs codées en dur.
"""
import os
from typing import Dict, Any, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from ..core.constants import (
    DEFAULT_BACKEND_PATH,
    DEFAULT_BACKEND_ARGS,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_PREVIEW_CHARS,
    DEFAULT_WS_MAX_SIZE,
    ENV_PREFIX,
    PRESET_CLI,
    PRESETS,
    TRUTHY_VALUES,
)
from ..core.exceptions import ConfigurationError
from .settings import BridgeSettings

# Clés obligatoires et option CLI correspondante (pour le message d'erreur)
REQUIRED_KEYS = {
    "port": "--port",
    "workspace_root": "--project-root",
    "python_files_root": "--python-files-root",
}

# Niveaux compris à la fois par logging et par uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Clé de settings -> suffixe de variable d'environnement
ENV_KEYS = {
    "preset": "PRESET",
    "host": "HOST",
    "port": "PORT",
    "workspace_root": "PROJECT_ROOT",
    "python_files_root": "PYTHON_FILES_ROOT",
    "backend_path": "BACKEND_PATH",
    "ws_path": "WS_PATH",
    "extra_pythonpath": "EXTRA_PYTHONPATH",
    "inject_root_uri": "INJECT_ROOT",
    "normalize_document_uris": "NORMALIZE_URIS",
    "deploy_config": "DEPLOY_CONFIG",
    "config_template": "CONFIG_TEMPLATE",
    "log_level": "LOG_LEVEL",
    "log_preview_chars": "LOG_PREVIEW_CHARS",
    "ws_max_size": "WS_MAX_SIZE",
}


def env_var_name(key: str) -> str:
    """Nom de la variable d'environnement associée à une clé de settings."""
    return f"{ENV_PREFIX}{ENV_KEYS[key]}"


def load_env_file() -> Optional[str]:
    """
    Charge un fichier `.env` depuis le répertoire courant (sans écraser l'environnement).

    Returns:
        Chemin du fichier chargé, ou None si aucun
    """
    path = find_dotenv(usecwd=True)
    if not path:
        return None
    load_dotenv(path, override=False)
    return path


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in TRUTHY_VALUES


def _parse_int(key: str, raw: Any, *, minimum: int = None, maximum: int = None) -> int:
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ConfigurationError(
            message=f"Valeur entière invalide pour {key}: {raw!r}",
            config_key=key
        )
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        raise ConfigurationError(
            message=f"Valeur hors limites pour {key}: {value}",
            config_key=key
        )
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _pick(key: str, cli_values: Mapping[str, Any], environ: Mapping[str, str], fallback: Any = None) -> Any:
    """Première valeur non vide: CLI, puis environnement, puis repli."""
    value = cli_values.get(key)
    if not _is_blank(value):
        return value
    value = environ.get(env_var_name(key))
    if not _is_blank(value):
        return value
    return fallback


def resolve_settings(
    cli_values: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BridgeSettings:
    """
    Fusionne CLI, environnement et preset puis valide le résultat.

    Args:
        cli_values: Valeurs issues d'argparse (None = non fourni)
        environ: Environnement (défaut: os.environ)

    Returns:
        BridgeSettings validés

    Raises:
        ConfigurationError: Valeur obligatoire manquante ou valeur invalide
    """
    cli_values = cli_values or {}
    environ = os.environ if environ is None else environ

    preset = str(_pick("preset", cli_values, environ, PRESET_CLI)).strip().lower()
    if preset not in PRESETS:
        raise ConfigurationError(
            message=f"Preset inconnu: {preset!r} (attendu: {', '.join(sorted(PRESETS))})",
            config_key="preset"
        )
    preset_defaults = PRESETS[preset]

    port = _pick("port", cli_values, environ, preset_defaults["port"])
    workspace_root = _pick("workspace_root", cli_values, environ, preset_defaults["workspace_root"])
    python_files_root = _pick(
        "python_files_root",
        cli_values,
        environ,
        preset_defaults["python_files_root"] or (workspace_root if preset != PRESET_CLI else None),
    )

    raw: Dict[str, Any] = {
        "port": port,
        "workspace_root": workspace_root,
        "python_files_root": python_files_root,
    }
    missing = [key for key in REQUIRED_KEYS if _is_blank(raw[key])]
    if missing:
        flags = ", ".join(REQUIRED_KEYS[key] for key in missing)
        raise ConfigurationError(
            message=f"Paramètres obligatoires manquants: {flags}",
            config_key=",".join(missing)
        )

    extra_pythonpath = _pick("extra_pythonpath", cli_values, environ, preset_defaults["extra_pythonpath"])
    if extra_pythonpath:
        extra_pythonpath = str(extra_pythonpath).replace("{root}", os.path.abspath(str(workspace_root)))

    log_level = str(_pick("log_level", cli_values, environ, DEFAULT_LOG_LEVEL)).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(
            message=f"Niveau de log inconnu: {log_level!r} (attendu: {', '.join(LOG_LEVELS)})",
            config_key="log_level"
        )

    backend_args = cli_values.get("backend_args")
    if not backend_args:
        backend_args = list(DEFAULT_BACKEND_ARGS)

    return BridgeSettings(
        port=_parse_int("port", port, minimum=1, maximum=65535),
        workspace_root=str(workspace_root),
        python_files_root=str(python_files_root),
        host=str(_pick("host", cli_values, environ, DEFAULT_HOST)),
        ws_path=str(_pick("ws_path", cli_values, environ, preset_defaults["ws_path"])),
        backend_path=str(_pick("backend_path", cli_values, environ, DEFAULT_BACKEND_PATH)),
        backend_args=list(backend_args),
        extra_pythonpath=extra_pythonpath or None,
        inject_root_uri=_parse_bool(_pick("inject_root_uri", cli_values, environ, True)),
        normalize_document_uris=_parse_bool(
            _pick("normalize_document_uris", cli_values, environ, True),
        ),
        deploy_config=_parse_bool(_pick("deploy_config", cli_values, environ, True)),
        config_template=_pick("config_template", cli_values, environ),
        log_level=log_level,
        log_preview_chars=_parse_int(
            "log_preview_chars",
            _pick("log_preview_chars", cli_values, environ, DEFAULT_LOG_PREVIEW_CHARS),
            minimum=0,
        ),
        ws_max_size=_parse_int(
            "ws_max_size",
            _pick("ws_max_size", cli_values, environ, DEFAULT_WS_MAX_SIZE),
            minimum=1,
        ),
        preset=preset,
    )
