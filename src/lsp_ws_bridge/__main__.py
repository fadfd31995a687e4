"""
Point d'entrée pour `python -m lsp_ws_bridge`.

Usage:
    lsp-ws-bridge --port <PORT> --project-root <PROJECT_ROOT> --python-files-root <PYTHON_FILES_ROOT>

Exemple:
    lsp-ws-bridge --port 9011 --project-root /home/king/project --python-files-root /home/king/project/python-files
"""
import argparse
import logging
import sys

import uvicorn

from .config.deployer import deploy_server_config
from .config.loader import load_env_file, resolve_settings
from .core.constants import LOG_FORMAT
from .core.exceptions import ConfigurationError
from .main import create_app

USAGE = (
    "Usage: lsp-ws-bridge --port <PORT> --project-root <PROJECT_ROOT> "
    "--python-files-root <PYTHON_FILES_ROOT>"
)


def build_parser() -> argparse.ArgumentParser:
    """Options CLI. Aucune n'est `required` ici: l'environnement peut les fournir."""
    parser = argparse.ArgumentParser(prog="lsp-ws-bridge", description="LSP WebSocket Bridge")
    parser.add_argument("--port", dest="port", help="Port TCP du listener WebSocket")
    parser.add_argument("--project-root", dest="workspace_root", help="Racine du workspace (cwd du backend)")
    parser.add_argument("--python-files-root", dest="python_files_root", help="Répertoire des sources Python")
    parser.add_argument("--host", dest="host", help="Interface d'écoute (défaut: 0.0.0.0)")
    parser.add_argument("--backend-path", dest="backend_path", help="Exécutable ou script du serveur de langage")
    parser.add_argument("--ws-path", dest="ws_path", help="Chemin de l'endpoint WebSocket")
    parser.add_argument("--preset", dest="preset", help="Jeu de valeurs par défaut (cli, env)")
    parser.add_argument("--log-level", dest="log_level", help="Niveau de log (DEBUG, INFO, ...)")
    return parser


def setup_logging(level: str) -> None:
    """Logs vers stderr, format commun à tous les modules."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv=None):
    """Fonction principale."""
    load_env_file()
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(vars(args))
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level)

    # Déploie la config avant d'ouvrir le listener
    try:
        deploy_server_config(settings)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    app = create_app(settings)

    print(f"🚀 LSP WS bridge running on ws://localhost:{settings.port}{settings.ws_path}")
    print(f"📁 Execution root: {settings.workspace_root}")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ws_max_size=settings.ws_max_size,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
