"""
Constantes globales pour le bridge LSP WebSocket.
"""
import sys

# ============================================================================
# PROTOCOLE LSP
# ============================================================================
INITIALIZE_METHOD = "initialize"
FILE_SCHEME = "file://"
WORKSPACE_FOLDER_NAME = "project"

HEADER_TERMINATOR = b"\r\n\r\n"
CONTENT_LENGTH_HEADER = "content-length"

# ============================================================================
# CONFIGURATION DÉPLOYÉE
# ============================================================================
SERVER_CONFIG_FILENAME = "pyrightconfig.json"
PROJECT_ROOT_PLACEHOLDER = "${PROJECT_ROOT}"
PYTHON_FILES_ROOT_PLACEHOLDER = "${Python_Files_ROOT}"

# ============================================================================
# BACKEND
# ============================================================================
DEFAULT_BACKEND_PATH = "pyright-langserver"
DEFAULT_BACKEND_ARGS = ["--stdio"]
NODE_EXECUTABLE = "node"
BACKEND_TERMINATE_TIMEOUT = 2.0  # secondes avant SIGKILL
BACKEND_DRAIN_TIMEOUT = 1.0  # secondes pour vider stdout/stderr en fin de session

# asyncio applique une limite interne de 64KiB par readuntil()
DEFAULT_STREAM_LIMIT = 8 * 1024 * 1024  # 8 MiB

# ============================================================================
# WEBSOCKET
# ============================================================================
DEFAULT_HOST = "0.0.0.0"
DEFAULT_WS_MAX_SIZE = 64 * 1024 * 1024  # 64 MiB
WS_CLOSE_NORMAL = 1000
WS_CLOSE_INTERNAL_ERROR = 1011

# ============================================================================
# LOGGING
# ============================================================================
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_PREVIEW_CHARS = 200
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# ============================================================================
# PRESETS
# ============================================================================
PRESET_CLI = "cli"
PRESET_ENV = "env"

PRESETS = {
    # Mode explicite: tout vient de la ligne de commande (ou de l'environnement)
    PRESET_CLI: {
        "ws_path": "/lsp",
        "port": None,
        "workspace_root": None,
        "python_files_root": None,
        "extra_pythonpath": None,
    },
    # Mode conteneur: valeurs par défaut codées en dur + venv du projet
    PRESET_ENV: {
        "ws_path": "/",
        "port": 9011,
        "workspace_root": "/workspace",
        "python_files_root": None,  # = workspace_root
        "extra_pythonpath": (
            "{root}/.venv/lib/python"
            f"{sys.version_info.major}.{sys.version_info.minor}/site-packages"
        ),
    },
}

ENV_PREFIX = "LSP_BRIDGE_"
TRUTHY_VALUES = {"1", "true", "yes", "y", "on"}
