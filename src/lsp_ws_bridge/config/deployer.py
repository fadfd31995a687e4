"""
Déploiement de pyrightconfig.json dans la racine du workspace.

Exécuté une seule fois au démarrage, avant l'ouverture du listener: chaque
backend lancé ensuite relit ce fichier depuis son cwd.
"""
import logging
from pathlib import Path
from typing import Optional

from ..core.constants import (
    SERVER_CONFIG_FILENAME,
    PROJECT_ROOT_PLACEHOLDER,
    PYTHON_FILES_ROOT_PLACEHOLDER,
)
from ..core.exceptions import ConfigurationError
from .settings import BridgeSettings

logger = logging.getLogger(__name__)


def default_template_path() -> Path:
    """Template embarqué à côté du code du bridge."""
    return Path(__file__).resolve().parent.parent / "templates" / SERVER_CONFIG_FILENAME


def render_server_config(template: str, project_root: str, python_files_root: Optional[str]) -> str:
    """Remplace toutes les occurrences des deux placeholders."""
    rendered = template.replace(PROJECT_ROOT_PLACEHOLDER, project_root)
    return rendered.replace(PYTHON_FILES_ROOT_PLACEHOLDER, python_files_root or "")


def deploy_server_config(settings: BridgeSettings) -> Optional[Path]:
    """
    Écrit `<workspace_root>/pyrightconfig.json` depuis le template.

    Le fichier existant est toujours écrasé.

    Args:
        settings: Configuration du bridge

    Returns:
        Chemin écrit, ou None si le déploiement est désactivé / template absent

    Raises:
        ConfigurationError: Si la cible n'est pas inscriptible
    """
    if not settings.deploy_config:
        logger.info("Déploiement de %s désactivé", SERVER_CONFIG_FILENAME)
        return None

    template_path = Path(settings.config_template) if settings.config_template else default_template_path()
    if not template_path.is_file():
        logger.warning("Aucun template %s trouvé à %s", SERVER_CONFIG_FILENAME, template_path)
        return None

    template = template_path.read_text(encoding="utf-8")
    content = render_server_config(template, settings.workspace_root, settings.python_files_root)

    target_path = Path(settings.workspace_root) / SERVER_CONFIG_FILENAME
    try:
        target_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            message=f"Impossible d'écrire {target_path}: {e}",
            config_key="workspace_root"
        ) from e

    logger.info("%s déployé vers %s", SERVER_CONFIG_FILENAME, target_path)
    return target_path
