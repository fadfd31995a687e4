"""
Configuration des tests pytest.
"""
import pytest
import sys
import os
from pathlib import Path

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from lsp_ws_bridge.config.settings import BridgeSettings  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
FAKE_LSP_SERVER = FIXTURES_DIR / "fake_lsp_server_stdio.py"


# Configuration pytest-asyncio
def pytest_configure(config):
    """Configure les markers du projet."""
    config.addinivalue_line(
        "markers", "asyncio: marque un test comme asynchrone"
    )
    config.addinivalue_line(
        "markers", "unit: test unitaire sans processus externe"
    )
    config.addinivalue_line(
        "markers", "integration: test qui lance un vrai backend (fake LSP stdio)"
    )


@pytest.fixture
def fake_backend_path():
    """Chemin du faux serveur LSP stdio."""
    return str(FAKE_LSP_SERVER)


@pytest.fixture
def workspace_root(tmp_path):
    """Racine de workspace temporaire (existe sur disque)."""
    root = tmp_path / "workspace"
    root.mkdir()
    return str(root)


@pytest.fixture
def make_settings(workspace_root, fake_backend_path):
    """Fabrique de BridgeSettings pointant sur le faux backend."""
    def _make(**overrides):
        data = {
            "port": 9011,
            "workspace_root": workspace_root,
            "python_files_root": os.path.join(workspace_root, "python-files"),
            "backend_path": fake_backend_path,
            "deploy_config": False,
        }
        data.update(overrides)
        return BridgeSettings.from_dict(data)
    return _make


@pytest.fixture
def clean_bridge_env(monkeypatch):
    """Retire toutes les variables LSP_BRIDGE_* de l'environnement."""
    for key in list(os.environ):
        if key.startswith("LSP_BRIDGE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
