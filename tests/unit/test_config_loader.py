"""
Tests unitaires pour la résolution de configuration.
"""
import os
import sys

import pytest

from lsp_ws_bridge.config.loader import resolve_settings, env_var_name, load_env_file
from lsp_ws_bridge.config.settings import BridgeSettings
from lsp_ws_bridge.core.exceptions import ConfigurationError


CLI_OK = {
    "port": "9011",
    "workspace_root": "/home/king/project",
    "python_files_root": "/home/king/project/python-files",
}


@pytest.mark.unit
class TestCliPreset:

    def test_full_cli(self):
        settings = resolve_settings(CLI_OK, environ={})
        assert settings.port == 9011
        assert settings.workspace_root == "/home/king/project"
        assert settings.python_files_root == "/home/king/project/python-files"
        assert settings.ws_path == "/lsp"
        assert settings.backend_args == ["--stdio"]
        assert settings.root_uri == "file:///home/king/project"

    def test_missing_everything(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_settings({}, environ={})
        message = exc_info.value.message
        assert "--port" in message
        assert "--project-root" in message
        assert "--python-files-root" in message

    def test_missing_python_files_root_only(self):
        values = dict(CLI_OK, python_files_root=None)
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_settings(values, environ={})
        assert exc_info.value.message.endswith("--python-files-root")

    def test_relative_root_becomes_absolute(self):
        settings = resolve_settings(dict(CLI_OK, workspace_root="proj"), environ={})
        assert settings.workspace_root == os.path.abspath("proj")

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_port(self, port):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_settings(dict(CLI_OK, port=port), environ={})
        assert exc_info.value.details["key"] == "port"

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError):
            resolve_settings(dict(CLI_OK, log_level="chatty"), environ={})

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_settings(dict(CLI_OK, preset="docker"), environ={})
        assert "docker" in exc_info.value.message


@pytest.mark.unit
class TestPrecedence:

    def test_environment_fills_missing_cli_values(self):
        environ = {
            env_var_name("port"): "9100",
            env_var_name("workspace_root"): "/srv/ws",
            env_var_name("python_files_root"): "/srv/ws/src",
        }
        settings = resolve_settings({}, environ=environ)
        assert settings.port == 9100
        assert settings.workspace_root == "/srv/ws"

    def test_cli_wins_over_environment(self):
        environ = {env_var_name("port"): "9100", env_var_name("log_level"): "debug"}
        settings = resolve_settings(CLI_OK, environ=environ)
        assert settings.port == 9011
        assert settings.log_level == "DEBUG"

    def test_blank_values_are_ignored(self):
        environ = {env_var_name("port"): "  "}
        settings = resolve_settings(dict(CLI_OK, ws_path=""), environ=environ)
        assert settings.port == 9011
        assert settings.ws_path == "/lsp"

    def test_boolean_switches(self):
        environ = {
            env_var_name("inject_root_uri"): "false",
            env_var_name("normalize_document_uris"): "0",
            env_var_name("deploy_config"): "yes",
        }
        settings = resolve_settings(CLI_OK, environ=environ)
        assert settings.inject_root_uri is False
        assert settings.normalize_document_uris is False
        assert settings.deploy_config is True

    def test_env_var_names(self):
        assert env_var_name("workspace_root") == "LSP_BRIDGE_PROJECT_ROOT"
        assert env_var_name("inject_root_uri") == "LSP_BRIDGE_INJECT_ROOT"


@pytest.mark.unit
class TestEnvPreset:

    def test_hardcoded_defaults(self):
        settings = resolve_settings({"preset": "env"}, environ={})
        version = f"{sys.version_info.major}.{sys.version_info.minor}"
        assert settings.port == 9011
        assert settings.workspace_root == "/workspace"
        assert settings.python_files_root == "/workspace"
        assert settings.ws_path == "/"
        assert settings.extra_pythonpath == f"/workspace/.venv/lib/python{version}/site-packages"

    def test_preset_from_environment(self):
        environ = {env_var_name("preset"): "ENV", env_var_name("workspace_root"): "/data/app"}
        settings = resolve_settings({}, environ=environ)
        assert settings.preset == "env"
        assert settings.python_files_root == "/data/app"
        assert settings.extra_pythonpath.startswith("/data/app/.venv/")


@pytest.mark.unit
def test_load_env_file_does_not_override(tmp_path, clean_bridge_env):
    (tmp_path / ".env").write_text("LSP_BRIDGE_PORT=9222\nLSP_BRIDGE_HOST=127.0.0.1\n", encoding="utf-8")
    clean_bridge_env.chdir(tmp_path)
    clean_bridge_env.setenv("LSP_BRIDGE_HOST", "10.0.0.1")

    try:
        path = load_env_file()
        assert path == str(tmp_path / ".env")
        assert os.environ["LSP_BRIDGE_PORT"] == "9222"
        assert os.environ["LSP_BRIDGE_HOST"] == "10.0.0.1"
    finally:
        # load_dotenv écrit dans os.environ hors monkeypatch
        os.environ.pop("LSP_BRIDGE_PORT", None)


@pytest.mark.unit
def test_settings_from_dict_uses_preset_ws_path():
    settings = BridgeSettings.from_dict({"port": 1, "workspace_root": "/w", "preset": "env"})
    assert settings.ws_path == "/"
    assert BridgeSettings.from_dict({"port": 1, "workspace_root": "/w", "ws_path": "lsp"}).ws_path == "/lsp"
