"""
Tests unitaires pour le lancement et l'arrêt du backend.
"""
import asyncio
import os
import signal
import sys

import pytest

from lsp_ws_bridge.core.exceptions import BackendSpawnError
from lsp_ws_bridge.proxy.framing import StreamMessageReader, StreamMessageWriter
from lsp_ws_bridge.core.envelope import RequestMessage
from lsp_ws_bridge.services.backend_process import (
    BackendCommand,
    BackendProcess,
    build_backend_command,
    build_backend_env,
)


@pytest.mark.unit
class TestBuildCommand:

    def test_js_backend_runs_with_node(self, make_settings, workspace_root):
        cmd = build_backend_command(make_settings(backend_path="/opt/node_modules/pyright/langserver.index.js"))
        assert cmd.argv == ["node", "/opt/node_modules/pyright/langserver.index.js", "--stdio"]
        assert cmd.cwd == workspace_root

    def test_py_backend_runs_with_current_interpreter(self, make_settings, fake_backend_path):
        cmd = build_backend_command(make_settings())
        assert cmd.argv == [sys.executable, fake_backend_path, "--stdio"]

    def test_plain_executable(self, make_settings):
        cmd = build_backend_command(make_settings(backend_path="pyright-langserver", backend_args=["--stdio", "-v"]))
        assert cmd.argv == ["pyright-langserver", "--stdio", "-v"]


@pytest.mark.unit
class TestBuildEnv:

    def test_prepends_extra_pythonpath(self):
        env = build_backend_env("/proj/.venv/site", base={"PYTHONPATH": "/existing", "HOME": "/root"})
        assert env["PYTHONPATH"] == f"/proj/.venv/site{os.pathsep}/existing"
        assert env["HOME"] == "/root"

    def test_sets_pythonpath_when_absent(self):
        assert build_backend_env("/x", base={})["PYTHONPATH"] == "/x"

    def test_no_extra_keeps_environment(self):
        base = {"PYTHONPATH": "/existing"}
        env = build_backend_env(None, base=base)
        assert env == base
        assert env is not base


@pytest.mark.asyncio
@pytest.mark.unit
async def test_spawn_error_for_missing_executable(workspace_root):
    command = BackendCommand(command="/nonexistent/lsp-server", args=["--stdio"], env={}, cwd=workspace_root)
    backend = BackendProcess(command)

    with pytest.raises(BackendSpawnError) as exc_info:
        await backend.start()

    assert exc_info.value.details["command"] == ["/nonexistent/lsp-server", "--stdio"]
    assert backend.pid is None
    assert await backend.terminate() is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_start_exchange_and_terminate(make_settings, workspace_root):
    backend = BackendProcess(build_backend_command(make_settings()))
    await backend.start()
    assert backend.is_running

    writer = StreamMessageWriter(backend.stdin)
    reader = StreamMessageReader(backend.stdout)
    await writer.write(RequestMessage(id=1, method="test/env", params={}, extra={"jsonrpc": "2.0"}))
    response = await reader.read()
    assert response.result["cwd"] == workspace_root

    code = await backend.terminate(timeout=5)
    assert code is not None
    assert not backend.is_running

    with pytest.raises(RuntimeError):
        await backend.start()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stderr_lines_are_logged(make_settings, caplog):
    backend = BackendProcess(build_backend_command(make_settings()), log_prefix="[t] ")
    await backend.start()
    backend.stdin.close()

    await backend.log_stderr()
    await backend.wait()

    assert "[t] Backend stderr: fake-lsp: started" in caplog.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_kill_reaps_the_process(make_settings):
    backend = BackendProcess(build_backend_command(make_settings()))
    await backend.start()

    reaper = backend.kill()

    assert reaper is not None
    assert await asyncio.wait_for(reaper, timeout=5) == -signal.SIGKILL
    assert backend.returncode == -signal.SIGKILL
    assert backend.kill() is None
