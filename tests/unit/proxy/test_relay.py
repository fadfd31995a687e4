"""
Tests unitaires pour les boucles de relais.
"""
import logging

import pytest

from lsp_ws_bridge.core.envelope import parse_envelope, envelope_to_dict
from lsp_ws_bridge.core.exceptions import EnvelopeError
from lsp_ws_bridge.proxy.relay import (
    SessionStats,
    pump_client_to_backend,
    pump_backend_to_client,
)
from lsp_ws_bridge.proxy.rewrite import MessageRewriter, RULE_ROOT_INJECTION, RULE_URI_NORMALIZATION


class ScriptedReader:
    """Rejoue une liste d'éléments: dict -> enveloppe, Exception -> levée, puis None (EOF)."""

    def __init__(self, items):
        self._items = list(items)

    async def read(self):
        if not self._items:
            return None
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return parse_envelope(item)


class RecordingWriter:
    def __init__(self, fail_on: int = None):
        self.written = []
        self._fail_on = fail_on

    async def write(self, envelope):
        if self._fail_on is not None and len(self.written) == self._fail_on:
            raise BrokenPipeError("backend stdin fermé")
        self.written.append(envelope_to_dict(envelope))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_to_backend_preserves_order_and_rewrites():
    reader = ScriptedReader([
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
        {"jsonrpc": "2.0", "method": "initialized", "params": {}},
        {"jsonrpc": "2.0", "id": 2, "method": "textDocument/hover", "params": {"textDocument": {"uri": "foo/bar.py"}}},
    ])
    writer = RecordingWriter()
    stats = SessionStats()

    await pump_client_to_backend(reader, writer, MessageRewriter("/proj"), stats)

    assert [m["method"] for m in writer.written] == ["initialize", "initialized", "textDocument/hover"]
    assert writer.written[0]["params"]["rootUri"] == "file:///proj"
    assert writer.written[2]["params"]["textDocument"]["uri"] == "file:///proj/foo/bar.py"
    assert stats.client_to_backend == 3
    assert stats.rewrites == {RULE_ROOT_INJECTION: 1, RULE_URI_NORMALIZATION: 1}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_to_backend_drops_undecodable_frames(caplog):
    reader = ScriptedReader([
        {"id": 1, "method": "a"},
        EnvelopeError("JSON invalide", content_preview="{oops"),
        {"id": 2, "method": "b"},
    ])
    writer = RecordingWriter()
    stats = SessionStats()

    with caplog.at_level(logging.WARNING, logger="lsp_ws_bridge.proxy.relay"):
        await pump_client_to_backend(reader, writer, MessageRewriter("/proj"), stats, log_prefix="[t] ")

    assert [m["id"] for m in writer.written] == [1, 2]
    assert stats.dropped_from_client == 1
    assert "Message client ignoré" in caplog.text


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_to_backend_write_error_propagates():
    reader = ScriptedReader([{"id": 1, "method": "a"}, {"id": 2, "method": "b"}])
    writer = RecordingWriter(fail_on=1)
    stats = SessionStats()

    with pytest.raises(BrokenPipeError):
        await pump_client_to_backend(reader, writer, MessageRewriter("/proj"), stats)
    assert stats.client_to_backend == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_backend_to_client_is_verbatim():
    messages = [
        {"jsonrpc": "2.0", "id": 1, "result": {"capabilities": {}}},
        {"jsonrpc": "2.0", "method": "textDocument/publishDiagnostics", "params": {"uri": "rel.py", "diagnostics": []}},
        {"jsonrpc": "2.0", "id": 5, "method": "workspace/configuration", "params": {"items": []}},
    ]
    writer = RecordingWriter()
    stats = SessionStats()

    await pump_backend_to_client(ScriptedReader(messages), writer, stats)

    assert writer.written == messages
    assert stats.backend_to_client == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_backend_to_client_debug_log_uses_preview(caplog):
    reader = ScriptedReader([{"jsonrpc": "2.0", "id": 1, "result": "x" * 1000}])
    with caplog.at_level(logging.DEBUG, logger="lsp_ws_bridge.proxy.relay"):
        await pump_backend_to_client(reader, RecordingWriter(), SessionStats(), preview_chars=40)

    lines = [r.getMessage() for r in caplog.records if "Backend vers client" in r.getMessage()]
    assert len(lines) == 1
    assert lines[0].endswith("…")
    assert "x" * 100 not in lines[0]


@pytest.mark.unit
def test_session_stats_to_dict():
    stats = SessionStats()
    stats.record_rewrites([RULE_ROOT_INJECTION])
    stats.record_rewrites([RULE_ROOT_INJECTION, RULE_URI_NORMALIZATION])
    assert stats.to_dict()["rewrites"] == {RULE_ROOT_INJECTION: 2, RULE_URI_NORMALIZATION: 1}
