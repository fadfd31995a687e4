#!/usr/bin/env python3
"""scripts.lsp_ws_probe

Sonde du bridge LSP WebSocket.

Se connecte au bridge, effectue la poignée de main `initialize`, puis termine
proprement la session (`shutdown` + `exit`):

    python3 scripts/lsp_ws_probe.py --url ws://localhost:9011/lsp

Sortie:
- stdout: un résumé JSON (nom du serveur, capacités annoncées)
- stderr: les erreurs
- code de retour 0 si le backend a répondu, 1 sinon
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

import websockets


INITIALIZE_ID = 1
SHUTDOWN_ID = 2


def build_request(*, req_id: int, method: str, params: object | None) -> dict[str, object]:
    payload: dict[str, object] = {"jsonrpc": "2.0", "id": req_id, "method": method}
    if params is not None:
        payload["params"] = params
    return payload


def build_initialize_request(*, req_id: int = INITIALIZE_ID) -> dict[str, object]:
    # rootUri volontairement absent: le bridge l'injecte.
    return build_request(
        req_id=req_id,
        method="initialize",
        params={
            "processId": os.getpid(),
            "clientInfo": {"name": "lsp-ws-probe"},
            "capabilities": {},
        },
    )


def summarize_initialize_result(response: dict[str, object]) -> dict[str, object]:
    if "error" in response:
        return {"ok": False, "error": response["error"]}

    result = response.get("result")
    if not isinstance(result, dict):
        return {"ok": False, "error": "initialize result is not an object"}

    server_info = result.get("serverInfo") if isinstance(result.get("serverInfo"), dict) else {}
    capabilities = result.get("capabilities") if isinstance(result.get("capabilities"), dict) else {}
    return {
        "ok": True,
        "server": server_info.get("name"),
        "version": server_info.get("version"),
        "capabilities": sorted(capabilities),
    }


async def _recv_response(ws, req_id: int) -> dict[str, object]:
    """Attend la réponse portant `req_id` (les notifications/requêtes serveur sont ignorées)."""
    while True:
        raw = await ws.recv()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            continue
        if not isinstance(msg, dict):
            continue
        if "method" in msg:
            continue
        if msg.get("id") == req_id:
            return msg


async def probe(url: str, *, timeout: float) -> dict[str, object]:
    async with websockets.connect(url, ping_interval=None) as ws:
        await ws.send(json.dumps(build_initialize_request()))
        response = await asyncio.wait_for(_recv_response(ws, INITIALIZE_ID), timeout=timeout)
        summary = summarize_initialize_result(response)

        if summary["ok"]:
            await ws.send(json.dumps({"jsonrpc": "2.0", "method": "initialized", "params": {}}))
            await ws.send(json.dumps(build_request(req_id=SHUTDOWN_ID, method="shutdown", params=None)))
            await asyncio.wait_for(_recv_response(ws, SHUTDOWN_ID), timeout=timeout)
            await ws.send(json.dumps({"jsonrpc": "2.0", "method": "exit"}))

        return summary


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sonde du bridge LSP WebSocket")
    parser.add_argument("--url", default=os.getenv("LSP_BRIDGE_PROBE_URL", "ws://localhost:9011/lsp"))
    parser.add_argument("--timeout", type=float, default=30.0)
    args = parser.parse_args(argv)

    try:
        summary = await probe(args.url, timeout=args.timeout)
    except asyncio.TimeoutError:
        sys.stderr.write(f"[lsp_ws_probe] timeout après {args.timeout}s ({args.url})\n")
        return 1
    except (OSError, websockets.exceptions.WebSocketException) as e:
        sys.stderr.write(f"[lsp_ws_probe] connexion impossible à {args.url}: {e}\n")
        return 1

    sys.stdout.write(json.dumps(summary, ensure_ascii=False) + "\n")
    sys.stdout.flush()
    return 0 if summary["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
