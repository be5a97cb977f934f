"""Shared fixtures for the Loki MCP tests."""

import json
import sys
import textwrap
from datetime import datetime, timezone

import httpx
import pytest

from loki_mcp.config import LokiConfig
from loki_mcp.models import models as models_module

NOW = datetime(2024, 1, 15, 11, 0, 0, tzinfo=timezone.utc)

ENV_VARS = [
    "LOKI_URL",
    "LOKI_USERNAME",
    "LOKI_PASSWORD",
    "LOKI_TOKEN",
    "LOKI_TIMEOUT",
    "LOG_LEVEL",
    "SSE_HOST",
    "SSE_PORT",
]

FAKE_SERVER = textwrap.dedent(
    """
    import json
    import sys

    mode = sys.argv[1]
    print("fake server starting", flush=True)
    for line in sys.stdin:
        message = json.loads(line)
        if "id" not in message:
            continue
        if message["method"] == "initialize":
            result = {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "serverInfo": {"name": "fake", "version": "0"},
            }
            print(json.dumps({"jsonrpc": "2.0", "id": message["id"], "result": result}), flush=True)
            continue
        if mode == "exit":
            sys.exit(0)
        print(json.dumps({"jsonrpc": "2.0", "method": "notifications/message", "params": {}}), flush=True)
        if mode == "rpc_error":
            reply = {"jsonrpc": "2.0", "id": message["id"], "error": {"code": -32601, "message": "Method not found"}}
        elif mode == "tool_error":
            result = {"content": [{"type": "text", "text": "HTTP error: 502 - bad gateway"}], "isError": True}
            reply = {"jsonrpc": "2.0", "id": message["id"], "result": result}
        elif mode == "calc":
            result = {"content": [{"type": "text", "text": "8"}], "isError": False}
            reply = {"jsonrpc": "2.0", "id": message["id"], "result": result}
        else:
            result = {"content": [{"type": "text", "text": json.dumps(message)}], "isError": False}
            reply = {"jsonrpc": "2.0", "id": message["id"], "result": result}
        print(json.dumps(reply), flush=True)
    """
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the settings under test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_models_module():
    """Undo importlib.reload of the models module so class identities stay stable."""
    saved = dict(models_module.__dict__)
    yield
    models_module.__dict__.update(saved)


@pytest.fixture
def loki_config():
    return LokiConfig(LOKI_URL="http://localhost:3100")


@pytest.fixture
def fake_server(tmp_path):
    """Return a function building the command line of a scripted MCP server."""
    script = tmp_path / "fake_server.py"
    script.write_text(FAKE_SERVER)

    def command(mode: str = "echo"):
        return [sys.executable, str(script), mode]

    return command


def loki_body(streams=None, status="success"):
    return {
        "status": status,
        "data": {"resultType": "streams", "result": streams or []},
    }


class RecordingLoki:
    """httpx.MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self.body = loki_body() if body is None else body
        self.raw = raw
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, text=json.dumps(self.body))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
