"""
JSON-RPC client half of the stdio transport.

One StdioRpcClient call starts the server process, sends a single tools/call
request as one line of JSON, reads the matching response line and then
terminates the server. There is no connection reuse.
"""

import json
import logging
import subprocess
import sys
import uuid
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from loki_mcp import __version__
from loki_mcp.errors import RpcError, TransportError
from loki_mcp.models import ToolCallResult

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"
TERMINATE_TIMEOUT = 2


def default_server_command() -> List[str]:
    """Command that starts this package's server on the stdio transport only."""
    return [sys.executable, "-m", "loki_mcp", "--transport", "stdio"]


def make_request(request_id: str, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    request: Dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
    }
    if params is not None:
        request["params"] = params
    return request


class StdioRpcClient:
    """
    Drive an MCP server over its stdin/stdout.

    Args:
        command: Server command line; defaults to default_server_command()
    """

    def __init__(self, command: Optional[List[str]] = None):
        self.command = command or default_server_command()
        self.process: Optional[subprocess.Popen] = None

    def _start(self):
        logger.info(f"Starting MCP server: {' '.join(self.command)}")
        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=None,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as e:
            raise TransportError(f"failed to start server: {e}") from e

    def _send(self, message: Dict[str, Any]):
        line = json.dumps(message)
        logger.debug(f"Sending: {line}")
        try:
            self.process.stdin.write(line + "\n")
            self.process.stdin.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"failed to send request: {e}") from e

    def _receive(self, request_id: str) -> Dict[str, Any]:
        """Block until the response with request_id arrives."""
        while True:
            try:
                line = self.process.stdout.readline()
            except (OSError, ValueError) as e:
                raise TransportError(f"failed to read response: {e}") from e
            if not line:
                raise TransportError("server closed the connection before responding")
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping non-JSON output: {line.strip()}")
                continue
            if isinstance(message, dict) and message.get("id") == request_id:
                logger.debug(f"Received: {line.strip()}")
                return message
            logger.debug(f"Skipping unrelated message: {line.strip()}")

    def _request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request_id = str(uuid.uuid4())
        self._send(make_request(request_id, method, params))
        response = self._receive(request_id)

        error = response.get("error")
        if error is not None:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise RpcError(error.get("code", -32603), error.get("message", ""))
        return response.get("result") or {}

    def _initialize(self):
        self._request(
            "initialize",
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": "loki-mcp-client", "version": __version__},
            },
        )
        self._send({"jsonrpc": JSONRPC_VERSION, "method": "notifications/initialized"})

    def _stop(self):
        if self.process is None:
            return
        logger.info("Terminating MCP server")
        self.process.terminate()
        try:
            self.process.communicate(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.communicate()
        self.process = None

    def call_tool(self, name: str, arguments: Mapping[str, Any]) -> ToolCallResult:
        """
        Call one tool in a fresh server process.

        Args:
            name: Tool name, e.g. "loki_query"
            arguments: Tool arguments

        Returns:
            The tool result; check isError for tool-level failures

        Raises:
            TransportError: If the pipe broke or the response was malformed
            RpcError: If the server answered with a JSON-RPC error
        """
        self._start()
        try:
            self._initialize()
            result = self._request(
                "tools/call", {"name": name, "arguments": dict(arguments)}
            )
        finally:
            self._stop()

        try:
            return ToolCallResult.model_validate(result)
        except ValidationError as e:
            raise TransportError(f"malformed tool result: {e}") from e
