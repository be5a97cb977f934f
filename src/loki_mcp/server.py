import argparse
import asyncio
import logging
import sys
import traceback
from typing import Annotated, Any, Dict, Optional

import fastmcp
import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from loki_mcp import __version__
from loki_mcp.config import Config
from loki_mcp.handlers import LokiQueryHandler, handle_calculate
from loki_mcp.models import HealthStatus

logger = logging.getLogger(__name__)

SERVER_NAME = "Loki MCP Server"
SSE_PATH = "/sse"
TRANSPORTS = ("stdio", "sse", "both")


class LokiMcpServer:
    """
    MCP server exposing the loki_query and calculate tools.

    Args:
        config: Server configuration
        transport: Optional httpx transport for Loki requests, used in tests
    """

    def __init__(
        self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self.mcp = FastMCP(SERVER_NAME)
        self.loki_handler = LokiQueryHandler(config.loki, transport=transport)
        self._register_tools()
        self._register_routes()

    def _register_tools(self):
        default_url = self.config.loki.LOKI_URL

        @self.mcp.tool(
            name="loki_query",
            description=(
                "Run a query against Grafana Loki. "
                f"Loki server URL defaults to {default_url} from the LOKI_URL env var. "
                "Start defaults to 1h ago, end to now, limit to 100."
            ),
        )
        async def loki_query(
            query: Annotated[Any, Field(description="LogQL query string")] = None,
            url: Annotated[Any, Field(description="Loki base URL")] = None,
            username: Annotated[Any, Field(description="Basic auth username")] = None,
            password: Annotated[Any, Field(description="Basic auth password")] = None,
            token: Annotated[Any, Field(description="Bearer token")] = None,
            start: Annotated[Any, Field(description="Start time, e.g. -1h")] = None,
            end: Annotated[Any, Field(description="End time, e.g. now")] = None,
            limit: Annotated[Any, Field(description="Maximum entries")] = None,
        ) -> str:
            """Run a LogQL query against Grafana Loki."""
            # parameters stay untyped; LokiQueryHandler applies the argument rules
            arguments: Dict[str, Any] = {
                "query": query,
                "url": url,
                "username": username,
                "password": password,
                "token": token,
                "start": start,
                "end": end,
                "limit": limit,
            }
            outcome = await self.loki_handler(
                {k: v for k, v in arguments.items() if v is not None}
            )
            if outcome.isError:
                raise ToolError(outcome.text)
            return outcome.text

        @self.mcp.tool(name="calculate")
        async def calculate(operation: str, x: float, y: float) -> str:
            """Perform a basic arithmetic operation (add, subtract, multiply, divide)."""
            outcome = handle_calculate({"operation": operation, "x": x, "y": y})
            if outcome.isError:
                raise ToolError(outcome.text)
            return outcome.text

    def _register_routes(self):
        @self.mcp.custom_route("/health", methods=["GET"])
        async def health(request: Request) -> JSONResponse:
            status = HealthStatus(version=__version__)
            return JSONResponse(status.model_dump(mode="json"))

    async def run_sse_async(self):
        host = self.config.server.SSE_HOST
        port = self.config.server.SSE_PORT
        logger.info(f"Starting SSE server on http://{host}:{port}")
        logger.info(f"SSE Endpoint: http://{host}:{port}{SSE_PATH}")
        logger.info(f"Message Endpoint: http://{host}:{port}{fastmcp.settings.message_path}")
        logger.info(f"Health Endpoint: http://{host}:{port}/health")
        await self.mcp.run_http_async(
            transport="sse", host=host, port=port, path=SSE_PATH
        )

    async def run_stdio_async(self):
        logger.info("Starting stdio server")
        await self.mcp.run_stdio_async()

    async def run_both_async(self):
        await asyncio.gather(self.run_stdio_async(), self.run_sse_async())

    def run(self, transport: str = "both"):
        if transport == "stdio":
            asyncio.run(self.run_stdio_async())
        elif transport == "sse":
            asyncio.run(self.run_sse_async())
        else:
            asyncio.run(self.run_both_async())


def run_server(argv=None):
    parser = argparse.ArgumentParser(description="Loki MCP Server")
    parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        default="both",
        help="Transport(s) to serve (default: both stdio and SSE)",
    )
    parser.add_argument("--host", type=str, default=None, help="SSE listen address")
    parser.add_argument("--port", type=int, default=None, help="SSE listen port")
    parser.add_argument("--loki-url", type=str, default=None, help="Default Loki URL")
    args = parser.parse_args(argv)

    try:
        config = Config(loki_url=args.loki_url)
        config.setup_logging()
        if args.host:
            config.server.SSE_HOST = args.host
        if args.port:
            config.server.SSE_PORT = args.port

        server = LokiMcpServer(config)
        server.run(args.transport)
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    except Exception as e:
        logger.critical(f"Server failed: {e}")
        sys.stderr.write(f"FATAL ERROR: {e}\n{traceback.format_exc()}\n")
        sys.exit(1)
