"""
Tool handlers for the Loki MCP server.

Handlers take the raw argument mapping of a tools/call request, validate it
into typed models straight away, and return a ToolCallResult. Business
failures become results with isError set; they are never raised to the RPC
layer.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from loki_mcp.client import LokiClient
from loki_mcp.config import LokiConfig
from loki_mcp.errors import (
    InvalidArgument,
    InvalidTimeExpression,
    LokiMcpError,
    MissingArgument,
)
from loki_mcp.formatter import format_results
from loki_mcp.models import Credentials, LokiQueryRequest, ResolvedQuery, ToolCallResult
from loki_mcp.query import build_query_url
from loki_mcp.timeparse import resolve_time, to_epoch_seconds

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_LOOKBACK = timedelta(hours=1)


def _optional_str(arguments: Mapping[str, Any], name: str) -> Optional[str]:
    """Return a string argument, treating absent, non-string and "" as unset."""
    value = arguments.get(name)
    if isinstance(value, str) and value != "":
        return value
    return None


def _limit(arguments: Mapping[str, Any]) -> int:
    value = arguments.get("limit")
    # bool is an int subclass but not a number here
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_LIMIT
    if not math.isfinite(value) or value < 0:
        raise InvalidArgument(f"limit must be a non-negative integer, got {value}")
    return int(value)


def _resolve_bound(bound: str, text: str, now: datetime) -> datetime:
    try:
        return resolve_time(text, now)
    except InvalidTimeExpression as e:
        raise InvalidTimeExpression(text, bound=bound) from e


class LokiQueryHandler:
    """
    Handler for the loki_query tool.

    Args:
        config: Loki settings resolved at start-up
        transport: Optional httpx transport, used to stub Loki in tests
        clock: Returns the current instant; replaceable in tests
    """

    def __init__(
        self,
        config: LokiConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.client = LokiClient(timeout=config.LOKI_TIMEOUT, transport=transport)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def parse_arguments(self, arguments: Mapping[str, Any]) -> LokiQueryRequest:
        """Validate the raw argument mapping into a LokiQueryRequest."""
        query = arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            raise MissingArgument("query")

        credentials = Credentials(
            username=_optional_str(arguments, "username"),
            password=_optional_str(arguments, "password"),
            token=_optional_str(arguments, "token"),
        )
        if credentials.is_empty:
            credentials = Credentials(
                username=self.config.LOKI_USERNAME,
                password=self.config.LOKI_PASSWORD,
                token=self.config.LOKI_TOKEN,
            )

        return LokiQueryRequest(
            query=query,
            url=_optional_str(arguments, "url") or self.config.LOKI_URL,
            credentials=credentials,
            start=_optional_str(arguments, "start"),
            end=_optional_str(arguments, "end"),
            limit=_limit(arguments),
        )

    def resolve(self, request: LokiQueryRequest) -> ResolvedQuery:
        """Resolve the time range and build the query URL."""
        now = self.clock()

        logger.info("Resolving query time range")
        start = (
            _resolve_bound("start", request.start, now)
            if request.start
            else now - DEFAULT_LOOKBACK
        )
        end = _resolve_bound("end", request.end, now) if request.end else now
        start_epoch = to_epoch_seconds(start)
        end_epoch = to_epoch_seconds(end)

        logger.info("Building query URL")
        url = build_query_url(
            request.url, request.query, start_epoch, end_epoch, request.limit
        )
        return ResolvedQuery(
            query=request.query,
            start=start_epoch,
            end=end_epoch,
            limit=request.limit,
            url=url,
        )

    async def run(self, arguments: Mapping[str, Any]) -> str:
        """
        Run a loki_query call and return the report text.

        Raises:
            LokiMcpError: On the first failing step
        """
        logger.info("Parsing loki_query arguments")
        request = self.parse_arguments(arguments)
        logger.info(f"Running loki_query {request.query!r} against {request.url}")

        resolved = self.resolve(request)
        logger.info(
            f"Executing query for range {resolved.start}..{resolved.end} (limit {resolved.limit})"
        )
        result = await self.client.query_range(resolved.url, request.credentials)

        logger.info("Formatting query results")
        return format_results(result)

    async def __call__(self, arguments: Mapping[str, Any]) -> ToolCallResult:
        try:
            text = await self.run(arguments)
        except LokiMcpError as e:
            logger.error(f"loki_query failed: {e}")
            return ToolCallResult.from_text(str(e), is_error=True)
        logger.info("loki_query done")
        return ToolCallResult.from_text(text)


OPERATIONS: Dict[str, Callable[[float, float], float]] = {
    "add": lambda x, y: x + y,
    "subtract": lambda x, y: x - y,
    "multiply": lambda x, y: x * y,
    "divide": lambda x, y: x / y,
}

SYMBOLS = {"add": "+", "subtract": "-", "multiply": "*", "divide": "/"}


def calculate(operation: str, x: float, y: float) -> float:
    """
    Apply one of the four basic arithmetic operations.

    Raises:
        InvalidArgument: On an unknown operation or division by zero
    """
    if operation not in OPERATIONS:
        raise InvalidArgument(f"unsupported operation: {operation}")
    if operation == "divide" and y == 0:
        raise InvalidArgument("division by zero")
    return OPERATIONS[operation](x, y)


def handle_calculate(arguments: Mapping[str, Any]) -> ToolCallResult:
    """Handler for the calculate tool."""
    operation = arguments.get("operation")
    if not isinstance(operation, str):
        return ToolCallResult.from_text(str(MissingArgument("operation")), is_error=True)
    try:
        operands = []
        for name in ("x", "y"):
            value = arguments.get(name)
            if value is None:
                raise MissingArgument(name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidArgument(f"{name} must be a number")
            operands.append(float(value))
        result = calculate(operation, *operands)
    except LokiMcpError as e:
        logger.error(f"calculate failed: {e}")
        return ToolCallResult.from_text(str(e), is_error=True)
    return ToolCallResult.from_text(f"{result:g}")
