"""Loki MCP models package."""

from .models import (
    Credentials,
    HealthStatus,
    LokiData,
    LokiQueryRequest,
    LokiResult,
    LokiStream,
    ResolvedQuery,
    TextContent,
    ToolCallResult,
)

__all__ = [
    "Credentials",
    "LokiQueryRequest",
    "ResolvedQuery",
    "LokiResult",
    "LokiData",
    "LokiStream",
    "TextContent",
    "ToolCallResult",
    "HealthStatus",
]
