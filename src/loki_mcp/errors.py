"""Error types raised by the Loki MCP components."""

from typing import Optional


class LokiMcpError(Exception):
    """Base class for every error the Loki tool reports to its caller."""


class InvalidArgument(LokiMcpError):
    """A tool argument has the wrong type or an out-of-range value."""


class MissingArgument(InvalidArgument):
    """A required tool argument is absent."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"missing required argument: {name}")


class InvalidTimeExpression(LokiMcpError):
    """A time string matched none of the supported formats."""

    def __init__(self, text: str, bound: Optional[str] = None):
        self.text = text
        self.bound = bound
        message = f"unsupported time format: {text}"
        if bound:
            message = f"invalid {bound} time: {message}"
        super().__init__(message)


class InvalidBaseURL(LokiMcpError):
    """The Loki base URL cannot be used to build a query URL."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"invalid Loki URL {url!r}: {reason}")


class NetworkError(LokiMcpError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


class HTTPError(LokiMcpError):
    """Loki answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"HTTP error: {status} - {body}")


class UpstreamError(LokiMcpError):
    """Loki answered 2xx but its envelope carries status "error"."""

    def __init__(self, message: Optional[str]):
        self.message = message or ""
        super().__init__(f"Loki error: {self.message}")


class DecodeError(LokiMcpError):
    """The Loki response body is not the expected JSON envelope."""


class TransportError(LokiMcpError):
    """The pipe to the server process broke before a response was read."""


class RpcError(LokiMcpError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code}: {message}")
