import logging
import sys
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_LOKI_URL = "http://localhost:3100"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LoggingConfig(BaseSettings):
    """Configuration for logging."""

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.upper()
        if upper_v not in valid_levels:
            logger.error(f"LOG_LEVEL must be one of {valid_levels}")
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return upper_v


class LokiConfig(BaseSettings):
    """Upstream Loki endpoint and the credentials used when a call has none."""

    LOKI_URL: str = Field(
        default=DEFAULT_LOKI_URL,
        description="Default Loki base URL when a call does not pass one",
    )
    LOKI_USERNAME: Optional[str] = Field(
        default=None, description="Default basic auth username"
    )
    LOKI_PASSWORD: Optional[str] = Field(
        default=None, description="Default basic auth password"
    )
    LOKI_TOKEN: Optional[str] = Field(
        default=None, description="Default bearer token"
    )
    LOKI_TIMEOUT: float = Field(
        default=30.0, description="Timeout in seconds for Loki requests"
    )

    @validator("LOKI_URL")
    def validate_loki_url(cls, v: str) -> str:
        """An empty LOKI_URL means "not set"."""
        v = v.strip()
        if not v:
            return DEFAULT_LOKI_URL
        return v

    @validator("LOKI_TIMEOUT")
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("LOKI_TIMEOUT must be positive")
        return v


class ServerConfig(BaseSettings):
    """Where the HTTP/SSE transport listens."""

    SSE_HOST: str = Field(default="0.0.0.0", description="SSE listen address")
    SSE_PORT: int = Field(default=8080, description="SSE listen port")


class Config:
    """Main configuration for the MCP server."""

    def __init__(self, loki_url: Optional[str] = None):
        self.logging = LoggingConfig()
        self.loki = LokiConfig()
        self.server = ServerConfig()

        if loki_url:
            logger.info(f"Overriding Loki URL from command line: {loki_url}")
            self.loki = self.loki.model_copy(update={"LOKI_URL": loki_url})

        logger.info(f"Default Loki URL: {self.loki.LOKI_URL}")

    def setup_logging(self):
        """Configure logging based on the provided settings.

        Everything goes to stderr: stdout carries JSON-RPC on the stdio
        transport.
        """
        log_level = getattr(logging, self.logging.LOG_LEVEL)
        logging.basicConfig(
            level=log_level,
            format=LOG_FORMAT,
            stream=sys.stderr,
            force=True,
        )
        logging.getLogger("loki_mcp").setLevel(log_level)
        logger.info(f"Logging configured at level {self.logging.LOG_LEVEL}")
