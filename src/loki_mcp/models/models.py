"""Unified models for Loki MCP."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Credentials(BaseModel):
    """Credentials attached to an outbound Loki request."""

    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    token: Optional[str] = Field(
        default=None,
        repr=False,
        description="Bearer token; takes precedence over basic auth",
    )

    @property
    def is_empty(self) -> bool:
        return not (self.username or self.password or self.token)


class LokiQueryRequest(BaseModel):
    """Typed arguments of one loki_query call."""

    query: str = Field(..., min_length=1, description="LogQL query string")
    url: str = Field(..., description="Loki base URL")
    credentials: Credentials = Field(default_factory=Credentials)
    start: Optional[str] = Field(
        default=None, description="Start time expression (default: 1h ago)"
    )
    end: Optional[str] = Field(
        default=None, description="End time expression (default: now)"
    )
    limit: int = Field(default=100, ge=0, description="Maximum entries to return")


class ResolvedQuery(BaseModel):
    """A query ready to be sent: times resolved and URL assembled."""

    model_config = ConfigDict(frozen=True)

    query: str
    start: int = Field(..., description="Start as integer epoch seconds")
    end: int = Field(..., description="End as integer epoch seconds")
    limit: int
    url: str


class LokiStream(BaseModel):
    """One stream of a Loki query result."""

    stream: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("stream", "metric"),
        description="Label set identifying the stream",
    )
    values: List[List[Any]] = Field(
        default_factory=list, description="[timestamp, line] pairs in upstream order"
    )

    @field_validator("stream", mode="before")
    @classmethod
    def none_labels_are_empty(cls, v):
        return {} if v is None else v

    @field_validator("values", mode="before")
    @classmethod
    def none_values_are_empty(cls, v):
        return [] if v is None else v


class LokiData(BaseModel):
    """The data portion of a Loki response."""

    resultType: str = ""
    result: List[LokiStream] = Field(default_factory=list)

    @field_validator("result", mode="before")
    @classmethod
    def none_result_is_empty(cls, v):
        return [] if v is None else v


class LokiResult(BaseModel):
    """The envelope returned by Loki's query_range endpoint."""

    status: str = Field(default="success", description="success or error")
    data: LokiData = Field(default_factory=LokiData)
    error: Optional[str] = None


class TextContent(BaseModel):
    """A text content item of a tool result."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """Result of a tools/call exchange, as carried on the wire."""

    content: List[TextContent] = Field(default_factory=list)
    isError: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolCallResult":
        return cls(content=[TextContent(text=text)], isError=is_error)

    @property
    def text(self) -> str:
        """Concatenated text of all content items."""
        return "".join(item.text for item in self.content)


class HealthStatus(BaseModel):
    """Body of the /health endpoint."""

    status: str = Field(default="ok", description="Status of the server")
    timestamp: datetime = Field(default_factory=datetime.now)
    version: str
