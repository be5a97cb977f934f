"""
Loki client module issuing query_range requests over HTTP.

The client sends one GET per call, attaches credentials, and turns the
response into a LokiResult or a classified LokiMcpError. It never retries.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from loki_mcp.errors import DecodeError, HTTPError, NetworkError, UpstreamError
from loki_mcp.models import Credentials, LokiResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def auth_for(credentials: Optional[Credentials]):
    """
    Work out headers and basic auth for a set of credentials.

    A token wins over username/password; either half of a basic auth pair may
    be missing and is then sent as the empty string.

    Returns:
        Tuple of (headers dict, httpx auth or None)
    """
    headers: Dict[str, str] = {}
    if credentials is None:
        return headers, None
    if credentials.token:
        headers["Authorization"] = f"Bearer {credentials.token}"
        return headers, None
    if credentials.username or credentials.password:
        return headers, httpx.BasicAuth(
            credentials.username or "", credentials.password or ""
        )
    return headers, None


@dataclass
class LokiClient:
    """
    Client for Loki query_range requests.

    Args:
        timeout: Request timeout in seconds
        transport: Optional httpx transport, used to stub Loki in tests
    """

    timeout: float = DEFAULT_TIMEOUT
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def query_range(
        self, url: str, credentials: Optional[Credentials] = None
    ) -> LokiResult:
        """
        Execute a fully built query_range URL.

        Args:
            url: URL produced by build_query_url
            credentials: Optional bearer token or basic auth pair

        Returns:
            Parsed Loki result with status "success"

        Raises:
            NetworkError: If no HTTP response was received
            HTTPError: If Loki answered with a non-2xx status
            UpstreamError: If Loki reported status "error"
            DecodeError: If the body is not a Loki JSON envelope
        """
        headers, auth = auth_for(credentials)
        if "Authorization" in headers:
            auth_kind = "bearer"
        elif auth is not None:
            auth_kind = "basic"
        else:
            auth_kind = "none"
        logger.info(f"Querying Loki (auth: {auth_kind})")

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.get(url, headers=headers, auth=auth)
            except httpx.TimeoutException as e:
                logger.error(f"Loki request timed out after {self.timeout}s")
                raise NetworkError(f"request timed out after {self.timeout}s") from e
            except httpx.RequestError as e:
                logger.error(f"Loki request failed: {e}")
                raise NetworkError(f"request failed: {e}") from e

        body = response.text
        if not response.is_success:
            logger.error(f"Loki returned HTTP {response.status_code}")
            raise HTTPError(response.status_code, body)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Loki returned malformed JSON: {e}")
            raise DecodeError(f"malformed JSON response: {e}") from e

        if isinstance(payload, dict) and payload.get("status") == "error":
            message = payload.get("error") or payload.get("message") or ""
            logger.error(f"Loki reported an error: {message}")
            raise UpstreamError(message)

        try:
            result = LokiResult.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Unexpected Loki response shape: {e}")
            raise DecodeError(f"unexpected response shape: {e}") from e

        logger.info(f"Loki returned {len(result.data.result)} streams")
        return result
