"""DNS-over-HTTPS transport."""

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp
from pydantic import ValidationError

from dohdig.dns.models import DnsError, DnsResponse, QueryOutcome

logger = logging.getLogger(__name__)

DOH_JSON_HEADERS = {"accept": "application/dns-json"}

# Code used for failures that never produced a usable HTTP response
SERVER_ERROR = 500

# Provider rejections with a fixed explanation
HTTP_ERROR_MESSAGES = {
    400: "DNS query not specified or too small.",
    413: "DNS query is larger than maximum allowed DNS message size.",
}


class DnsTransport(Protocol):
    """Protocol for sending one DoH JSON query."""

    async def query(self, uri: str) -> QueryOutcome: ...


def decode_response(status: int, body: str) -> QueryOutcome:
    """
    Turn an HTTP status and body into a query outcome.

    Non-200 statuses and bodies that are not DoH JSON become DnsError values.
    """
    if status != 200:
        message = HTTP_ERROR_MESSAGES.get(status)
        if message is None:
            message = f"HTTP {status}: {body}"
        return DnsError(code=status, message=message)

    try:
        return DnsResponse.model_validate_json(body)
    except ValidationError as e:
        return DnsError(code=SERVER_ERROR, message=f"{e}, body: {body}")


class HttpsTransport:
    """aiohttp-backed transport with a per-attempt timeout."""

    def __init__(self, timeout: float, session: Optional[aiohttp.ClientSession] = None):
        """
        Args:
            timeout: Total seconds allowed for one request, body included
            session: Optional pre-built session (closed by the caller)
        """
        self.timeout = timeout
        self._client_timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        return self._session

    async def query(self, uri: str) -> QueryOutcome:
        """Send a GET for ``uri`` and decode the DoH JSON answer."""
        session = self._ensure_session()

        try:
            async with session.get(
                uri, headers=DOH_JSON_HEADERS, timeout=self._client_timeout
            ) as resp:
                raw = await resp.read()
                status = resp.status
        except asyncio.TimeoutError:
            logger.debug("Timed out after %ss: %s", self.timeout, uri)
            return DnsError(
                code=SERVER_ERROR,
                message=f"Request timed out after {self.timeout:g}s",
            )
        except aiohttp.ClientError as e:
            logger.debug("Request failed for %s: %r", uri, e)
            return DnsError(code=SERVER_ERROR, message=f"{type(e).__name__}: {e}")
        except (UnicodeError, ValueError, OSError) as e:
            # Hosts the IDNA codec rejects, e.g. empty or over-long labels
            logger.debug("Invalid request URI %s: %r", uri, e)
            return DnsError(code=SERVER_ERROR, message=f"{type(e).__name__}: {e}")

        return decode_response(status, raw.decode("utf-8", errors="replace"))

    async def close(self) -> None:
        """Close the underlying session if this transport created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpsTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
