"""
HTTP transport for the gateway direct API.

The client only needs one capability: POST a field map to a URL and get a
field map back. HttpxTransport is the real implementation; tests and
alternative stacks can pass anything with the same ``post`` coroutine.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import httpx

from payment_network.core.exceptions import ProtocolError, TransportError
from payment_network.services.encoder import FieldMap, decode_form
from payment_network.services.signer import build_query

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Transport(Protocol):
    async def post(self, url: str, fields: Mapping[str, Any]) -> FieldMap:
        ...


class HttpxTransport:
    """
    Form-encoded POST over httpx.

    Pass a shared ``httpx.AsyncClient`` to reuse its connection pool; it is
    not closed by the transport. Without one, a client is opened per call.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout = timeout
        self._client = client

    async def post(self, url: str, fields: Mapping[str, Any]) -> FieldMap:
        body = build_query(fields)
        headers = {"Content-Type": FORM_CONTENT_TYPE}

        try:
            if self._client is not None:
                resp = await self._client.post(
                    url, content=body, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http_client:
                    resp = await http_client.post(url, content=body, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"[gateway] POST {url} timed out after {self.timeout}s")
            raise TransportError(
                f"Payment Gateway did not respond within {self.timeout} seconds",
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[gateway] POST {url} error: {e}")
            raise TransportError(
                "Unable to reach Payment Gateway",
                details={"url": url, "error": str(e)},
            ) from e

        logger.info(f"[gateway] POST {url} — HTTP {resp.status_code}")

        if resp.status_code >= 400:
            raise TransportError(
                f"Payment Gateway returned HTTP {resp.status_code}",
                details={"url": url, "status": resp.status_code},
            )

        try:
            data = decode_form(resp.content)
        except ValueError as e:
            logger.error(f"[gateway] POST {url} unparseable response: {e}")
            raise ProtocolError(
                "Unparseable response from Payment Gateway",
                details={"url": url},
            ) from e

        if not data:
            raise ProtocolError(
                "Empty response from Payment Gateway",
                details={"url": url},
            )

        return data
