"""
Payment Gateway client.

Talks to the gateway in its two request modes:

  hosted — sign the request and render an auto-submitting form that sends
           the cardholder's browser to the gateway's payment page
  direct — sign the request and POST it server-to-server

and verifies whatever comes back. The client does not validate request
fields; that is the calling application's business.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from payment_network.core.exceptions import ConfigurationError, ProtocolError
from payment_network.core.request_context import get_current_request_url
from payment_network.schemas.gateway import Credentials
from payment_network.services.encoder import FieldMap, silent_post
from payment_network.services.signer import sign
from payment_network.services.transport import HttpxTransport, Transport
from payment_network.services.verifier import Outcome, ResponseVerifier

if TYPE_CHECKING:
    from payment_network.core.config import Settings

logger = logging.getLogger(__name__)


class GatewayClient:
    """
    Encapsulates the merchant credentials and gateway operations.

    The constructor accepts:
      + merchant_id     - Merchant Account Id or Alias
      + merchant_secret - Secret for the above Merchant Account
      + hosted_url      - Gateway Hosted API Endpoint
      + direct_url      - Gateway Direct API Endpoint
      + transport       - anything with an async ``post(url, fields)``
      + timeout         - direct API timeout in seconds (default transport)
      + debug           - write one audit record per call to ``audit_logger``
      + audit_logger    - logger for audit and verification records
    """

    def __init__(
        self,
        merchant_id: str,
        merchant_secret: str,
        hosted_url: str,
        direct_url: str,
        transport: Optional[Transport] = None,
        timeout: float = 30.0,
        debug: bool = False,
        audit_logger: Optional[logging.Logger] = None,
    ) -> None:
        self.credentials = Credentials(
            merchant_id=str(merchant_id),
            merchant_secret=merchant_secret,
            hosted_url=hosted_url,
            direct_url=direct_url,
        )
        self.transport: Transport = transport or HttpxTransport(timeout=timeout)
        self.debug = debug
        self._logger = audit_logger or logger
        self._verifier = ResponseVerifier(merchant_secret, logger=self._logger)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        integration_type: Optional[str] = None,
        transport: Optional[Transport] = None,
    ) -> "GatewayClient":
        """Build a client from configuration; "modal" selects the modal hosted page."""
        integration_type = integration_type or settings.GATEWAY_INTEGRATION_TYPE
        hosted_url = (
            settings.GATEWAY_MODAL_HOSTED_URL
            if integration_type == "modal"
            else settings.GATEWAY_HOSTED_URL
        )
        return cls(
            merchant_id=settings.GATEWAY_MERCHANT_ID,
            merchant_secret=settings.GATEWAY_MERCHANT_SECRET,
            hosted_url=hosted_url,
            direct_url=settings.GATEWAY_DIRECT_URL,
            transport=transport,
            timeout=settings.GATEWAY_TIMEOUT,
            debug=settings.GATEWAY_DEBUG,
        )

    @property
    def merchant_id(self) -> str:
        return self.credentials.merchant_id

    @property
    def hosted_url(self) -> str:
        return self.credentials.hosted_url

    @property
    def direct_url(self) -> str:
        return self.credentials.direct_url

    # ──────────────────────────────────────────────────────────────
    # Hosted API
    # ──────────────────────────────────────────────────────────────

    def hosted_request(self, fields: Mapping[str, Any]) -> str:
        """
        Sign a request and return the HTML form that sends it to the gateway.

        Without a 'redirectURL' the response is sent back to the URL of the
        request currently being served; outside of a request that is a
        ConfigurationError. merchantID and signature are added after the
        caller's fields.
        """
        try:
            html_form = self._hosted_request(fields)
        except Exception as e:
            self._audit("hosted_request", fields, error=e)
            raise

        self._audit("hosted_request", fields, html_form)
        return html_form

    def _hosted_request(self, fields: Mapping[str, Any]) -> str:
        request: FieldMap = dict(fields)

        if request.get("redirectURL") is None:
            current_url = get_current_request_url()
            if not current_url:
                raise ConfigurationError(
                    "redirectURL is required when not serving an HTTP request"
                )
            request["redirectURL"] = current_url

        request.pop("merchantID", None)
        request.pop("signature", None)
        request["merchantID"] = self.merchant_id
        request["signature"] = sign(request, self.credentials.merchant_secret)

        return silent_post(self.hosted_url, request)

    # ──────────────────────────────────────────────────────────────
    # Direct API
    # ──────────────────────────────────────────────────────────────

    async def direct_request(self, fields: Mapping[str, Any]) -> FieldMap:
        """
        Add merchantID, sign the request and POST it to the direct API.

        Returns the decoded response map unverified; pass it to
        verify_response(). Raises TransportError when the request cannot be
        completed and ProtocolError when the reply is not a field map.
        """
        try:
            response = await self._direct_request(fields)
        except Exception as e:
            self._audit("direct_request", fields, error=e)
            raise

        self._audit("direct_request", fields, response)
        return response

    async def _direct_request(self, fields: Mapping[str, Any]) -> FieldMap:
        request: FieldMap = dict(fields)
        request.pop("merchantID", None)
        request.pop("signature", None)
        request["merchantID"] = self.merchant_id
        request["signature"] = sign(request, self.credentials.merchant_secret)

        response = await self.transport.post(self.direct_url, request)
        if not isinstance(response, Mapping):
            raise ProtocolError(
                "Unparseable response from Payment Gateway",
                details={"url": self.direct_url},
            )
        return dict(response)

    # ──────────────────────────────────────────────────────────────
    # Response verification
    # ──────────────────────────────────────────────────────────────

    def verify_response(self, response: Optional[Mapping[str, Any]]) -> Outcome:
        """
        Verify a response's signature and classify it.

        Returns SuccessOutcome, StepUpRequiredOutcome or GatewayFailureOutcome;
        raises ProtocolError / SignatureError for responses that cannot be
        trusted. The passed map is not modified.
        """
        try:
            outcome = self._verifier.verify(response)
        except Exception as e:
            self._audit("verify_response", response, error=e)
            raise

        self._audit("verify_response", response, outcome)
        return outcome

    # ──────────────────────────────────────────────────────────────
    # Audit
    # ──────────────────────────────────────────────────────────────

    def _audit(
        self,
        operation: str,
        args: Any,
        result: Any = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if not self.debug:
            return
        if error is not None:
            self._logger.debug(f"[gateway] {operation}() - args={args!r} error={error!r}")
        else:
            self._logger.debug(f"[gateway] {operation}() - args={args!r} ret={result!r}")
