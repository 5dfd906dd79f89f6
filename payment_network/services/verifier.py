"""
Gateway response verification.

Authenticates a response map (hosted redirect post-back, async callback or
direct API reply) and turns it into a ResponseOutcome the caller matches on.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Mapping, Optional, Union

from payment_network.core.exceptions import ProtocolError, SignatureError
from payment_network.schemas.gateway import (
    GatewayFailureOutcome,
    StepUpRequiredOutcome,
    SuccessOutcome,
)
from payment_network.services.signer import verify_signature


# ══════════════════════════════════════════════════════════════════════
# Constants
# ══════════════════════════════════════════════════════════════════════

RC_SUCCESS = 0                          # Transaction successful
RC_DO_NOT_HONOR = 5                     # Transaction declined
RC_NO_REASON_TO_DECLINE = 85            # Verification successful
RC_3DS_AUTHENTICATION_REQUIRED = 0x1010A

INVALID_RESPONSE_MESSAGE = "Invalid response from Payment Gateway"
SIGNATURE_MISSING_MESSAGE = "Incorrectly signed response from Payment Gateway"
SIGNATURE_MISMATCH_MESSAGE = "Incorrectly signed response from Payment Gateway (2)"

Outcome = Union[SuccessOutcome, StepUpRequiredOutcome, GatewayFailureOutcome]


def parse_three_ds_version(raw: Any) -> int:
    """Turn a dotted version ("2.1.0") into its digits as an int (210)."""
    text = str(raw).replace(".", "").strip()
    if not text.isdigit():
        raise ProtocolError(
            INVALID_RESPONSE_MESSAGE,
            details={"threeDSVersion": str(raw)},
        )
    return int(text)


def _coerce_response_code(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ProtocolError(INVALID_RESPONSE_MESSAGE)
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise ProtocolError(
            INVALID_RESPONSE_MESSAGE,
            details={"responseCode": str(raw)},
        ) from e


class ResponseVerifier:
    """
    Checks a gateway response's signature and dispatches on responseCode.

    With no merchant secret configured signatures are not checked at all;
    with one, a missing or wrong signature is always a SignatureError.
    """

    def __init__(
        self,
        merchant_secret: Optional[str],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._secret = merchant_secret
        self._logger = logger or logging.getLogger(__name__)

    def verify(self, response: Optional[Mapping[str, Any]]) -> Outcome:
        # responseCode presence is checked before any coercion so a missing
        # code can never be read as 0 (success)
        if not response or "responseCode" not in response:
            raise ProtocolError(INVALID_RESPONSE_MESSAGE)

        fields = dict(response)
        signature = fields.pop("signature", None)

        # Distinct messages show secret mismatches between us and the
        # gateway without giving much away if shown to the cardholder.
        if self._secret and not signature:
            self._logger.warning("[gateway] response signature missing")
            raise SignatureError(SIGNATURE_MISSING_MESSAGE, "SIGNATURE_MISSING")

        if self._secret and not (
            isinstance(signature, str)
            and verify_signature(fields, signature, self._secret)
        ):
            self._logger.warning("[gateway] response signature mismatch")
            raise SignatureError(SIGNATURE_MISMATCH_MESSAGE, "SIGNATURE_MISMATCH")

        response_code = _coerce_response_code(fields["responseCode"])
        fields["responseCode"] = response_code

        if response_code == RC_3DS_AUTHENTICATION_REQUIRED:
            version = parse_three_ds_version(fields.get("threeDSVersion", ""))
            self._logger.info(f"[gateway] 3-D Secure required, version={version}")
            return StepUpRequiredOutcome(version=version, fields=fields)

        if response_code == RC_SUCCESS:
            return SuccessOutcome(fields=fields)

        reason = html.escape(str(fields.get("responseMessage") or ""))
        self._logger.info(
            f"[gateway] payment not taken — responseCode={response_code}"
        )
        return GatewayFailureOutcome(
            response_code=response_code,
            message=f"Failed to take payment: {reason}",
            fields=fields,
        )
