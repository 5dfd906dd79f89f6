"""
Pydantic models for the payment gateway client and its HTTP routes.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from payment_network.core.exceptions import GatewayDeclineError


# ──────────────────────────────────────────────────────────────────────
#  Credentials
# ──────────────────────────────────────────────────────────────────────


class Credentials(BaseModel):
    """Merchant identity and gateway endpoints, fixed for a client's lifetime."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str
    merchant_secret: str = Field(repr=False)
    hosted_url: str
    direct_url: str


# ──────────────────────────────────────────────────────────────────────
#  Verified response outcomes
# ──────────────────────────────────────────────────────────────────────


class SuccessOutcome(BaseModel):
    """Correctly signed response with responseCode 0."""

    kind: Literal["success"] = "success"
    fields: Dict[str, Any]

    def raise_for_failure(self) -> None:
        return None


class StepUpRequiredOutcome(BaseModel):
    """
    The gateway wants 3-D Secure authentication before it will continue.

    version is threeDSVersion with the dots removed ("2.1.0" -> 210).
    """

    kind: Literal["step_up_required"] = "step_up_required"
    version: int
    fields: Dict[str, Any]

    def raise_for_failure(self) -> None:
        return None


class GatewayFailureOutcome(BaseModel):
    """Correctly signed response reporting any other response code."""

    kind: Literal["gateway_failure"] = "gateway_failure"
    response_code: int
    message: str
    fields: Dict[str, Any]

    def raise_for_failure(self) -> None:
        raise GatewayDeclineError(self.message, self.response_code)


ResponseOutcome = Annotated[
    Union[SuccessOutcome, StepUpRequiredOutcome, GatewayFailureOutcome],
    Field(discriminator="kind"),
]


# ──────────────────────────────────────────────────────────────────────
#  Hosted – POST /api/v1/gateway/hosted
# ──────────────────────────────────────────────────────────────────────


class HostedRequestBody(BaseModel):
    """Field map to sign and render as an auto-submitting form."""

    fields: Dict[str, Any]
    integration_type: Optional[Literal["hosted", "modal"]] = None


# ──────────────────────────────────────────────────────────────────────
#  Direct – POST /api/v1/gateway/direct
# ──────────────────────────────────────────────────────────────────────


class DirectRequestBody(BaseModel):
    """Field map to sign and send to the direct API."""

    fields: Dict[str, Any]


class DirectResponseBody(BaseModel):
    """Decoded direct API response (not yet verified)."""

    data: Dict[str, Any]
