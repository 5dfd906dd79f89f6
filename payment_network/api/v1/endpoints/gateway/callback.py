"""
Gateway Response Callback Route.

Endpoint:
  POST /api/v1/gateway/callback — Verify a gateway response

Accepts the hosted page post-back (form-encoded) or a JSON map and returns
the verified outcome:
  responseCode 0      → success
  responseCode 65802  → step_up_required (3-D Secure)
  anything else       → gateway_failure
A missing or wrong signature is rejected with 400.
"""

import logging

from fastapi import APIRouter, Request

from payment_network.core.config import settings
from payment_network.core.exceptions import ProtocolError
from payment_network.schemas.gateway import ResponseOutcome
from payment_network.services.encoder import decode_form
from payment_network.services.gateway_service import GatewayClient
from payment_network.services.verifier import INVALID_RESPONSE_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_response_fields(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")

    try:
        if "application/json" in content_type:
            payload = await request.json()
        else:
            payload = decode_form(await request.body())
    except ValueError as e:
        raise ProtocolError(INVALID_RESPONSE_MESSAGE) from e

    if not isinstance(payload, dict):
        raise ProtocolError(INVALID_RESPONSE_MESSAGE)
    return payload


@router.post(
    "/callback",
    response_model=ResponseOutcome,
    summary="Verify a payment gateway response",
    description=(
        "Authenticates the response signature and classifies it as success, "
        "3-D Secure step-up or gateway failure."
    ),
    tags=["gateway", "callbacks"],
)
async def handle_gateway_callback(request: Request):
    fields = await _read_response_fields(request)

    logger.info(
        f"[gateway] callback received — responseCode={fields.get('responseCode')}, "
        f"keys={list(fields.keys())}"
    )

    client = GatewayClient.from_settings(settings)
    outcome = client.verify_response(fields)

    logger.info(f"[gateway] callback verified — outcome={outcome.kind}")

    return outcome
