"""
Gateway Hosted Payment Page Route.

Endpoint:
  POST /api/v1/gateway/hosted — Sign a field map and render the form that
                                sends the cardholder to the hosted page

The returned fragment auto-submits itself; embed it in the checkout page.
When the field map has no redirectURL the gateway is told to post its
response back to this request's URL.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from payment_network.core.config import settings
from payment_network.schemas.gateway import HostedRequestBody
from payment_network.services.gateway_service import GatewayClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/hosted",
    response_class=HTMLResponse,
    summary="Render a signed hosted payment form",
    description=(
        "Signs the field map with the merchant credentials and returns an "
        "auto-submitting HTML form targeting the gateway hosted page. "
        "integration_type='modal' targets the hosted modal page instead."
    ),
    tags=["gateway", "hosted"],
)
async def create_hosted_request(body: HostedRequestBody):
    client = GatewayClient.from_settings(
        settings, integration_type=body.integration_type
    )

    html_form = client.hosted_request(body.fields)

    logger.info(
        f"[gateway] hosted form rendered — url={client.hosted_url}, "
        f"keys={list(body.fields.keys())}"
    )

    return HTMLResponse(content=html_form)
