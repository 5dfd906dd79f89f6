"""
Gateway Direct API Route.

Endpoint:
  POST /api/v1/gateway/direct — Sign a field map and send it server-to-server

The gateway's reply is returned as decoded, unverified; post it to
/api/v1/gateway/callback (or verify it in-process) before trusting it.
"""

import logging

from fastapi import APIRouter, Depends

from payment_network.core.config import settings
from payment_network.core.dependencies import get_transport
from payment_network.schemas.gateway import DirectRequestBody, DirectResponseBody
from payment_network.services.gateway_service import GatewayClient
from payment_network.services.transport import Transport

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/direct",
    response_model=DirectResponseBody,
    summary="Send a signed request to the gateway Direct API",
    tags=["gateway", "direct"],
)
async def create_direct_request(
    body: DirectRequestBody,
    transport: Transport = Depends(get_transport),
):
    client = GatewayClient.from_settings(settings, transport=transport)

    response = await client.direct_request(body.fields)

    logger.info(
        f"[gateway] direct request completed — "
        f"responseCode={response.get('responseCode', 'N/A')}"
    )

    return DirectResponseBody(data=response)
