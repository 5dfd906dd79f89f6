"""
Gateway Router Aggregator.

Combines all gateway sub-routers into a single router. When registered in
the main app under /api/v1 with prefix /gateway, the full paths become:

  POST /api/v1/gateway/hosted    — Render signed hosted payment form
  POST /api/v1/gateway/direct    — Signed server-to-server request
  POST /api/v1/gateway/callback  — Verify a gateway response

"""

from fastapi import APIRouter

from payment_network.api.v1.endpoints.gateway.hosted import router as hosted_router
from payment_network.api.v1.endpoints.gateway.direct import router as direct_router
from payment_network.api.v1.endpoints.gateway.callback import router as callback_router

# Main gateway router — prefix is applied in api.py as /gateway
gateway_router = APIRouter()

gateway_router.include_router(hosted_router)
gateway_router.include_router(direct_router)
gateway_router.include_router(callback_router)
