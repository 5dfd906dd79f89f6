from fastapi import APIRouter

from payment_network.api.v1.endpoints.gateway.router import gateway_router

api_router = APIRouter()

# Payment gateway routes — prefix /gateway
# Full paths: /api/v1/gateway/hosted, /api/v1/gateway/direct, etc.
api_router.include_router(
    gateway_router,
    prefix="/gateway",
    tags=["gateway"],
)
