from fastapi import Request

from payment_network.core.config import settings
from payment_network.services.transport import HttpxTransport, Transport


def get_transport(request: Request) -> Transport:
    """Direct API transport sharing the application's httpx connection pool."""
    http_client = getattr(request.app.state, "http_client", None)
    return HttpxTransport(timeout=settings.GATEWAY_TIMEOUT, client=http_client)
