"""
FastAPI application - Main entry point
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payment_network.api.v1.api import api_router
from payment_network.core.config import settings
from payment_network.core.exceptions import AppException
from payment_network.core.request_context import (
    reset_current_request_url,
    set_current_request_url,
)

logging.basicConfig(level=logging.DEBUG if settings.GATEWAY_DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One connection pool for all direct API calls
    app.state.http_client = httpx.AsyncClient(timeout=settings.GATEWAY_TIMEOUT)
    try:
        yield
    finally:
        await app.state.http_client.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def publish_request_url(request: Request, call_next):
    """Expose the URL being served to the hosted flow's redirectURL default."""
    token = set_current_request_url(str(request.url))
    try:
        return await call_next(request)
    finally:
        reset_current_request_url(token)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(
        f"[gateway] {exc.error_code} on {request.method} {request.url.path}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}
