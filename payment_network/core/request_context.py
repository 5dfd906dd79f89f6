"""
Per-request context shared with the gateway client.

The hosted flow falls back to "the URL of the request being served" when a
caller does not supply a redirectURL. The HTTP layer publishes that URL here
for the lifetime of each request; outside a request it is None.
"""

from contextvars import ContextVar, Token
from typing import Optional

_current_request_url: ContextVar[Optional[str]] = ContextVar(
    "current_request_url", default=None
)


def get_current_request_url() -> Optional[str]:
    return _current_request_url.get()


def set_current_request_url(url: Optional[str]) -> Token:
    return _current_request_url.set(url)


def reset_current_request_url(token: Token) -> None:
    _current_request_url.reset(token)
