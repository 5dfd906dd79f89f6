"""Pytest fixtures for the payment gateway tests."""

import os

# Settings are read at import time; seed the required values first.
os.environ.setdefault("GATEWAY_MERCHANT_ID", "100856")
os.environ.setdefault("GATEWAY_MERCHANT_SECRET", "Circle4Take40Idea")
os.environ.setdefault("GATEWAY_HOSTED_URL", "https://gateway.example.com/hosted/")
os.environ.setdefault("GATEWAY_MODAL_HOSTED_URL", "https://gateway.example.com/hosted/modal/")
os.environ.setdefault("GATEWAY_DIRECT_URL", "https://gateway.example.com/direct/")

import re
import html

import pytest

from payment_network.services.gateway_service import GatewayClient
from payment_network.services.signer import sign

MERCHANT_ID = "155928"
MERCHANT_SECRET = "m3rch4nts1gn4tur3k3y"
HOSTED_URL = "https://gateway.example.com/hosted/"
DIRECT_URL = "https://gateway.example.com/direct/"

HIDDEN_INPUT_RE = re.compile(r'<input type="hidden" name="([^"]*)" value="([^"]*)" />')


def parse_hidden_inputs(fragment: str) -> dict:
    """Read the hidden inputs of a rendered form back into name -> value."""
    return {
        html.unescape(name): html.unescape(value)
        for name, value in HIDDEN_INPUT_RE.findall(fragment)
    }


def signed(fields: dict, secret: str = MERCHANT_SECRET, partial=None) -> dict:
    """Return a copy of fields with a signature, as the gateway would send it."""
    return {**fields, "signature": sign(fields, secret, partial)}


@pytest.fixture
def gateway_client():
    return GatewayClient(
        merchant_id=MERCHANT_ID,
        merchant_secret=MERCHANT_SECRET,
        hosted_url=HOSTED_URL,
        direct_url=DIRECT_URL,
    )


@pytest.fixture
def sale_request():
    return {
        "action": "SALE",
        "type": 1,
        "amount": 1001,
        "currencyCode": "GBP",
        "countryCode": "GBR",
        "transactionUnique": "8f14e45fceea167a5a36dedd4bea2543",
        "orderRef": "10042",
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "customerAddress": "16 Test Street\r\nTestville\r\n",
        "customerPostCode": "TE15 5ST",
    }
