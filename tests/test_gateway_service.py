import logging

import httpx
import pytest

from conftest import (
    DIRECT_URL,
    HOSTED_URL,
    MERCHANT_ID,
    MERCHANT_SECRET,
    parse_hidden_inputs,
    signed,
)
from payment_network.core.config import Settings
from payment_network.core.exceptions import (
    ConfigurationError,
    ProtocolError,
    SignatureError,
    TransportError,
)
from payment_network.core.request_context import (
    reset_current_request_url,
    set_current_request_url,
)
from payment_network.schemas.gateway import StepUpRequiredOutcome, SuccessOutcome
from payment_network.services.encoder import decode_form
from payment_network.services.gateway_service import GatewayClient
from payment_network.services.signer import build_query, sign, verify_signature
from payment_network.services.transport import HttpxTransport


class RecordingTransport:
    """Transport double that records the request and replies with a fixed map."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    async def post(self, url, fields):
        self.calls.append((url, dict(fields)))
        return self.response


# ──────────────────────────────────────────────────────────────
# Hosted
# ──────────────────────────────────────────────────────────────


def test_hosted_request_signs_and_renders_form(gateway_client, sale_request):
    sale_request["redirectURL"] = "https://shop.example.com/checkout/complete"

    fragment = gateway_client.hosted_request(sale_request)

    assert f'action="{HOSTED_URL}"' in fragment
    posted = parse_hidden_inputs(fragment)
    signature = posted.pop("signature")
    assert posted["merchantID"] == MERCHANT_ID
    assert signature == sign({**sale_request, "merchantID": MERCHANT_ID}, MERCHANT_SECRET)
    assert verify_signature(posted, signature, MERCHANT_SECRET)


def test_hosted_request_appends_merchant_id_and_signature_last(gateway_client, sale_request):
    sale_request = {"merchantID": "ignored", **sale_request, "redirectURL": "https://shop.example.com/"}

    fragment = gateway_client.hosted_request(sale_request)

    names = list(parse_hidden_inputs(fragment).keys())
    assert names[-2:] == ["merchantID", "signature"]
    assert names[:-2] == [name for name in sale_request if name != "merchantID"]
    assert parse_hidden_inputs(fragment)["merchantID"] == MERCHANT_ID


def test_hosted_request_does_not_modify_caller_fields(gateway_client, sale_request):
    sale_request["redirectURL"] = "https://shop.example.com/"
    original = dict(sale_request)

    gateway_client.hosted_request(sale_request)

    assert sale_request == original


def test_hosted_request_without_redirect_url_outside_request_fails(gateway_client, sale_request):
    with pytest.raises(ConfigurationError):
        gateway_client.hosted_request(sale_request)


def test_hosted_request_defaults_redirect_url_to_current_request(gateway_client, sale_request):
    token = set_current_request_url("https://shop.example.com/checkout/process?step=pay")
    try:
        fragment = gateway_client.hosted_request(sale_request)
    finally:
        reset_current_request_url(token)

    posted = parse_hidden_inputs(fragment)
    assert posted["redirectURL"] == "https://shop.example.com/checkout/process?step=pay"
    assert verify_signature(posted, posted.pop("signature"), MERCHANT_SECRET)


def test_hosted_request_rejects_fields_with_the_same_flattened_name(gateway_client):
    with pytest.raises(ValueError):
        gateway_client.hosted_request(
            {
                "redirectURL": "https://shop.example.com/",
                "customerAddress[city]": "Leeds",
                "customerAddress": {"city": "York"},
            }
        )


def test_hosted_request_signs_nested_fields_as_rendered(gateway_client):
    request = {
        "amount": 100,
        "redirectURL": "https://shop.example.com/",
        "customerAddress": {"line1": "1 \"High\" St", "city": "A&B", "zip": "<01>"},
    }

    posted = parse_hidden_inputs(gateway_client.hosted_request(request))

    assert posted["customerAddress[city]"] == "A&B"
    assert posted["customerAddress[zip]"] == "<01>"
    signature = posted.pop("signature")
    assert signature == sign({**request, "merchantID": MERCHANT_ID}, MERCHANT_SECRET)


# ──────────────────────────────────────────────────────────────
# Direct
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_direct_request_posts_signed_fields(sale_request):
    transport = RecordingTransport({"responseCode": "0", "xref": "20010112ZK43LF"})
    client = GatewayClient(
        merchant_id=MERCHANT_ID,
        merchant_secret=MERCHANT_SECRET,
        hosted_url=HOSTED_URL,
        direct_url=DIRECT_URL,
        transport=transport,
    )

    response = await client.direct_request(sale_request)

    assert response == {"responseCode": "0", "xref": "20010112ZK43LF"}
    (url, posted), = transport.calls
    assert url == DIRECT_URL
    assert posted["merchantID"] == MERCHANT_ID
    signature = posted.pop("signature")
    assert verify_signature(posted, signature, MERCHANT_SECRET)
    assert "signature" not in sale_request


@pytest.mark.asyncio
async def test_direct_request_rejects_non_map_response():
    client = GatewayClient(
        merchant_id=MERCHANT_ID,
        merchant_secret=MERCHANT_SECRET,
        hosted_url=HOSTED_URL,
        direct_url=DIRECT_URL,
        transport=RecordingTransport("responseCode=0"),
    )

    with pytest.raises(ProtocolError):
        await client.direct_request({"action": "QUERY"})


@pytest.mark.asyncio
async def test_direct_request_round_trip_over_httpx(sale_request):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        posted = decode_form(request.content)
        signature = posted.pop("signature")
        assert verify_signature(posted, signature, MERCHANT_SECRET)

        reply = signed(
            {
                "responseCode": "65802",
                "threeDSVersion": "2.1.0",
                "transactionUnique": posted["transactionUnique"],
            }
        )
        return httpx.Response(200, content=build_query(reply))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = GatewayClient(
            merchant_id=MERCHANT_ID,
            merchant_secret=MERCHANT_SECRET,
            hosted_url=HOSTED_URL,
            direct_url=DIRECT_URL,
            transport=HttpxTransport(client=http_client),
        )

        response = await client.direct_request(sale_request)

    outcome = client.verify_response(response)
    assert isinstance(outcome, StepUpRequiredOutcome)
    assert outcome.version == 210
    assert outcome.fields["transactionUnique"] == sale_request["transactionUnique"]


# ──────────────────────────────────────────────────────────────
# Audit hook
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_debug_writes_one_audit_record_per_call(caplog):
    audit_logger = logging.getLogger("tests.gateway.audit")
    client = GatewayClient(
        merchant_id=MERCHANT_ID,
        merchant_secret=MERCHANT_SECRET,
        hosted_url=HOSTED_URL,
        direct_url=DIRECT_URL,
        transport=RecordingTransport({"responseCode": "0"}),
        debug=True,
        audit_logger=audit_logger,
    )

    with caplog.at_level(logging.DEBUG, logger="tests.gateway.audit"):
        client.hosted_request({"amount": 1, "redirectURL": "https://shop.example.com/"})
        await client.direct_request({"amount": 1})
        client.verify_response(signed({"responseCode": "0"}))

    audit = [r for r in caplog.records if r.name == "tests.gateway.audit" and r.levelno == logging.DEBUG]
    assert [r.getMessage().split("()")[0] for r in audit] == [
        "[gateway] hosted_request",
        "[gateway] direct_request",
        "[gateway] verify_response",
    ]
    assert "args=" in audit[0].getMessage() and "ret=" in audit[0].getMessage()


def _audit_client(transport=None):
    return GatewayClient(
        merchant_id=MERCHANT_ID,
        merchant_secret=MERCHANT_SECRET,
        hosted_url=HOSTED_URL,
        direct_url=DIRECT_URL,
        transport=transport,
        debug=True,
        audit_logger=logging.getLogger("tests.gateway.audit"),
    )


def _audit_records(caplog):
    return [
        r.getMessage()
        for r in caplog.records
        if r.name == "tests.gateway.audit" and r.levelno == logging.DEBUG
    ]


def test_debug_audits_rejected_responses(caplog):
    client = _audit_client()
    forged = {"responseCode": "0", "signature": "forged"}

    with caplog.at_level(logging.DEBUG, logger="tests.gateway.audit"):
        with pytest.raises(SignatureError):
            client.verify_response(forged)

    records = _audit_records(caplog)
    assert len(records) == 1
    assert records[0].startswith("[gateway] verify_response() - args=")
    assert "forged" in records[0]
    assert "error=SignatureError" in records[0]


@pytest.mark.asyncio
async def test_debug_audits_failed_direct_requests(caplog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = _audit_client(HttpxTransport(client=http_client))

    with caplog.at_level(logging.DEBUG, logger="tests.gateway.audit"):
        with pytest.raises(TransportError):
            await client.direct_request({"amount": 1001})
    await http_client.aclose()

    records = _audit_records(caplog)
    assert len(records) == 1
    assert records[0].startswith("[gateway] direct_request() - args=")
    assert "error=TransportError" in records[0]


def test_debug_off_writes_no_audit_records(gateway_client, caplog):
    with caplog.at_level(logging.DEBUG):
        gateway_client.hosted_request({"amount": 1, "redirectURL": "https://shop.example.com/"})
        gateway_client.verify_response(signed({"responseCode": "0"}))

    assert not [r for r in caplog.records if r.levelno == logging.DEBUG and "args=" in r.getMessage()]


# ──────────────────────────────────────────────────────────────
# Configuration
# ──────────────────────────────────────────────────────────────


def test_from_settings_selects_modal_hosted_page():
    config = Settings(
        GATEWAY_MERCHANT_ID="100856",
        GATEWAY_MERCHANT_SECRET="Circle4Take40Idea",
        GATEWAY_HOSTED_URL="https://gateway.example.com/hosted/",
        GATEWAY_MODAL_HOSTED_URL="https://gateway.example.com/hosted/modal/",
        GATEWAY_DIRECT_URL="https://gateway.example.com/direct/",
    )

    hosted = GatewayClient.from_settings(config)
    modal = GatewayClient.from_settings(config, integration_type="modal")

    assert hosted.hosted_url == "https://gateway.example.com/hosted/"
    assert modal.hosted_url == "https://gateway.example.com/hosted/modal/"
    assert modal.merchant_id == "100856"
    assert modal.direct_url == "https://gateway.example.com/direct/"


def test_credentials_are_immutable(gateway_client):
    with pytest.raises(Exception):
        gateway_client.credentials.merchant_secret = "changed"

    assert MERCHANT_SECRET not in repr(gateway_client.credentials)


def test_verify_response_delegates_to_verifier(gateway_client):
    outcome = gateway_client.verify_response(signed({"responseCode": "0", "amount": "1001"}))

    assert isinstance(outcome, SuccessOutcome)
