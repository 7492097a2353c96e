import base64
import json

import httpx
import pytest

from app.core.config import settings
from app.core.exceptions import PaymentProviderError
from app.modules.payment import mpesa_client as mpesa_module
from app.modules.payment.mpesa_client import MpesaClient


@pytest.fixture
def daraja(monkeypatch):
    """Routes the client's httpx calls to an in-process fake of the Daraja API."""
    calls = []
    responses = {}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses[request.url.path](request)

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient
    monkeypatch.setattr(mpesa_module.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))
    responses["/oauth/v1/generate"] = lambda request: httpx.Response(200, json={"access_token": "tok", "expires_in": "3599"})
    return calls, responses


@pytest.mark.asyncio
async def test_stk_push_sends_signed_payload(daraja):
    calls, responses = daraja
    responses["/mpesa/stkpush/v1/processrequest"] = lambda request: httpx.Response(200, json={
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": "ws_CO_191220191020363925",
        "ResponseCode": "0",
    })

    data = await MpesaClient().stk_push("254712345678", 250, "Buy 3 Slots")

    assert data["CheckoutRequestID"] == "ws_CO_191220191020363925"
    auth_request, push_request = calls
    assert auth_request.headers["Authorization"].startswith("Basic ")
    assert push_request.headers["Authorization"] == "Bearer tok"

    payload = json.loads(push_request.content)
    assert payload["Amount"] == 250
    assert payload["PartyA"] == payload["PhoneNumber"] == "254712345678"
    assert payload["TransactionType"] == "CustomerPayBillOnline"
    expected_password = f"{settings.MPESA_SHORTCODE}{settings.MPESA_PASSKEY}{payload['Timestamp']}"
    assert base64.b64decode(payload["Password"]).decode() == expected_password
    assert len(payload["Timestamp"]) == 14


@pytest.mark.asyncio
async def test_stk_push_rejected(daraja):
    _, responses = daraja
    responses["/mpesa/stkpush/v1/processrequest"] = lambda request: httpx.Response(
        400, json={"errorCode": "400.002.02", "errorMessage": "Bad Request - Invalid PhoneNumber"}
    )

    with pytest.raises(PaymentProviderError, match="M-Pesa rejected request: Bad Request - Invalid PhoneNumber"):
        await MpesaClient().stk_push("254712345678", 100, "Buy 1 Slots")


@pytest.mark.asyncio
async def test_auth_failure(daraja):
    _, responses = daraja
    responses["/oauth/v1/generate"] = lambda request: httpx.Response(401, text="Unauthorized")

    with pytest.raises(PaymentProviderError, match="Failed to connect to M-Pesa"):
        await MpesaClient().get_access_token()


@pytest.mark.asyncio
async def test_query_returns_parsed_result(daraja):
    calls, responses = daraja
    responses["/mpesa/stkpushquery/v1/query"] = lambda request: httpx.Response(
        200, json={"ResultCode": "1032", "ResultDesc": "Request cancelled by user"}
    )

    result = await MpesaClient().query_stk_status("ws_CO_191220191020363925")

    assert (result.status, result.final) == ("failed", True)
    assert json.loads(calls[-1].content)["CheckoutRequestID"] == "ws_CO_191220191020363925"


@pytest.mark.asyncio
async def test_query_network_error(daraja):
    _, responses = daraja

    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    responses["/mpesa/stkpushquery/v1/query"] = boom

    with pytest.raises(PaymentProviderError):
        await MpesaClient().query_stk_status("ws_CO_1")
