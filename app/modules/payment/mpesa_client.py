import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)

RESULT_SUCCESS = "0"
RESULT_TIMEOUT = "1037"  # no response from the payer yet
RESULT_CANCELLED = "1032"


@dataclass
class QueryResult:
    """
    Outcome of an STK push query. `final` is True only when the provider gave a
    definitive ResultCode; anything else is reported to the poller but must not
    be written to the transaction.
    """
    status: str  # pending | completed | failed
    message: Optional[str] = None
    final: bool = False


def _code(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float):
        return f"{value:.0f}"
    return str(value)


def parse_query_response(body: str) -> QueryResult:
    """Maps a raw stkpushquery response body onto a QueryResult."""
    text = (body or "").strip()
    if text.startswith("<"):
        # WAF block pages come back as HTML
        logger.error(f"M-Pesa API returned HTML: {text[:200]}")
        return QueryResult(status="failed", message="Transaction Failed")

    try:
        data = json.loads(text)
    except ValueError as e:
        logger.error(f"M-Pesa JSON parse error: {e}")
        return QueryResult(status="failed", message="Invalid response from Payment Gateway")
    if not isinstance(data, dict):
        return QueryResult(status="failed", message="Invalid response from Payment Gateway")

    if data.get("errorCode"):
        error_message = str(data.get("errorMessage") or "")
        if "being processed" in error_message.lower():
            return QueryResult(status="pending")
        logger.warning(f"M-Pesa API gateway error {data['errorCode']}: {error_message}")
        return QueryResult(status="failed", message="Transaction Failed")

    if "fault" in data:
        logger.warning(f"M-Pesa rate limit (spike arrest): {data['fault']}")
        return QueryResult(status="pending")

    result_code = _code(data.get("ResultCode"))
    if result_code is None:
        if _code(data.get("ResponseCode")) == "0":
            return QueryResult(status="pending")
        logger.warning(f"Unknown M-Pesa query response format: {data}")
        return QueryResult(status="failed", message="Transaction Failed")

    if result_code == RESULT_SUCCESS:
        return QueryResult(status="completed", final=True)
    if result_code == RESULT_TIMEOUT:
        return QueryResult(status="pending")
    if result_code == RESULT_CANCELLED:
        return QueryResult(status="failed", message="Transaction cancelled", final=True)
    return QueryResult(status="failed", message=data.get("ResultDesc") or "Transaction failed", final=True)


class MpesaClient:
    """Thin async client for the Daraja OAuth, STK push and STK query endpoints."""

    def _url(self, path: str) -> str:
        return f"{settings.mpesa_base_url}{path}"

    @staticmethod
    def _timestamp() -> str:
        return datetime.now().strftime("%Y%m%d%H%M%S")

    @staticmethod
    def _password(timestamp: str) -> str:
        raw = f"{settings.MPESA_SHORTCODE}{settings.MPESA_PASSKEY}{timestamp}"
        return base64.b64encode(raw.encode()).decode()

    async def get_access_token(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=settings.MPESA_AUTH_TIMEOUT_SEC) as client:
                response = await client.get(
                    self._url("/oauth/v1/generate"),
                    params={"grant_type": "client_credentials"},
                    auth=(settings.MPESA_CONSUMER_KEY, settings.MPESA_CONSUMER_SECRET),
                )
                response.raise_for_status()
                token = response.json().get("access_token")
        except httpx.HTTPStatusError as e:
            logger.error(f"M-Pesa auth failed: {e.response.text}")
            raise PaymentProviderError("Failed to connect to M-Pesa")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"M-Pesa auth error: {e}")
            raise PaymentProviderError("Failed to connect to M-Pesa")

        if not token:
            raise PaymentProviderError("Failed to connect to M-Pesa")
        return token

    async def stk_push(self, phone_number: str, amount: int, description: str) -> dict:
        """
        Sends the payment prompt to the payer's phone. Returns the provider body,
        which carries CheckoutRequestID and MerchantRequestID, once accepted.
        """
        token = await self.get_access_token()
        timestamp = self._timestamp()
        payload = {
            "BusinessShortCode": settings.MPESA_SHORTCODE,
            "Password": self._password(timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": amount,
            "PartyA": phone_number,
            "PartyB": settings.MPESA_SHORTCODE,
            "PhoneNumber": phone_number,
            # Required by the API even though status is polled
            "CallBackURL": settings.MPESA_CALLBACK_URL or "https://example.com/callback",
            "AccountReference": settings.MPESA_ACCOUNT_REFERENCE,
            "TransactionDesc": description,
        }

        try:
            async with httpx.AsyncClient(timeout=settings.MPESA_STK_TIMEOUT_SEC) as client:
                response = await client.post(
                    self._url("/mpesa/stkpush/v1/processrequest"),
                    headers={"Authorization": f"Bearer {token}"},
                    json=payload,
                )
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"STK push failed: {e}")
            raise PaymentProviderError("STK Push failed")
        except ValueError:
            logger.error(f"STK push returned a non-JSON body: {response.text[:200]}")
            raise PaymentProviderError("STK Push failed")

        logger.info(f"STK response: {data}")
        if _code(data.get("ResponseCode")) != "0" or not data.get("CheckoutRequestID"):
            detail = data.get("CustomerMessage") or data.get("errorMessage") or "M-Pesa rejected request"
            raise PaymentProviderError(f"M-Pesa rejected request: {detail}")
        return data

    async def query_stk_status(self, checkout_request_id: str) -> QueryResult:
        """Raises PaymentProviderError only for network or auth failures."""
        token = await self.get_access_token()
        timestamp = self._timestamp()
        payload = {
            "BusinessShortCode": settings.MPESA_SHORTCODE,
            "Password": self._password(timestamp),
            "Timestamp": timestamp,
            "CheckoutRequestID": checkout_request_id,
        }

        try:
            async with httpx.AsyncClient(timeout=settings.MPESA_AUTH_TIMEOUT_SEC) as client:
                response = await client.post(
                    self._url("/mpesa/stkpushquery/v1/query"),
                    headers={"Authorization": f"Bearer {token}"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"STK query for {checkout_request_id} failed: {e}")
            raise PaymentProviderError("STK query failed")

        return parse_query_response(response.text)


mpesa_client = MpesaClient()
