"""
PayPal Payouts Integration Service

Sends single-recipient payouts through the PayPal Payouts API.

PayPal Flow (per payment record):
1. Build a single-item payout batch from the record
2. Exchange client credentials for a bearer token (POST /v1/oauth2/token)
3. Submit the batch (POST /v1/payments/payouts)
4. Return the batch id and status from batch_header

Tokens are never cached: every submission authenticates again.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel

from services.payout_builder import PayoutBatchRequest, batch_to_payload, build_payout_batch
from services.payout_errors import (
    PayPalAuthenticationError,
    PayPalNetworkError,
    PayPalPayoutError,
)
from services.paypal_settings import PayPalCredentials, PayPalSettings, resolve_credentials

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/oauth2/token"
PAYOUTS_PATH = "/v1/payments/payouts"


class PayoutSubmission(BaseModel):
    """Identifiers PayPal returned for a submitted batch."""
    transaction_id: Any
    status: Optional[Any] = None
    sender_batch_id: str


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class PayPalService:
    """PayPal payouts client."""

    def __init__(self, settings: PayPalSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            settings: Relay configuration
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.timeout_seconds, transport=self._transport)

    def resolve_credentials(self, mode: Optional[str]) -> PayPalCredentials:
        return resolve_credentials(self.settings, mode)

    async def get_access_token(self, mode: Optional[str]) -> str:
        """
        Get an OAuth access token for the given mode.

        Raises:
            PayPalAuthenticationError: On non-2xx, missing token or transport failure
        """
        creds = self.resolve_credentials(mode)
        token_url = f"{creds.base_url}{TOKEN_PATH}"

        try:
            async with self._client() as client:
                response = await client.post(
                    token_url,
                    auth=(creds.client_id, creds.client_secret),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    content="grant_type=client_credentials",
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ PayPal: token request failed ({type(e).__name__}): {e}")
            raise PayPalAuthenticationError("No se pudo autenticar con PayPal", provider_body=str(e)) from e

        if not response.is_success:
            body = _response_body(response)
            logger.error(f"❌ PayPal: token request rejected - HTTP {response.status_code}: {body}")
            raise PayPalAuthenticationError("No se pudo autenticar con PayPal", provider_body=body)

        body = _response_body(response)
        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            logger.error("❌ PayPal: token response did not include access_token")
            raise PayPalAuthenticationError("No se pudo autenticar con PayPal", provider_body=body)

        logger.info(f"PayPal: access token obtained ({creds.base_url})")
        return access_token

    async def create_payout(self, batch: PayoutBatchRequest, access_token: str, mode: Optional[str]) -> Dict[str, Any]:
        """
        Submit a payout batch.

        Returns:
            Parsed PayPal response body, unchanged

        Raises:
            PayPalPayoutError: PayPal answered with a non-2xx status
            PayPalNetworkError: PayPal could not be reached
        """
        creds = self.resolve_credentials(mode)
        payouts_url = f"{creds.base_url}{PAYOUTS_PATH}"
        sender_batch_id = batch.sender_batch_header.sender_batch_id

        try:
            async with self._client() as client:
                response = await client.post(
                    payouts_url,
                    json=batch_to_payload(batch),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {access_token}",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ PayPal: payout {sender_batch_id} failed to send ({type(e).__name__}): {e}")
            raise PayPalNetworkError(str(e) or type(e).__name__) from e

        body = _response_body(response)
        if not response.is_success:
            logger.error(f"❌ PayPal: payout {sender_batch_id} rejected - HTTP {response.status_code}: {body}")
            raise PayPalPayoutError(
                f"Request failed with status code {response.status_code}",
                provider_body=body if isinstance(body, (dict, list)) else None,
            )

        logger.info(f"PayPal: payout {sender_batch_id} submitted")
        return body

    async def send_payout(self, record: Mapping[str, Any]) -> PayoutSubmission:
        """
        Build, authenticate and submit one payment record.

        Args:
            record: Raw payment record from the request body

        Returns:
            PayoutSubmission with PayPal's batch id and status
        """
        mode = record.get("payment_mode")
        batch = build_payout_batch(record, sender_name=self.settings.sender_name)
        access_token = await self.get_access_token(mode)
        response = await self.create_payout(batch, access_token, mode)

        batch_header = response.get("batch_header") if isinstance(response, dict) else None
        if not isinstance(batch_header, dict) or not batch_header.get("payout_batch_id"):
            logger.error(f"❌ PayPal: payout response missing batch_header: {response}")
            raise PayPalPayoutError("Respuesta de PayPal sin batch_header", provider_body=response)

        return PayoutSubmission(
            transaction_id=batch_header["payout_batch_id"],
            status=batch_header.get("batch_status"),
            sender_batch_id=batch.sender_batch_header.sender_batch_id,
        )
