import logging

import httpx

from app.config import RazorpayCredentials
from app.services.exceptions import GatewayError, GatewayUnavailable

logger = logging.getLogger(__name__)

PAYMENT_LINK_PAID = "paid"


class RazorpayClient:
    """Minimal async client for the Razorpay REST API.

    Every call is a single attempt authenticated with the key id/secret pair.
    Pass an `http_client` to share a connection pool (or to fake the API in
    tests); otherwise a short-lived client is opened per call.
    """

    def __init__(
        self,
        credentials: RazorpayCredentials,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.credentials = credentials
        self.http_client = http_client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        http_client = self.http_client
        should_close = False
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=self.credentials.timeout_seconds)
            should_close = True

        try:
            return await http_client.request(
                method,
                f"{self.credentials.api_base}{path}",
                auth=(self.credentials.key_id, self.credentials.key_secret),
                **kwargs,
            )
        finally:
            if should_close:
                await http_client.aclose()

    async def fetch_payment_link(self, payment_link_id: str) -> dict:
        """Fetch the authoritative state of a payment link.

        Returns the payment link JSON; `status` and `amount` (minor units)
        are the fields billing relies on.
        """
        try:
            response = await self._request("GET", f"/payment_links/{payment_link_id}")
        except httpx.HTTPError as exc:
            logger.error("Razorpay payment link fetch failed for %s: %s", payment_link_id, exc)
            raise GatewayUnavailable("Failed to verify payment with Razorpay") from exc

        if response.status_code >= 400:
            logger.error(
                "Razorpay returned %d for payment link %s: %s",
                response.status_code,
                payment_link_id,
                response.text,
            )
            raise GatewayUnavailable("Failed to verify payment with Razorpay")
        return response.json()

    async def cancel_subscription(self, subscription_id: str) -> None:
        """Stop recurring billing once the current paid cycle ends."""
        try:
            response = await self._request(
                "POST",
                f"/subscriptions/{subscription_id}/cancel",
                json={"cancel_at_cycle_end": 1},
            )
        except httpx.HTTPError as exc:
            logger.error("Razorpay cancel request failed for %s: %s", subscription_id, exc)
            raise GatewayError("Failed to cancel subscription with Razorpay") from exc

        if response.status_code >= 400:
            logger.error("Razorpay cancel error for %s: %s", subscription_id, response.text)
            raise GatewayError("Failed to cancel subscription with Razorpay")
