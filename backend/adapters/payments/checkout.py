"""
Stripe Checkout adapter.

Creates hosted Checkout Sessions for team subscriptions through Stripe's REST
API. Webhooks, the customer portal and product sync are handled elsewhere.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Raised when a Checkout Session cannot be created."""

    pass


class CheckoutAuthError(CheckoutError):
    """Raised when the Stripe secret key is missing or rejected."""

    pass


class StripeCheckoutAdapter:
    """
    Stripe Checkout API adapter.

    Builds subscription-mode Checkout Sessions for a team and returns the
    hosted page URL the browser should be redirected to.
    """

    API_BASE_URL = "https://api.stripe.com/v1"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        trial_days: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: Stripe secret key (defaults to settings)
            base_url: Public app URL for success/cancel links (defaults to settings)
            trial_days: Free trial length in days (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or settings.stripe_secret_key
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.trial_days = settings.stripe_trial_days if trial_days is None else trial_days
        self._transport = transport

        if not self.api_key:
            logger.warning("Stripe secret key not configured. Set STRIPE_SECRET_KEY.")

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers for API requests."""
        if not self.api_key:
            raise CheckoutAuthError("Stripe secret key not configured. Set STRIPE_SECRET_KEY.")
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _post(self, endpoint: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        POST form-encoded ``data`` to a Stripe endpoint.

        Raises:
            CheckoutError: If the request fails or Stripe returns an error
        """
        url = f"{self.API_BASE_URL}/{endpoint}"
        headers = self._get_headers()

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                logger.info("Making POST request to %s", endpoint)
                response = await client.post(url, headers=headers, data=data)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            error_detail = str(e)
            try:
                error_detail = e.response.json().get("error", {}).get("message", error_detail)
            except ValueError:
                pass
            logger.error("Stripe API error: %s", error_detail)
            if e.response.status_code == 401:
                raise CheckoutAuthError(f"Stripe rejected the API key: {error_detail}")
            raise CheckoutError(f"API request failed: {error_detail}")
        except httpx.RequestError as e:
            logger.error("HTTP request error: %s", e)
            raise CheckoutError(f"Request failed: {e}")

    def sign_up_url(self, price_id: str) -> str:
        """Where to send a visitor who picked a plan before having a team."""
        return "/sign-up?" + urlencode({"redirect": "checkout", "priceId": price_id})

    async def create_checkout_session(
        self,
        team,
        price_id: str,
        user=None,
    ) -> str:
        """
        Create a Checkout Session for ``team`` and return its URL.

        Args:
            team: Team being subscribed, or None when the caller has no team yet
            price_id: Stripe price ID selected on the pricing page
            user: Signed-in user, recorded as the client reference

        Returns:
            Hosted Checkout URL, or the sign-up URL when there is no team
        """
        if team is None:
            return self.sign_up_url(price_id)

        data: dict[str, Any] = {
            "mode": "subscription",
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": 1,
            "success_url": f"{self.base_url}/api/stripe/checkout?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.base_url}/pricing",
            "allow_promotion_codes": "true",
            "metadata[team_id]": str(team.id),
        }
        if user is not None:
            data["client_reference_id"] = str(user.id)
        if team.stripe_customer_id:
            data["customer"] = team.stripe_customer_id
        if self.trial_days:
            data["subscription_data[trial_period_days]"] = self.trial_days

        logger.info("Creating checkout session for team %s price %s", team.id, price_id)
        session = await self._post("checkout/sessions", data)

        url: Optional[str] = session.get("url")
        if not url:
            raise CheckoutError("Stripe returned a checkout session without a URL")
        return url


# Singleton instance
checkout_adapter = StripeCheckoutAdapter()


async def create_checkout_session(team, price_id: str, user=None) -> str:
    """Create a Checkout Session with the configured adapter and return its URL."""
    return await checkout_adapter.create_checkout_session(team, price_id, user)
