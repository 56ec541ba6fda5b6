"""Payment adapters for subscription checkout."""

from .checkout import (
    CheckoutAuthError,
    CheckoutError,
    StripeCheckoutAdapter,
    checkout_adapter,
    create_checkout_session,
)

__all__ = [
    "StripeCheckoutAdapter",
    "CheckoutError",
    "CheckoutAuthError",
    "checkout_adapter",
    "create_checkout_session",
]
