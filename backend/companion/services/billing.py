from typing import Optional

import stripe

from companion.core.config import settings
from companion.core.errors import CompanionError
from companion.core.logging import get_logger

logger = get_logger("billing")


class BillingError(CompanionError):
    pass


def get_checkout_email(session_id: Optional[str]) -> str:
    """Customer email recorded on a Stripe checkout session"""
    if not session_id:
        raise BillingError("Missing session_id", 400)
    if not settings.stripe_secret_key:
        raise BillingError("Stripe is not configured", 500)

    stripe.api_key = settings.stripe_secret_key
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.error.StripeError as e:
        logger.warning("Checkout session lookup failed", session_id=session_id, error=str(e))
        raise BillingError(str(e), 400) from e

    details = getattr(session, "customer_details", None)
    email = getattr(details, "email", None) or getattr(session, "customer_email", None)
    if not email:
        raise BillingError("No email found", 400)
    return email
