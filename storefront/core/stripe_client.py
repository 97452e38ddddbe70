# storefront/core/stripe_client.py
import logging
from dataclasses import dataclass
from functools import lru_cache

import stripe

from storefront.core.config import get_settings
from storefront.core.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass
class GatewayIntent:
    """The parts of a Stripe PaymentIntent the order flow cares about."""

    id: str
    client_secret: str | None
    status: str
    amount: int


class StripeGateway:
    """
    Thin wrapper around Stripe PaymentIntents.

    Amounts are passed as-is: VND is a zero-decimal currency, so the order
    total rounded to an integer is already in the smallest unit.
    """

    def __init__(self, api_key: str | None, currency: str = "vnd"):
        self.api_key = api_key
        self.currency = currency

    def _require_key(self) -> str:
        if not self.api_key:
            raise PaymentGatewayError("Stripe is not configured")
        return self.api_key

    def create_intent(self, order_id: int, user_id: int, amount: float) -> GatewayIntent:
        api_key = self._require_key()
        try:
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                amount=round(amount),
                currency=self.currency,
                metadata={"order_id": str(order_id), "user_id": str(user_id)},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error("Stripe payment intent creation failed for order %s: %s", order_id, e)
            raise PaymentGatewayError("Could not create Stripe payment")
        return GatewayIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
            amount=intent.amount,
        )

    def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        api_key = self._require_key()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=api_key)
        except stripe.StripeError as e:
            logger.error("Stripe payment intent lookup failed for %s: %s", intent_id, e)
            raise PaymentGatewayError("Could not verify Stripe payment")
        return GatewayIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
            amount=intent.amount,
        )


@lru_cache
def get_payment_gateway() -> StripeGateway:
    """
    Shared gateway built from settings.

    Keys are only checked when a Stripe call is made, so COD/MoMo checkout
    works without Stripe configured.
    """
    settings = get_settings()
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_CURRENCY)
