"""
Stripe billing provider implementation.

Implements BillingProvider protocol using the Stripe API.
"""
import os
from typing import List, Optional
import stripe

from payment_storage.features.billing.provider import (
    BillingProviderError,
    ProviderSubscription,
    ProviderSubscriptionStatus,
)

# Stripe's page size ceiling for list endpoints
PAGE_LIMIT = 100


class StripeProvider:
    """Stripe implementation of BillingProvider protocol."""

    def __init__(self, secret_key: Optional[str] = None):
        """
        Initialize Stripe provider.

        Args:
            secret_key: Stripe secret key (defaults to STRIPE_SECRET_KEY env var)
        """
        self.secret_key = secret_key or os.getenv("STRIPE_SECRET_KEY")

        if not self.secret_key:
            raise BillingProviderError("STRIPE_SECRET_KEY not configured")

        stripe.api_key = self.secret_key

    def list_subscriptions(self, customer_id: str) -> List[ProviderSubscription]:
        """List every Stripe subscription of the customer, including canceled ones."""
        try:
            page = stripe.Subscription.list(customer=customer_id, status="all", limit=PAGE_LIMIT)
            return [self._to_subscription(sub, customer_id) for sub in page.auto_paging_iter()]
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe subscription listing failed for {customer_id}: {e}")

    def _to_subscription(self, sub, customer_id: str) -> ProviderSubscription:
        customer = getattr(sub, "customer", None) or customer_id
        if not isinstance(customer, str):
            # Expanded customer object
            customer = customer.id
        return ProviderSubscription(
            subscription_id=sub.id,
            customer_id=customer,
            status=ProviderSubscriptionStatus.parse(sub.status),
        )
