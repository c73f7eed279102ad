"""
Billing provider protocol.

Defines the read-only interface the subscription registry needs from a
billing provider (Stripe, in-memory, etc.). This allows swapping providers
without changing reconciliation logic.
"""
from typing import List, Protocol
from dataclasses import dataclass
from enum import Enum

from payment_storage.core.errors import AppError


class ProviderSubscriptionStatus(str, Enum):
    """Provider-side subscription status with an explicit residual case."""
    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    PAUSED = "paused"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "ProviderSubscriptionStatus":
        """Map a raw provider status string, folding unknown values into OTHER."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ProviderSubscription:
    """One subscription as reported by the billing provider."""
    subscription_id: str
    customer_id: str
    status: ProviderSubscriptionStatus


class BillingProvider(Protocol):
    """
    Protocol for billing providers.

    Implementations must handle:
    - Listing every subscription of a customer, in any state
    - Returning an empty list for customers without subscriptions
    """

    def list_subscriptions(self, customer_id: str) -> List[ProviderSubscription]:
        """
        List all subscriptions for a customer.

        Args:
            customer_id: Provider customer ID (e.g., Stripe customer ID)

        Returns:
            Subscriptions in any status; empty when the customer has none

        Raises:
            BillingProviderError: If the provider call fails
        """
        ...


class BillingProviderError(AppError):
    """Base exception for billing provider errors (upstream failure, 502)."""
    code = "billing_provider_error"
    status_code = 502
