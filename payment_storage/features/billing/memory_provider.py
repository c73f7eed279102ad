"""
In-memory billing provider.

Mimics the subscription lifecycle of a real provider closely enough for
tests and local development:
- a subscription with a trial period starts as trialing
- without a trial it is active when the customer has a payment method,
  incomplete otherwise
- cancel moves it to canceled
"""
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional
from uuid import uuid4

from payment_storage.features.billing.provider import (
    BillingProviderError,
    ProviderSubscription,
    ProviderSubscriptionStatus,
)


@dataclass
class MemoryCustomer:
    id: str
    email: Optional[str] = None
    payments_ready: bool = False


class MemoryBilling:
    """In-process implementation of BillingProvider protocol."""

    def __init__(self):
        self._lock = threading.Lock()
        self._customers: Dict[str, MemoryCustomer] = {}
        self._subscriptions: Dict[str, ProviderSubscription] = {}

    def create_customer(self, email: Optional[str] = None) -> MemoryCustomer:
        customer = MemoryCustomer(id=f"cus_{uuid4().hex[:14]}", email=email)
        with self._lock:
            self._customers[customer.id] = customer
        return customer

    def setup_payments(self, customer_id: str) -> None:
        with self._lock:
            self._require_customer(customer_id).payments_ready = True

    def create_subscription(self, customer_id: str, trial_period: Optional[timedelta] = None) -> ProviderSubscription:
        with self._lock:
            customer = self._require_customer(customer_id)
            if trial_period:
                status = ProviderSubscriptionStatus.TRIALING
            elif customer.payments_ready:
                status = ProviderSubscriptionStatus.ACTIVE
            else:
                status = ProviderSubscriptionStatus.INCOMPLETE
            subscription = ProviderSubscription(
                subscription_id=f"sub_{uuid4().hex[:14]}",
                customer_id=customer_id,
                status=status,
            )
            self._subscriptions[subscription.subscription_id] = subscription
        return subscription

    def cancel_subscription(self, subscription_id: str) -> ProviderSubscription:
        return self.set_status(subscription_id, ProviderSubscriptionStatus.CANCELED)

    def set_status(self, subscription_id: str, status: ProviderSubscriptionStatus) -> ProviderSubscription:
        with self._lock:
            current = self._subscriptions.get(subscription_id)
            if current is None:
                raise BillingProviderError(f"No such subscription: {subscription_id}")
            updated = ProviderSubscription(
                subscription_id=current.subscription_id,
                customer_id=current.customer_id,
                status=status,
            )
            self._subscriptions[subscription_id] = updated
        return updated

    def list_subscriptions(self, customer_id: str) -> List[ProviderSubscription]:
        # Unknown customers simply have no subscriptions
        with self._lock:
            return [s for s in self._subscriptions.values() if s.customer_id == customer_id]

    def _require_customer(self, customer_id: str) -> MemoryCustomer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise BillingProviderError(f"No such customer: {customer_id}")
        return customer
