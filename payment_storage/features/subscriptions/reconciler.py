"""
Status reconciliation.

Derives the single locally recorded status from every subscription the
billing provider reports for a customer. Priority: Active > Trial > Expired,
and New when the provider has nothing for the customer.
"""
from typing import Iterable

from payment_storage.features.billing.provider import ProviderSubscription, ProviderSubscriptionStatus
from payment_storage.models.subscription import SubscriptionStatus


def determine_status(subscriptions: Iterable[ProviderSubscription]) -> SubscriptionStatus:
    seen = False
    has_trialing = False

    for subscription in subscriptions:
        seen = True
        if subscription.status == ProviderSubscriptionStatus.ACTIVE:
            return SubscriptionStatus.ACTIVE
        if subscription.status == ProviderSubscriptionStatus.TRIALING:
            has_trialing = True

    if not seen:
        return SubscriptionStatus.NEW
    if has_trialing:
        return SubscriptionStatus.TRIAL
    # canceled, incomplete, unpaid, past_due, paused, other
    return SubscriptionStatus.EXPIRED
