"""Tests for the in-memory billing provider lifecycle."""
from datetime import timedelta

import pytest

from payment_storage.features.billing.provider import BillingProviderError, ProviderSubscriptionStatus


def test_unknown_customer_has_no_subscriptions(billing):
    assert billing.list_subscriptions("cus_unknown") == []


def test_subscription_lifecycle(billing):
    customer = billing.create_customer("a@example.com")

    incomplete = billing.create_subscription(customer.id)
    trial = billing.create_subscription(customer.id, trial_period=timedelta(days=14))
    billing.setup_payments(customer.id)
    active = billing.create_subscription(customer.id)
    canceled = billing.cancel_subscription(active.subscription_id)

    assert incomplete.status == ProviderSubscriptionStatus.INCOMPLETE
    assert trial.status == ProviderSubscriptionStatus.TRIALING
    assert active.status == ProviderSubscriptionStatus.ACTIVE
    assert canceled.status == ProviderSubscriptionStatus.CANCELED
    statuses = sorted(s.status.value for s in billing.list_subscriptions(customer.id))
    assert statuses == ["canceled", "incomplete", "trialing"]


def test_subscriptions_are_scoped_to_customer(billing):
    first = billing.create_customer()
    second = billing.create_customer()
    billing.create_subscription(first.id)

    assert len(billing.list_subscriptions(first.id)) == 1
    assert billing.list_subscriptions(second.id) == []


def test_unknown_ids_raise_provider_error(billing):
    with pytest.raises(BillingProviderError):
        billing.create_subscription("cus_missing")
    with pytest.raises(BillingProviderError):
        billing.cancel_subscription("sub_missing")
