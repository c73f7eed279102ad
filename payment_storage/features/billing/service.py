"""
Billing provider selection.

Stripe when STRIPE_SECRET_KEY is configured, otherwise a process-wide
in-memory provider (tests and local development).
"""
import os
from typing import Optional

from payment_storage.features.billing.provider import BillingProvider
from payment_storage.features.billing.memory_provider import MemoryBilling
from payment_storage.features.billing.stripe_provider import StripeProvider

_memory_billing: Optional[MemoryBilling] = None


def billing_enabled() -> bool:
    """Check if a real billing provider is configured (Stripe)."""
    return bool(os.getenv("STRIPE_SECRET_KEY"))


def get_memory_billing() -> MemoryBilling:
    """Shared in-memory provider used when Stripe is not configured."""
    global _memory_billing
    if _memory_billing is None:
        _memory_billing = MemoryBilling()
    return _memory_billing


def get_provider() -> BillingProvider:
    """Get the billing provider for the current configuration."""
    if billing_enabled():
        return StripeProvider()
    return get_memory_billing()


def reset_provider() -> None:
    """FOR TESTING ONLY - drop the shared in-memory provider."""
    global _memory_billing
    _memory_billing = None
