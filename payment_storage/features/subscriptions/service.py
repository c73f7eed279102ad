"""
User subscription service.

Process-level surface used by the HTTP API and the sync worker:
- create(user_id, customer_id)
- get(user_id) / get_by_customer(customer_id)
- update(user_id, status)
- synchronize()
"""
from typing import Optional, Union

from payment_storage.core.config import Settings, settings as default_settings
from payment_storage.features.billing.provider import BillingProvider
from payment_storage.features.billing.service import get_provider
from payment_storage.features.partitions.contracts import Partitions
from payment_storage.features.partitions.service import get_partitions
from payment_storage.features.subscriptions.registry import UserRegistry
from payment_storage.features.subscriptions.sync import synchronize
from payment_storage.models.subscription import SubscriptionStatus, SyncFailurePolicy, SyncReport, UserSubscription


class Users:
    def __init__(self, billing: BillingProvider, partitions: Partitions, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.billing = billing
        self.registry = UserRegistry(partitions, self.settings)

    def create(self, user_id: str, customer_id: str) -> None:
        self.registry.create(user_id, customer_id)

    def get(self, user_id: str) -> UserSubscription:
        return self.registry.get(user_id)

    def get_by_customer(self, customer_id: str) -> UserSubscription:
        return self.registry.get_by_customer(customer_id)

    def update(self, user_id: str, status: SubscriptionStatus) -> None:
        self.registry.update(user_id, status)

    def synchronize(
        self,
        *,
        policy: Optional[Union[SyncFailurePolicy, str]] = None,
        dry_run: bool = False,
        run_id: Optional[str] = None,
    ) -> SyncReport:
        return synchronize(
            self.registry,
            self.billing,
            policy=policy or self.settings.SYNC_FAILURE_POLICY,
            dry_run=dry_run,
            run_id=run_id,
        )


_users_instance: Optional[Users] = None


def get_users() -> Users:
    """Get the singleton service wired from settings."""
    global _users_instance
    if _users_instance is None:
        _users_instance = Users(get_provider(), get_partitions())
    return _users_instance


def reset_users() -> None:
    """FOR TESTING ONLY - forces re-wiring on next get_users() call."""
    global _users_instance
    _users_instance = None
