"""
User registry.

Maps a user identity to its billing customer and current subscription
status, stored in a versioned partition keyed by user_id. An optional
reverse index keyed by customer_id lives in a second partition.

Creation claims the customer link first and then relies on the store's
insert conflict; updates are conditioned on the version that was read.
"""
from typing import Iterator, Optional

from payment_storage.core.config import Settings, settings as default_settings
from payment_storage.core.errors import CustomerAlreadyLinked, UserAlreadyExists, UserNotFound, VersionConflict
from payment_storage.core.logging import log_event
from payment_storage.features.partitions.contracts import (
    Item,
    ItemAlreadyExists,
    ItemNotFound,
    ItemVersionConflict,
    Partitions,
)
from payment_storage.models.subscription import CustomerLink, SubscriptionStatus, UserData, UserSubscription


class UserRegistry:
    def __init__(self, partitions: Partitions, settings: Optional[Settings] = None):
        cfg = settings or default_settings
        self.users = partitions.get(cfg.USERS_PARTITION_NAME, UserData)
        self.customers = (
            partitions.get(cfg.CUSTOMERS_PARTITION_NAME, CustomerLink)
            if cfg.CUSTOMER_INDEX_ENABLED
            else None
        )

    def create(self, user_id: str, customer_id: str) -> None:
        """
        Register a user with status New.

        Raises:
            UserAlreadyExists: If a record for user_id is already stored
            CustomerAlreadyLinked: If the customer is indexed under another user
        """
        # Claim the customer before the user record exists, so a rejected
        # create never leaves a second record owning the same customer.
        if self.customers is not None:
            self._link(user_id, customer_id)

        try:
            self.users.save(Item(id=user_id, data=UserData(customer_id=customer_id, status=SubscriptionStatus.NEW)))
        except ItemAlreadyExists:
            raise UserAlreadyExists(user_id)

        log_event("info", "user.created", user_id=user_id, customer_id=customer_id, event_type="user_created")

    def get(self, user_id: str) -> UserSubscription:
        item = self._read(user_id)
        return UserSubscription(user_id=user_id, customer_id=item.data.customer_id, status=item.data.status)

    def get_by_customer(self, customer_id: str) -> UserSubscription:
        """Resolve a billing customer to its user through the reverse index."""
        if self.customers is None:
            raise ValueError("Customer index is disabled (CUSTOMER_INDEX_ENABLED=false)")
        try:
            link = self.customers.get(customer_id)
        except ItemNotFound:
            raise UserNotFound(customer_id)

        user = self.get(link.data.user_id)
        if user.customer_id != customer_id:
            # The link must agree with the record that owns the customer
            raise UserNotFound(customer_id)
        return user

    def update(self, user_id: str, status: SubscriptionStatus) -> None:
        """
        Set the status of an existing user.

        The write is conditioned on the version that was read; losing the
        race raises VersionConflict instead of retrying.
        """
        item = self._read(user_id)
        try:
            self.users.save(
                Item(
                    id=user_id,
                    data=UserData(customer_id=item.data.customer_id, status=status),
                    version=item.version,
                )
            )
        except ItemNotFound:
            raise UserNotFound(user_id)
        except ItemVersionConflict:
            log_event("warning", "user.update_conflict", user_id=user_id, error_code="version_conflict")
            raise VersionConflict(user_id)

        log_event(
            "info",
            "user.status_updated",
            user_id=user_id,
            customer_id=item.data.customer_id,
            event_type="status_updated",
            extra={"from_status": item.data.status.value, "to_status": status.value},
        )

    def link_customer(self, user_id: str) -> None:
        """Write the reverse-index link for an existing user (repair path)."""
        if self.customers is None:
            raise ValueError("Customer index is disabled (CUSTOMER_INDEX_ENABLED=false)")
        item = self._read(user_id)
        self._link(user_id, item.data.customer_id)

    def scan_all(self) -> Iterator[Item[UserData]]:
        return self.users.scan()

    def _read(self, user_id: str) -> Item[UserData]:
        try:
            return self.users.get(user_id)
        except ItemNotFound:
            raise UserNotFound(user_id)

    def _link(self, user_id: str, customer_id: str) -> None:
        # Not atomic with the user insert: a link may briefly (or, after a
        # failed insert, permanently) name a user that does not own the
        # customer. get_by_customer cross-checks, and _reclaimable decides
        # when such a link may be taken over.
        try:
            self.customers.save(Item(id=customer_id, data=CustomerLink(user_id=user_id)))
            return
        except ItemAlreadyExists:
            existing = self.customers.get(customer_id)

        linked_user = existing.data.user_id
        if linked_user == user_id:
            return
        if not self._reclaimable(linked_user, customer_id):
            raise CustomerAlreadyLinked(customer_id, linked_user)

        try:
            self.customers.save(Item(id=customer_id, data=CustomerLink(user_id=user_id), version=existing.version))
        except (ItemVersionConflict, ItemNotFound):
            raise CustomerAlreadyLinked(customer_id, linked_user)
        log_event(
            "warning",
            "customer.link_reclaimed",
            user_id=user_id,
            customer_id=customer_id,
            extra={"stale_user_id": linked_user},
        )

    def _reclaimable(self, linked_user: str, customer_id: str) -> bool:
        """
        A link is stale only when its user exists and owns another customer.

        customer_id is immutable, so such a user can never come to own this
        customer. A missing user may be a create still in flight.
        """
        try:
            owner = self.users.get(linked_user)
        except ItemNotFound:
            return False
        return owner.data.customer_id != customer_id
