"""
Subscription models.

UserData and CustomerLink are the persisted payloads of the Users and
Customers partitions; UserSubscription is the read view handed to callers.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionStatus(str, Enum):
    """Locally recorded subscription status of a user."""
    NEW = "New"  # never activated a trial or paid subscription
    TRIAL = "Trial"  # currently in a trial period
    ACTIVE = "Active"  # has an active paid subscription
    EXPIRED = "Expired"  # had a trial or subscription before, now inactive


class UserData(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_id: str
    status: SubscriptionStatus = SubscriptionStatus.NEW


class CustomerLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str


class UserSubscription(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    customer_id: str
    status: SubscriptionStatus


class SyncFailurePolicy(str, Enum):
    FAIL_FAST = "fail_fast"
    CONTINUE = "continue"


class SyncFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    customer_id: str
    error_code: str
    message: str


class SyncReport(BaseModel):
    """Outcome of one synchronization run."""
    run_id: str
    policy: SyncFailurePolicy
    dry_run: bool = False
    scanned: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: List[SyncFailure] = Field(default_factory=list)
    started_at: datetime
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return not self.failed
