"""
User subscription API routes.

- POST /v1/users                            Register a user (status New)
- GET  /v1/users/{user_id}                  Current subscription status
- GET  /v1/users/by-customer/{customer_id}  Reverse lookup by billing customer
- PUT  /v1/users/{user_id}/status           Force a status transition
- POST /v1/users/sync                       Run a synchronization pass
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from payment_storage.features.subscriptions.service import Users, get_users
from payment_storage.models.subscription import SubscriptionStatus, SyncFailurePolicy, SyncReport, UserSubscription


router = APIRouter(prefix="/v1/users", tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to register a user."""
    user_id: str = Field(min_length=1, max_length=255)
    customer_id: str = Field(min_length=1, max_length=255)


class UpdateStatusRequest(BaseModel):
    """Request to set a user's status."""
    status: SubscriptionStatus


@router.post("", response_model=UserSubscription, status_code=201)
def create_user(request: CreateUserRequest, users: Users = Depends(get_users)):
    """
    Register a user with status New.

    Errors:
        409 user_already_exists: user_id already registered
        409 customer_already_linked: customer_id belongs to another user
    """
    users.create(request.user_id, request.customer_id)
    return users.get(request.user_id)


@router.post("/sync", response_model=SyncReport)
def sync_users(
    dry_run: bool = Query(False),
    policy: SyncFailurePolicy | None = Query(None),
    users: Users = Depends(get_users),
):
    """Reconcile every user with the billing provider."""
    return users.synchronize(policy=policy, dry_run=dry_run)


@router.get("/by-customer/{customer_id}", response_model=UserSubscription)
def get_user_by_customer(customer_id: str, users: Users = Depends(get_users)):
    return users.get_by_customer(customer_id)


@router.get("/{user_id}", response_model=UserSubscription)
def get_user(user_id: str, users: Users = Depends(get_users)):
    return users.get(user_id)


@router.put("/{user_id}/status", response_model=UserSubscription)
def update_status(user_id: str, request: UpdateStatusRequest, users: Users = Depends(get_users)):
    """
    Force a status transition.

    Errors:
        404 user_not_found
        409 version_conflict: a concurrent writer won; re-read and retry
    """
    users.update(user_id, request.status)
    return users.get(user_id)
