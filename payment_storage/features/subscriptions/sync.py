"""
Subscription synchronization.

Full-scan batch run, invoked periodically by an external scheduler:
1. Scan every registered user
2. List the customer's subscriptions at the billing provider
3. Recompute the status with determine_status()
4. Update the user when the status changed

Users are processed sequentially. With policy=fail_fast the first failing
user aborts the run and the error propagates unchanged (earlier users keep
their committed updates). With policy=continue provider, store, not-found
and version-conflict failures are recorded in the report and the run goes
on; anything else still propagates. No retries, no backoff.
"""
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import uuid4

from payment_storage.core.errors import AppError, UserNotFound, VersionConflict
from payment_storage.core.logging import bind_run_id, log_event
from payment_storage.features.billing.provider import BillingProvider, BillingProviderError
from payment_storage.features.partitions.contracts import Item, PartitionStorageError
from payment_storage.features.subscriptions.reconciler import determine_status
from payment_storage.features.subscriptions.registry import UserRegistry
from payment_storage.models.subscription import SyncFailure, SyncFailurePolicy, SyncReport, UserData

# Per-user failures the continue policy records instead of raising
USER_FAILURES = (BillingProviderError, PartitionStorageError, UserNotFound, VersionConflict)


def failure_code(exc: Exception) -> str:
    """Stable error code recorded for a per-user failure."""
    if isinstance(exc, AppError):
        return exc.code
    if isinstance(exc, PartitionStorageError):
        return "storage_error"
    return "internal_error"


def sync_user(registry: UserRegistry, provider: BillingProvider, item: Item[UserData], *, dry_run: bool = False) -> bool:
    """Reconcile one scanned user. Returns True when the status changed."""
    subscriptions = provider.list_subscriptions(item.data.customer_id)
    new_status = determine_status(subscriptions)
    if new_status == item.data.status:
        return False
    if not dry_run:
        registry.update(item.id, new_status)
    return True


def synchronize(
    registry: UserRegistry,
    provider: BillingProvider,
    *,
    policy: Union[SyncFailurePolicy, str] = SyncFailurePolicy.FAIL_FAST,
    dry_run: bool = False,
    run_id: Optional[str] = None,
) -> SyncReport:
    """
    Reconcile every registered user with the billing provider.

    In dry-run mode nothing is written and `updated` counts the users whose
    status would change.
    """
    policy = SyncFailurePolicy(policy)
    report = SyncReport(
        run_id=run_id or uuid4().hex,
        policy=policy,
        dry_run=dry_run,
        started_at=datetime.now(timezone.utc),
    )
    with bind_run_id(report.run_id):
        log_event(
            "info",
            "sync.started",
            event_type="sync_started",
            extra={"policy": policy.value, "dry_run": dry_run},
        )

        for item in registry.scan_all():
            report.scanned += 1
            try:
                changed = sync_user(registry, provider, item, dry_run=dry_run)
            except USER_FAILURES as exc:
                code = failure_code(exc)
                log_event(
                    "error",
                    "sync.user_failed",
                    user_id=item.id,
                    customer_id=item.data.customer_id,
                    error_code=code,
                    extra={"error": exc, "policy": policy.value},
                )
                if policy is SyncFailurePolicy.FAIL_FAST:
                    raise
                report.failed.append(
                    SyncFailure(
                        user_id=item.id,
                        customer_id=item.data.customer_id,
                        error_code=code,
                        message=str(exc),
                    )
                )
                continue

            if changed:
                report.updated += 1
            else:
                report.unchanged += 1

        report.finished_at = datetime.now(timezone.utc)
        log_event(
            "warning" if report.failed else "info",
            "sync.completed",
            event_type="sync_completed",
            extra={
                "scanned": report.scanned,
                "updated": report.updated,
                "unchanged": report.unchanged,
                "failed": len(report.failed),
            },
        )
    return report
