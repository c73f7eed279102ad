"""
Reconcile every registered user's subscription status with the billing provider.

Meant to be run by an external scheduler (cron, CronJob). Live by default;
use --dry-run to report changes without writing them.
"""
from __future__ import annotations

import argparse
import os
from typing import List, Optional
from uuid import uuid4

from payment_storage.core.config import SYNC_FAILURE_POLICIES, settings, validate_config
from payment_storage.core.logging import bind_run_id, configure_logging, log_event
from payment_storage.features.subscriptions.service import Users, get_users
from payment_storage.features.subscriptions.sync import USER_FAILURES, failure_code


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def run(users: Users, *, dry_run: bool, policy: Optional[str] = None) -> int:
    """Run one synchronization pass. Exit code 0 when every user reconciled, 1 otherwise."""
    run_id = uuid4().hex
    try:
        report = users.synchronize(policy=policy, dry_run=dry_run, run_id=run_id)
    except USER_FAILURES as exc:
        # fail_fast stopped the run; earlier users keep their committed updates
        with bind_run_id(run_id):
            log_event("error", "sync.aborted", error_code=failure_code(exc), extra={"error": exc})
        return 1
    print(report.model_dump_json())
    return 0 if report.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Synchronize user subscription statuses with the billing provider.")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Compute changes without writing them.")
    parser.add_argument("--live", dest="dry_run", action="store_false", help="Write status changes (default).")
    parser.add_argument(
        "--policy",
        choices=SYNC_FAILURE_POLICIES,
        default=None,
        help="Per-user failure handling (defaults to SYNC_FAILURE_POLICY).",
    )
    parser.set_defaults(dry_run=_parse_bool(os.getenv("PAYMENT_STORAGE_SYNC_DRY_RUN"), False))
    args = parser.parse_args(argv)

    configure_logging(settings.ENV)
    validate_config(strict=getattr(settings, "CONFIG_STRICT", False))

    return run(get_users(), dry_run=args.dry_run, policy=args.policy)


if __name__ == "__main__":
    raise SystemExit(main())
