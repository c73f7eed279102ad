"""Tests for the scheduled synchronization worker entry point."""
import json
import logging

import pytest

from payment_storage.features.billing.provider import BillingProviderError
from payment_storage.models.subscription import SubscriptionStatus
from payment_storage.workers import sync_subscriptions


class DownBilling:
    def list_subscriptions(self, customer_id):
        raise BillingProviderError("provider unavailable")


@pytest.fixture
def wired_users(users, monkeypatch):
    monkeypatch.setattr(sync_subscriptions, "get_users", lambda: users)
    return users


def test_live_run_updates_and_prints_report(wired_users, billing, capsys):
    customer = billing.create_customer("a@example.com")
    billing.setup_payments(customer.id)
    billing.create_subscription(customer.id)
    wired_users.create("user-1", customer.id)

    exit_code = sync_subscriptions.main([])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert report["updated"] == 1
    assert report["dry_run"] is False
    assert wired_users.get("user-1").status == SubscriptionStatus.ACTIVE


def test_dry_run_flag(wired_users, billing, capsys):
    customer = billing.create_customer("a@example.com")
    billing.create_subscription(customer.id)
    wired_users.create("user-1", customer.id)

    exit_code = sync_subscriptions.main(["--dry-run"])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert report["dry_run"] is True
    assert report["updated"] == 1
    assert wired_users.get("user-1").status == SubscriptionStatus.NEW


def test_continue_policy_exits_nonzero_on_failures(wired_users, capsys, monkeypatch):
    wired_users.create("user-1", "cus-1")
    monkeypatch.setattr(wired_users, "billing", DownBilling())

    exit_code = sync_subscriptions.main(["--policy", "continue"])

    assert exit_code == 1
    report = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert report["failed"][0]["error_code"] == "billing_provider_error"


def test_fail_fast_policy_exits_nonzero_without_report(wired_users, capsys, caplog, monkeypatch):
    wired_users.create("user-1", "cus-1")
    monkeypatch.setattr(wired_users, "billing", DownBilling())

    with caplog.at_level(logging.ERROR, logger="payment_storage"):
        exit_code = sync_subscriptions.main(["--policy", "fail_fast"])

    assert exit_code == 1
    assert '"scanned"' not in capsys.readouterr().out
    aborted = [r for r in caplog.records if r.getMessage() == "sync.aborted"]
    assert len(aborted) == 1
    assert aborted[0].error_code == "billing_provider_error"
    failed = [r for r in caplog.records if r.getMessage() == "sync.user_failed"]
    assert aborted[0].run_id == failed[0].run_id


def test_unexpected_errors_still_propagate(wired_users, monkeypatch):
    wired_users.create("user-1", "cus-1")

    class BrokenBilling:
        def list_subscriptions(self, customer_id):
            raise RuntimeError("bug")

    monkeypatch.setattr(wired_users, "billing", BrokenBilling())

    with pytest.raises(RuntimeError):
        sync_subscriptions.main(["--policy", "fail_fast"])


def test_unknown_policy_is_rejected_by_parser():
    with pytest.raises(SystemExit):
        sync_subscriptions.main(["--policy", "sometimes"])
