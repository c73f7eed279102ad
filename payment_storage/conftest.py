# payment_storage/conftest.py
import sys
import pytest
from pathlib import Path

# Add repo root to PYTHONPATH
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Keep every test on in-memory collaborators.

    Clears Stripe and database configuration and resets the module-level
    singletons so no state leaks between tests.
    """
    for key in ("STRIPE_SECRET_KEY", "DATABASE_URL", "TEST_DATABASE_URL"):
        monkeypatch.delenv(key, raising=False)

    from payment_storage.core import config
    from payment_storage.core.database import dispose_engine
    from payment_storage.features.billing.service import reset_provider
    from payment_storage.features.partitions.service import reset_partitions
    from payment_storage.features.subscriptions.service import reset_users

    monkeypatch.setattr(config.settings, "DATABASE_URL", None)
    monkeypatch.setattr(config.settings, "STRIPE_SECRET_KEY", None)

    reset_users()
    reset_partitions()
    reset_provider()
    dispose_engine()
    yield
    reset_users()
    reset_partitions()
    reset_provider()
    dispose_engine()


@pytest.fixture
def settings():
    from payment_storage.core.config import Settings
    return Settings(USERS_PARTITION_NAME="Users", CUSTOMERS_PARTITION_NAME="Customers")


@pytest.fixture
def partitions():
    from payment_storage.features.partitions.memory import MemoryPartitions
    return MemoryPartitions()


@pytest.fixture
def billing():
    from payment_storage.features.billing.memory_provider import MemoryBilling
    return MemoryBilling()


@pytest.fixture
def users(billing, partitions, settings):
    """System under test: Users wired to in-memory billing and storage."""
    from payment_storage.features.subscriptions.service import Users
    return Users(billing, partitions, settings)


@pytest.fixture
def sqlite_db(monkeypatch):
    """
    Point the SQL store at a fresh in-memory sqlite database.

    StaticPool keeps the single connection alive across sessions.
    """
    from payment_storage.core.database import dispose_engine, reset_database, drop_all_tables

    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite://")
    dispose_engine()
    reset_database()
    yield
    drop_all_tables()
    dispose_engine()
