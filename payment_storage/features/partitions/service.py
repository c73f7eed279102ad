"""
Partition store selection.

- SQL store when DATABASE_URL (or TEST_DATABASE_URL) is configured and reachable
- In-memory store when no database is configured
- A configured but unreachable database is fatal in production or with
  CONFIG_STRICT; elsewhere it degrades to the in-memory store with a warning
"""
import logging
from typing import Optional

from payment_storage.core.config import Settings, settings as default_settings
from payment_storage.core.database import check_connection, get_database_url
from payment_storage.features.partitions.contracts import Partitions
from payment_storage.features.partitions.memory import MemoryPartitions

logger = logging.getLogger("payment_storage")


class StoreUnavailableError(RuntimeError):
    """Raised when the configured database cannot be reached and fallback is not allowed."""


def _fallback_allowed(cfg: Settings) -> bool:
    return str(cfg.ENV).lower() != "production" and not cfg.CONFIG_STRICT


def build_partitions(settings_obj: Optional[Settings] = None) -> Partitions:
    """
    Build the appropriate partition store implementation.

    Returns:
        SqlPartitions or MemoryPartitions instance

    Raises:
        StoreUnavailableError: Database configured but unreachable and
            in-memory fallback is not allowed
    """
    cfg = settings_obj or default_settings
    if get_database_url():
        from payment_storage.features.partitions.sql import SqlPartitions

        if check_connection():
            return SqlPartitions()
        if not _fallback_allowed(cfg):
            raise StoreUnavailableError("Configured database is unreachable; refusing in-memory fallback")
        logger.warning("Database unavailable, falling back to in-memory partitions (data is process-local)")

    return MemoryPartitions()


_partitions_instance = None


def get_partitions() -> Partitions:
    """Get the singleton partition store."""
    global _partitions_instance
    if _partitions_instance is None:
        _partitions_instance = build_partitions()
    return _partitions_instance


def reset_partitions() -> None:
    """
    Reset the store instance.

    FOR TESTING ONLY - forces re-initialization on next get_partitions() call.
    """
    global _partitions_instance
    _partitions_instance = None
