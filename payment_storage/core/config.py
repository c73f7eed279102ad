import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

SYNC_FAILURE_POLICIES = ("fail_fast", "continue")


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Storage
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Partition routing (storage layout only, no effect on behavior)
    USERS_PARTITION_NAME: str = "Users"
    CUSTOMERS_PARTITION_NAME: str = "Customers"
    CUSTOMER_INDEX_ENABLED: bool = True

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None

    # Synchronization
    SYNC_FAILURE_POLICY: str = "fail_fast"  # fail_fast | continue

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("payment_storage")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []

    if str(getattr(cfg, "ENV", "development")).lower() == "production":
        required_keys = [
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
        ]
        missing = [key for key in required_keys if not getattr(cfg, key, None)]
        if missing:
            problems.append(f"Missing required configuration: {', '.join(missing)}")

    policy = getattr(cfg, "SYNC_FAILURE_POLICY", "fail_fast")
    if policy not in SYNC_FAILURE_POLICIES:
        problems.append(
            f"Invalid SYNC_FAILURE_POLICY '{policy}' (expected one of: {', '.join(SYNC_FAILURE_POLICIES)})"
        )

    if getattr(cfg, "USERS_PARTITION_NAME", None) == getattr(cfg, "CUSTOMERS_PARTITION_NAME", None):
        problems.append("USERS_PARTITION_NAME and CUSTOMERS_PARTITION_NAME must differ")

    for message in problems:
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return not problems
