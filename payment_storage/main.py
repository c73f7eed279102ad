import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

# Load env from the package directory (skipped under pytest)
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from payment_storage.core.config import settings, validate_config  # noqa: E402
from payment_storage.core.logging import configure_logging  # noqa: E402
from payment_storage.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from payment_storage.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from payment_storage.api import health, users  # noqa: E402

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("payment_storage")
    logger.info("Starting payment storage service...")
    try:
        yield
    finally:
        logging.getLogger("payment_storage").info("Stopping payment storage service...")


app = FastAPI(title="Payment Storage", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(health.root_router)
app.include_router(users.router)
