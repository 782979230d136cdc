"""FastAPI application wiring for the signup-code endpoints."""
from __future__ import annotations

import logging

from fastapi import FastAPI

from signupcodes.core.config import get_settings
from signupcodes.core.logging import configure_logging
from signupcodes.repositories.sql_repository import SignupCodeRepository
from signupcodes.routers import signup_codes as signup_codes_router
from signupcodes.services.lifecycle_service import LifecycleService
from signupcodes.services.redemption_service import RedemptionService

logger = logging.getLogger(__name__)


def create_app(repository: SignupCodeRepository | None = None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Signup Codes API")
    repo = repository or SignupCodeRepository()
    app.state.redemption_service = RedemptionService(repository=repo)
    app.state.lifecycle_service = LifecycleService(repository=repo)
    app.include_router(signup_codes_router.router)

    if not settings.admin_api_token:
        logger.warning("ADMIN_API_TOKEN is not set; admin routes will reject every request")
    return app
