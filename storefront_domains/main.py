"""
Storefront Domains service entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import domains
from .config import Settings, get_settings
from .domains.service import DomainOnboarding

logger = logging.getLogger("storefront_domains")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Tests install their own onboarding stack
        if getattr(app.state, "onboarding", None) is None:
            app.state.onboarding = DomainOnboarding.from_settings(settings)
        logger.info("Domain onboarding initialized")
        try:
            yield
        finally:
            await app.state.onboarding.close()
            logger.info("Domain onboarding shut down")

    app = FastAPI(
        title="Storefront Domains",
        description="Custom domain onboarding and certificate provisioning for storefronts",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(domains.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok"}

    return app


app = create_app()
