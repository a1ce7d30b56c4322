"""
Narration Orchestrator Service - turns live narration into a queue of slides
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import debug_settings, get_settings
from shared.models import HealthCheck

from .api import get_router
from .lifecycle import LiveSession
from .rate_limit import SlidingWindowRateLimiter
from .services import SlideServiceClient, SlideServices
from .sessions import SessionRegistry

# Configure logging
logging.basicConfig(level=getattr(logging, get_settings().log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def create_app(
    registry: Optional[SessionRegistry] = None,
    services: Optional[SlideServices] = None,
    limiter: Optional[SlidingWindowRateLimiter] = None,
) -> FastAPI:
    settings = get_settings()
    owned_client: Optional[SlideServiceClient] = None
    if services is None:
        owned_client = SlideServiceClient(settings.slide_services_url, timeout=settings.slide_services_timeout)
        services = owned_client

    if registry is None:
        registry = SessionRegistry(
            lambda: LiveSession.from_settings(services, settings),
            ttl=timedelta(hours=settings.session_ttl_hours),
        )
    if limiter is None:
        limiter = SlidingWindowRateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan"""
        logger.info("🔍 Debugging environment variables...")
        debug_settings()
        logger.info("Narration Orchestrator Service started successfully")

        yield

        for session_id in list(registry.session_ids()):
            registry.delete(session_id)
        if owned_client is not None:
            await owned_client.aclose()
        logger.info("Shutting down Narration Orchestrator Service")

    app = FastAPI(
        title="Narration Orchestrator Service",
        description="Gates live narration into slides and schedules exploratory follow-ups",
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

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        """Health check endpoint"""
        registry.purge_expired()
        limiter.purge_expired()
        return HealthCheck(service=settings.service_name)

    app.include_router(get_router(registry, limiter))
    app.state.registry = registry
    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        create_app(),
        host="0.0.0.0",
        port=settings.service_port,
        log_level=settings.log_level.lower(),
    )
