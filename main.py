"""
Portfolio API - Main Application Entry Point.

This module builds the FastAPI application behind a personal portfolio site:
the owner's profile, skills, projects, work experience, a blog with comments
and likes, a contact form and an admin dashboard.

Key Responsibilities:
- Configure and launch the FastAPI application (`create_app`).
- Create the database engine and session factory for the application and
  dispose of them at shutdown.
- Build the identity verifier that turns bearer tokens into identity
  assertions.
- Set up middleware for correlation, error handling, request logging, rate
  limiting, security headers and CORS.
- Mount the health router and the resource routers under `/api`.

Architecture:
Everything the request handlers share (settings, session factory, identity
verifier, rate limiter) lives on `app.state` and is reached through FastAPI
dependencies, so tests build an isolated application with their own database
and verifier by calling `create_app(settings, identity_verifier)`.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.auth_endpoints import router as auth_router
from api.blog_endpoints import router as blog_router
from api.contact_endpoints import router as contact_router
from api.experience_endpoints import router as experience_router
from api.health_router import API_VERSION, health_router
from api.profile_endpoints import router as profile_router
from api.project_endpoints import router as project_router
from api.skill_endpoints import router as skill_router
from api.stats_endpoints import router as stats_router
from core.config import Settings, load_settings
from core.database import (
    create_db_and_tables,
    create_engine_for,
    create_session_factory,
    describe_database,
)
from core.identity import IdentityVerifier, build_identity_verifier
from core.logging_config import get_logger, setup_logging
from core.middleware import (
    CorrelationMiddleware,
    ErrorHandlingMiddleware,
    PerformanceMiddleware,
    register_exception_handlers,
)
from core.rate_limiter import MemoryRateLimiter, RateLimitRule
from core.security_middleware import RateLimitMiddleware, SecurityHeadersMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    setup_logging(settings.environment, settings.log_level)
    logger = get_logger("api.startup")

    logger.info(f"Using database {describe_database(settings.database_url)}")
    await create_db_and_tables(app.state.engine)
    logger.info("Database initialized successfully")

    logger.info(
        f"Rate limiter initialized: {settings.rate_limit_max} requests per "
        f"{settings.rate_limit_window_seconds}s"
    )
    logger.info("Service startup completed")
    yield

    # Cleanup on shutdown
    logger.info("Shutting down Portfolio API")
    await app.state.engine.dispose()
    logger.info("Cleanup completed")


def create_app(
    settings: Optional[Settings] = None,
    identity_verifier: Optional[IdentityVerifier] = None,
) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Portfolio API",
        description="Backend for a personal portfolio site and blog",
        version=API_VERSION,
        lifespan=lifespan,
    )

    engine = create_engine_for(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.identity_verifier = identity_verifier or build_identity_verifier(
        settings
    )

    rate_limiter = MemoryRateLimiter(
        RateLimitRule(
            requests=settings.rate_limit_max,
            window=settings.rate_limit_window_seconds,
        )
    )
    app.state.rate_limiter = rate_limiter

    # Added innermost first; the last one added wraps all others
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(PerformanceMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Health routers FIRST (no authentication required for monitoring)
    app.include_router(health_router)

    for router in (
        auth_router,
        blog_router,
        contact_router,
        experience_router,
        profile_router,
        project_router,
        skill_router,
        stats_router,
    ):
        app.include_router(router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=app.state.settings.port,
        log_level="info",
    )
