"""
Pal Accounts Service - FastAPI Application
==========================================

Anonymous account provisioning and session token issuance.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pal_infrastructure import OnceCell
from pal_logging import get_logger, setup_logging

from .database import check_database_health, close_database, create_session_factory, init_database
from .routes import router
from .schemas import HealthResponse
from .services import AccountService, create_token_verifier
from .settings import AccountsSettings, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle management."""
    settings: AccountsSettings = app.state.settings
    setup_logging(settings.log_level, settings.json_logs)
    logger.info("Starting Accounts Service", version=settings.service_version)

    try:
        if settings.create_tables:
            await init_database(app.state.engine)

        if settings.verify_salt_on_startup:
            # A missing salt is fatal: refuse to start rather than fail per request.
            async with app.state.session_factory() as session:
                await app.state.account_service.salt_provider.get_salt(session)

        app.state.startup_time = datetime.now(timezone.utc)
        logger.info("Accounts Service started")
        yield
    except Exception as e:
        logger.error("Failed to start Accounts Service", error=str(e))
        raise
    finally:
        logger.info("Shutting down Accounts Service")
        await close_database(app.state.engine)


def create_app(settings: Optional[AccountsSettings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Pal Accounts Service",
        description="Anonymous account provisioning and session tokens",
        version=settings.service_version,
        lifespan=lifespan,
    )

    engine, session_factory = create_session_factory(settings.database_url, settings.database_echo)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.account_service = AccountService.from_settings(settings, salt_cell=OnceCell())
    app.state.token_verifier = create_token_verifier(settings)
    app.state.startup_time = datetime.now(timezone.utc)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=settings.allow_credentials,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/v1/accounts", tags=["accounts"])

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(status_code=500, content={"success": False})

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Service health check."""
        try:
            uptime = int((datetime.now(timezone.utc) - app.state.startup_time).total_seconds())
            db_health = await check_database_health(app.state.session_factory)
            return HealthResponse(
                status="healthy" if db_health["status"] == "healthy" else "degraded",
                version=settings.service_version,
                uptime_seconds=uptime,
                database=db_health,
            )
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            raise HTTPException(status_code=503, detail="Service unhealthy")

    return app
