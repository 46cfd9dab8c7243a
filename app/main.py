import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.limits import limiter
from app.core.init_db import init_database
from app.core.error_handlers import setup_exception_handlers
from app.core.database import db_manager
from app.core.middleware import setup_middleware
from app.core.logging_utils import setup_logging, log_business_event, error_tracker
from app.core.config import (
    validate_config,
    APP_NAME,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    ENVIRONMENT,
    LOG_LEVEL,
    LOG_FORMAT,
    TOKEN_SWEEP_ENABLED,
)

from app.admin.routers import users as admin_users
from app.admin.routers import clubs as admin_clubs
from app.admin.routers import activities as admin_activities
from app.admin.routers import configs as admin_configs
from app.admin.routers import system as admin_system
from app.admin.services.token_sweeper import token_sweeper

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""

    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        validate_config()
        logger.info("Configuration validated")

        # checks the connection, creates tables and seeds default configs
        await init_database()
        logger.info("Database initialized")

        if TOKEN_SWEEP_ENABLED:
            token_sweeper.start()

        log_business_event(
            "application_started",
            "system",
            0,
            {"version": APP_VERSION, "environment": ENVIRONMENT},
        )

        logger.info("Application startup completed")

    except Exception as e:
        logger.error(f"Application startup failed: {str(e)}")
        error_tracker.track_error(
            "STARTUP_ERROR",
            str(e),
            {"component": "application_startup", "version": APP_VERSION},
        )
        raise

    yield

    logger.info("Shutting down application...")

    try:
        token_sweeper.stop()
        await db_manager.close_connections()
        logger.info("Database connections closed")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")

    logger.info("Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    description="Users, clubs, memberships, activities and system settings",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

setup_middleware(
    app,
    {
        "slow_request_threshold": 5.0,
        "exclude_paths": [
            "/api/v1/system/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    },
)

app.state.limiter = limiter

app.include_router(admin_users.router, prefix="/api/v1")
app.include_router(admin_clubs.router, prefix="/api/v1")
app.include_router(admin_activities.router, prefix="/api/v1")
app.include_router(admin_configs.router, prefix="/api/v1")
app.include_router(admin_system.router, prefix="/api/v1")
