from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import APP_NAME, APP_VERSION, ENVIRONMENT
from app.core.database import db_manager, get_session, utcnow
from app.core.dependencies import get_current_user, require_permission
from app.core.limits import limiter
from app.core.logging_utils import error_tracker
from app.admin.models.users import User
from app.admin.schemas.common import MessageResponse
from app.admin.schemas.system import HealthStatus, PurgeResult, SweepResult, SystemInfo
from app.admin.services import configs as config_service
from app.admin.services import system as system_service
from app.admin.services.token_sweeper import token_sweeper
from app.admin.services.tokens import sweep_expired

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/info", response_model=SystemInfo)
@limiter.limit("60/minute")
async def get_system_info(request: Request, db: AsyncSession = Depends(get_session)):
    """Application name and version; the display name comes from ``system.name``."""
    name = await config_service.get_config_value(db, "system.name", APP_NAME)
    return SystemInfo(
        name=name or APP_NAME,
        app_name=APP_NAME,
        version=APP_VERSION,
        environment=ENVIRONMENT,
        server_time=utcnow().isoformat(),
    )


@router.get("/health", response_model=HealthStatus)
async def health_check():
    """Database reachability; 503 when the database is down."""
    healthy = await db_manager.ping()
    body = HealthStatus(
        status="healthy" if healthy else "unhealthy",
        database="connected" if healthy else "unavailable",
        token_sweeper={"running": token_sweeper.scheduler.running},
    )
    if not healthy:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body


@router.get("/errors")
@limiter.limit("30/minute")
async def get_error_stats(
    request: Request, current_user: User = Depends(require_permission("view_errors"))
):
    """Counters and recent history of failed requests."""
    return error_tracker.get_stats()


@router.post("/errors/reset", response_model=MessageResponse)
@limiter.limit("5/minute")
async def reset_error_stats(
    request: Request, current_user: User = Depends(require_permission("view_errors"))
):
    error_tracker.reset_stats()
    return MessageResponse(message="Error statistics reset")


@router.post("/tokens/sweep", response_model=SweepResult)
@limiter.limit("5/minute")
async def sweep_tokens(
    request: Request,
    current_user: User = Depends(require_permission("sweep_tokens")),
    db: AsyncSession = Depends(get_session),
):
    """Expire every token past its expiry time right away."""
    return SweepResult(expired=await sweep_expired(db))


@router.get("/tokens/sweeper")
@limiter.limit("30/minute")
async def get_sweeper_status(
    request: Request, current_user: User = Depends(require_permission("sweep_tokens"))
):
    return token_sweeper.get_status()


@router.post("/purge", response_model=PurgeResult)
@limiter.limit("2/minute")
async def purge_deleted_data(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Permanently remove every soft-deleted row (super admin only)."""
    counts = await system_service.purge_deleted(db, current_user.id)
    return PurgeResult(deleted=counts, total=sum(counts.values()))
