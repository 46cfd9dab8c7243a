from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import PAGE_DEFAULT_SIZE
from app.core.database import get_session
from app.core.dependencies import get_current_user, require_permission
from app.core.limits import limiter
from app.admin.crud.base import normalize_page, total_pages
from app.admin.models.configs import ConfigType
from app.admin.models.users import User
from app.admin.schemas.common import MessageResponse, applied_filters
from app.admin.schemas.configs import (
    ConfigBatchDelete,
    ConfigCreate,
    ConfigListResponse,
    ConfigRead,
    ConfigUpdate,
    ConfigValueRead,
    ConfigValueUpdate,
)
from app.admin.services import configs as config_service

router = APIRouter(prefix="/configs", tags=["Configs"])


@router.post("/", response_model=ConfigRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_config(
    request: Request,
    config: ConfigCreate,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.create_config(db, **config.model_dump())


@router.get("/", response_model=ConfigListResponse)
@limiter.limit("30/minute")
async def get_configs_list(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(PAGE_DEFAULT_SIZE, ge=1, description="Items per page"),
    config_key: Optional[str] = Query(None, description="Partial key match"),
    config_group: Optional[str] = Query(None),
    config_type: Optional[ConfigType] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Configs ordered by key."""
    page, size = normalize_page(page, size)
    type_value = config_type.value if config_type else None
    configs, total = await config_service.list_configs(
        db, page, size, config_key, config_group, type_value
    )
    return ConfigListResponse(
        configs=configs,
        total=total,
        page=page,
        size=size,
        pages=total_pages(total, size),
        filters=applied_filters(
            config_key=config_key, config_group=config_group, config_type=type_value
        ),
    )


@router.get("/all", response_model=list[ConfigRead])
@limiter.limit("30/minute")
async def get_all_configs(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.list_all_configs(db)


@router.get("/groups", response_model=list[str])
@limiter.limit("30/minute")
async def get_config_groups(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.list_config_groups(db)


@router.get("/group/{config_group}", response_model=list[ConfigRead])
@limiter.limit("30/minute")
async def get_configs_by_group(
    request: Request,
    config_group: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.list_configs_by_group(db, config_group)


@router.get("/type/{config_type}", response_model=list[ConfigRead])
@limiter.limit("30/minute")
async def get_configs_by_type(
    request: Request,
    config_type: ConfigType,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.list_configs_by_type(db, config_type)


@router.post("/batch-delete", response_model=MessageResponse)
@limiter.limit("10/minute")
async def delete_configs(
    request: Request,
    data: ConfigBatchDelete,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    """Delete several configs at once; nothing is deleted if any of them is protected."""
    count = await config_service.delete_configs(db, data.ids)
    return MessageResponse(message="Configs deleted", details={"deleted": count})


@router.post("/init-defaults", response_model=MessageResponse)
@limiter.limit("5/minute")
async def init_default_configs(
    request: Request,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    """Seed the default settings that are missing."""
    created = await config_service.init_default_configs(db)
    return MessageResponse(message="Default configs seeded", details={"created": created})


@router.get("/key/{config_key}", response_model=ConfigRead)
@limiter.limit("60/minute")
async def get_config_by_key(
    request: Request,
    config_key: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.get_config_by_key(db, config_key)


@router.get("/key/{config_key}/value", response_model=ConfigValueRead)
@limiter.limit("60/minute")
async def get_config_value(
    request: Request,
    config_key: str,
    default: Optional[str] = Query(None, description="Returned when the key is missing"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if default is None:
        value = await config_service.get_config_value(db, config_key)
    else:
        value = await config_service.get_config_value(db, config_key, default)
    return ConfigValueRead(config_key=config_key, config_value=value)


@router.get("/key/{config_key}/exists", response_model=bool)
@limiter.limit("60/minute")
async def config_key_exists(
    request: Request,
    config_key: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.config_key_exists(db, config_key)


@router.put("/key/{config_key}/value", response_model=ConfigRead)
@limiter.limit("20/minute")
async def update_config_value(
    request: Request,
    config_key: str,
    data: ConfigValueUpdate,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.update_config_value(db, config_key, data.config_value)


@router.get("/{config_id}", response_model=ConfigRead)
@limiter.limit("60/minute")
async def get_config(
    request: Request,
    config_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.get_config(db, config_id)


@router.put("/{config_id}", response_model=ConfigRead)
@limiter.limit("20/minute")
async def update_config(
    request: Request,
    config_id: int,
    data: ConfigUpdate,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.update_config(
        db, config_id, data.model_dump(exclude_none=True)
    )


@router.delete("/{config_id}", response_model=MessageResponse)
@limiter.limit("20/minute")
async def delete_config(
    request: Request,
    config_id: int,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    await config_service.delete_config(db, config_id)
    return MessageResponse(message="Config deleted", details={"config_id": config_id})


@router.post("/{config_id}/restore", response_model=ConfigRead)
@limiter.limit("10/minute")
async def restore_config(
    request: Request,
    config_id: int,
    current_user: User = Depends(require_permission("manage_config")),
    db: AsyncSession = Depends(get_session),
):
    return await config_service.restore_config(db, config_id)
