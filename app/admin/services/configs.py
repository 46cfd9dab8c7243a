"""
Key/value system settings.

``config_type`` only describes how a value is meant to be read; values are
stored and returned as plain strings.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import with_db_transaction
from app.core.exceptions import (
    ConfigNotModifiableError,
    DuplicateError,
    NotFoundError,
)
from app.core.logging_utils import log_business_event
from app.admin.crud import configs as configs_crud
from app.admin.crud.base import get_by_id, restore, soft_delete
from app.admin.models.configs import Config, ConfigType, DEFAULT_GROUP

logger = logging.getLogger(__name__)

_MISSING = object()

UPDATABLE_FIELDS = (
    "config_key",
    "config_value",
    "description",
    "config_type",
    "config_group",
    "is_modifiable",
)

# (key, value, type, group, description)
DEFAULT_CONFIGS = [
    ("system.name", "社团管理系统", ConfigType.STRING, "SYSTEM", "System name"),
    ("system.version", "1.0.0", ConfigType.STRING, "SYSTEM", "System version"),
    ("system.debug", "false", ConfigType.BOOLEAN, "SYSTEM", "Debug mode"),
    ("database.type", "sqlite", ConfigType.STRING, "DATABASE", "Database type"),
    ("database.pool.max", "20", ConfigType.NUMBER, "DATABASE", "Maximum pool size"),
    ("database.pool.min", "5", ConfigType.NUMBER, "DATABASE", "Minimum pool size"),
    ("page.default.size", "10", ConfigType.NUMBER, "PAGE", "Default page size"),
    ("page.max.size", "100", ConfigType.NUMBER, "PAGE", "Maximum page size"),
    ("upload.path", "./uploads", ConfigType.STRING, "UPLOAD", "Upload directory"),
    ("upload.max.size", "10MB", ConfigType.STRING, "UPLOAD", "Maximum upload size"),
    ("token.expire.hours", "24", ConfigType.NUMBER, "TOKEN", "Token lifetime in hours"),
    (
        "token.cleanup.interval",
        "3600",
        ConfigType.NUMBER,
        "TOKEN",
        "Expired token sweep interval in seconds",
    ),
]


def _type_value(config_type) -> str:
    return config_type.value if isinstance(config_type, ConfigType) else str(config_type)


async def _ensure_key_free(session: AsyncSession, config_key: str):
    # deleted rows still hold the unique key
    if await configs_crud.find_config_by_key(session, config_key, include_deleted=True):
        raise DuplicateError("Config", "config_key", config_key)


async def create_config(
    session: AsyncSession,
    config_key: str,
    config_value: Optional[str] = None,
    description: Optional[str] = None,
    config_type=ConfigType.STRING,
    config_group: Optional[str] = None,
    is_modifiable: bool = True,
) -> Config:
    config_key = config_key.strip()
    await _ensure_key_free(session, config_key)

    config = Config(
        config_key=config_key,
        config_value=config_value,
        description=description,
        config_type=_type_value(config_type),
        config_group=config_group or DEFAULT_GROUP,
        is_modifiable=is_modifiable,
    )
    session.add(config)
    await session.commit()

    log_business_event("config_created", "config", config.id, {"key": config_key})
    return config


async def get_config(session: AsyncSession, config_id: int) -> Config:
    return await get_by_id(session, Config, config_id, "Config")


async def get_config_by_key(session: AsyncSession, config_key: str) -> Config:
    config = await configs_crud.find_config_by_key(session, config_key)
    if config is None:
        raise NotFoundError("Config", config_key)
    return config


async def get_config_value(
    session: AsyncSession, config_key: str, default: Any = _MISSING
) -> Optional[str]:
    """Value for the key, or ``default`` when given and the key is absent"""
    config = await configs_crud.find_config_by_key(session, config_key)
    if config is None:
        if default is _MISSING:
            raise NotFoundError("Config", config_key)
        return default
    return config.config_value


async def config_key_exists(session: AsyncSession, config_key: str) -> bool:
    return await configs_crud.find_config_by_key(session, config_key) is not None


async def update_config(
    session: AsyncSession, config_id: int, data: Dict[str, Any]
) -> Config:
    """Apply the non-None fields of ``data`` to a modifiable config"""
    config = await get_config(session, config_id)
    if not config.is_modifiable:
        raise ConfigNotModifiableError(config.config_key)

    new_key = data.get("config_key")
    if new_key and new_key.strip() != config.config_key:
        await _ensure_key_free(session, new_key.strip())

    changed = []
    for field in UPDATABLE_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        if field == "config_type":
            value = _type_value(value)
        elif field == "config_key":
            value = value.strip()
        setattr(config, field, value)
        changed.append(field)

    await session.commit()
    log_business_event("config_updated", "config", config.id, {"fields": changed})
    return config


async def update_config_value(
    session: AsyncSession, config_key: str, config_value: str
) -> Config:
    config = await get_config_by_key(session, config_key)
    if not config.is_modifiable:
        raise ConfigNotModifiableError(config_key)

    config.config_value = config_value
    await session.commit()
    log_business_event("config_value_updated", "config", config.id, {"key": config_key})
    return config


async def delete_config(session: AsyncSession, config_id: int) -> Config:
    config = await get_config(session, config_id)
    if not config.is_modifiable:
        raise ConfigNotModifiableError(config.config_key)

    soft_delete(config)
    await session.commit()
    log_business_event("config_deleted", "config", config.id, {"key": config.config_key})
    return config


async def delete_configs(session: AsyncSession, config_ids: Iterable[int]) -> int:
    """Delete several configs, or none if any is missing or not modifiable"""
    ids = list(dict.fromkeys(config_ids))
    configs = await configs_crud.find_configs_by_ids(session, ids)

    found = {config.id for config in configs}
    missing = [config_id for config_id in ids if config_id not in found]
    if missing:
        raise NotFoundError("Config", str(missing[0]))

    for config in configs:
        if not config.is_modifiable:
            raise ConfigNotModifiableError(config.config_key)

    async def _delete(session: AsyncSession):
        for config in configs:
            soft_delete(config)
        return len(configs)

    count = await with_db_transaction(session, _delete)
    log_business_event("configs_deleted", "config", 0, {"ids": ids})
    return count


async def restore_config(session: AsyncSession, config_id: int) -> Config:
    config = await restore(session, Config, config_id, "Config")
    await session.commit()
    log_business_event("config_restored", "config", config.id)
    return config


async def list_configs(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    config_key: Optional[str] = None,
    config_group: Optional[str] = None,
    config_type: Optional[str] = None,
):
    return await configs_crud.get_configs_paginated(
        session, page, size, config_key, config_group, config_type
    )


async def list_all_configs(session: AsyncSession):
    return await configs_crud.get_all_configs(session)


async def list_configs_by_group(session: AsyncSession, config_group: str):
    return await configs_crud.get_configs_by_group(session, config_group)


async def list_configs_by_type(session: AsyncSession, config_type: str):
    return await configs_crud.get_configs_by_type(session, _type_value(config_type))


async def list_config_groups(session: AsyncSession):
    return await configs_crud.get_config_groups(session)


async def init_default_configs(session: AsyncSession) -> int:
    """
    Seed the default settings that are not present yet.

    Each default is written on its own; a failing one is logged and skipped
    so the rest still get seeded. Returns the number created.
    """
    created = 0
    for key, value, config_type, group, description in DEFAULT_CONFIGS:
        try:
            if await configs_crud.find_config_by_key(session, key, include_deleted=True):
                continue
            session.add(
                Config(
                    config_key=key,
                    config_value=value,
                    description=description,
                    config_type=config_type.value,
                    config_group=group,
                    is_modifiable=True,
                )
            )
            await session.commit()
            created += 1
        except Exception as e:
            await session.rollback()
            logger.error(
                f"Failed to seed default config '{key}': {e}",
                extra={"config_key": key},
            )

    logger.info(f"Default configs seeded: {created} created")
    return created
