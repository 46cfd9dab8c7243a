from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.admin.models.configs import ConfigType
from app.admin.schemas.common import PageMeta

CONFIG_KEY_PATTERN = r"^[A-Za-z0-9_.\-]+$"


class ConfigCreate(BaseModel):
    config_key: str = Field(
        ..., min_length=1, max_length=100, pattern=CONFIG_KEY_PATTERN
    )
    config_value: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=500)
    config_type: ConfigType = ConfigType.STRING
    config_group: Optional[str] = Field(None, max_length=50)
    is_modifiable: bool = True


class ConfigUpdate(BaseModel):
    config_key: Optional[str] = Field(
        None, min_length=1, max_length=100, pattern=CONFIG_KEY_PATTERN
    )
    config_value: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=500)
    config_type: Optional[ConfigType] = None
    config_group: Optional[str] = Field(None, max_length=50)
    is_modifiable: Optional[bool] = None


class ConfigValueUpdate(BaseModel):
    config_value: str = Field(..., max_length=1000)


class ConfigBatchDelete(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class ConfigRead(BaseModel):
    id: int
    config_key: str
    config_value: Optional[str] = None
    description: Optional[str] = None
    config_type: str
    config_group: str
    is_modifiable: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConfigValueRead(BaseModel):
    config_key: str
    config_value: Optional[str] = None


class ConfigListResponse(PageMeta):
    configs: list[ConfigRead]
