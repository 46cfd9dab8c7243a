from enum import Enum

from sqlalchemy import Boolean, Column, String

from app.core.database import AuditMixin, Base


class ConfigType(str, Enum):
    """Descriptive tag only; values are stored and returned as strings"""

    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    JSON = "JSON"


DEFAULT_GROUP = "DEFAULT"


class Config(AuditMixin, Base):
    __tablename__ = "configs"

    config_key = Column(String(100), nullable=False, unique=True, index=True)
    config_value = Column(String(1000), nullable=True)
    description = Column(String(500), nullable=True)
    config_type = Column(String(20), nullable=False, default=ConfigType.STRING.value)
    config_group = Column(String(50), nullable=False, default=DEFAULT_GROUP, index=True)
    is_modifiable = Column(Boolean, nullable=False, default=True)
