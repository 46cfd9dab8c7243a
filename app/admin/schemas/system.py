from typing import Any, Dict, Optional

from pydantic import BaseModel


class SystemInfo(BaseModel):
    name: str
    app_name: str
    version: str
    environment: str
    server_time: str


class HealthStatus(BaseModel):
    status: str
    database: str
    token_sweeper: Optional[Dict[str, Any]] = None


class SweepResult(BaseModel):
    expired: int


class PurgeResult(BaseModel):
    deleted: Dict[str, int]
    total: int
