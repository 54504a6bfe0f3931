from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionResponse(_CamelModel):
    duration: float
    timestamp: datetime


class UsageCheckResponse(_CamelModel):
    can_start: bool
    used_seconds: float = Field(ge=0)
    remaining_seconds: float = Field(ge=0)
    max_daily_seconds: int
    degraded: bool = False


class RecordUsageRequest(_CamelModel):
    # Validated by the ledger so a bad value maps to 400 rather than 422.
    duration_seconds: Optional[Any] = None


class RecordUsageResponse(_CamelModel):
    success: bool = True
    used_seconds: float = Field(ge=0)
    remaining_seconds: float = Field(ge=0)
    max_daily_seconds: int


class ReserveRequest(_CamelModel):
    requested_seconds: Optional[Any] = None


class ReserveResponse(_CamelModel):
    reserved_seconds: float = Field(ge=0)
    remaining_seconds: float = Field(ge=0)
    degraded: bool = False


class UsageStatusResponse(_CamelModel):
    identifier: str
    day: str
    used_seconds: float = Field(ge=0)
    remaining_seconds: float = Field(ge=0)
    sessions: list[SessionResponse] = Field(default_factory=list)
    max_daily_seconds: int
    degraded: bool = False


class ClearUsageResponse(_CamelModel):
    success: bool
    existed: bool
    message: str


class GeoblockResponse(_CamelModel):
    geoblocked: bool
