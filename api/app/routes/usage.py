from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..models.schemas import (
    RecordUsageRequest,
    RecordUsageResponse,
    ReserveRequest,
    ReserveResponse,
    UsageCheckResponse,
)
from ..services.backend import get_backend_resolver
from ..services.identity import user_identifier
from ..services.logging import get_logger, short_id
from ..services.settings import Settings, get_settings
from ..services.usage_ledger import InvalidArgument, UsageLedger
from ..services.usage_store import TransientBackendFailure

logger = get_logger(__name__)

router = APIRouter(tags=["usage"])


def get_ledger(settings: Settings = Depends(get_settings)) -> UsageLedger:
    resolver = get_backend_resolver(settings)
    return UsageLedger(store=resolver.store(), max_daily_seconds=settings.max_daily_seconds)


@router.get("/usage", response_model=UsageCheckResponse)
def check_usage(
    identifier: str = Depends(user_identifier),
    ledger: UsageLedger = Depends(get_ledger),
) -> UsageCheckResponse:
    usage = ledger.get_usage(identifier)
    # Derived from the same read so both fields agree.
    can_start = usage.remaining_seconds > 0 and not usage.degraded

    logger.info(
        "check-usage user=%s used=%s remaining=%s can_start=%s",
        short_id(identifier),
        usage.used_seconds,
        usage.remaining_seconds,
        can_start,
    )

    return UsageCheckResponse(
        can_start=can_start,
        used_seconds=usage.used_seconds,
        remaining_seconds=usage.remaining_seconds,
        max_daily_seconds=ledger.max_daily_seconds,
        degraded=usage.degraded,
    )


@router.post("/usage/record", response_model=RecordUsageResponse)
def record_usage(
    body: RecordUsageRequest,
    identifier: str = Depends(user_identifier),
    ledger: UsageLedger = Depends(get_ledger),
) -> RecordUsageResponse:
    try:
        totals = ledger.record_session(identifier, body.duration_seconds)
    except InvalidArgument:
        raise HTTPException(status_code=400, detail="Invalid durationSeconds")
    except TransientBackendFailure as e:
        logger.error("record-usage failed for %s: %s", short_id(identifier), e)
        raise HTTPException(status_code=503, detail="Usage storage unavailable", headers={"Retry-After": "1"})

    return RecordUsageResponse(
        used_seconds=totals.used_seconds,
        remaining_seconds=totals.remaining_seconds,
        max_daily_seconds=ledger.max_daily_seconds,
    )


@router.post("/usage/reserve", response_model=ReserveResponse)
def reserve_usage(
    body: ReserveRequest,
    identifier: str = Depends(user_identifier),
    ledger: UsageLedger = Depends(get_ledger),
) -> ReserveResponse:
    try:
        reservation = ledger.reserve_time(identifier, body.requested_seconds)
    except InvalidArgument:
        raise HTTPException(status_code=400, detail="Invalid requestedSeconds")

    return ReserveResponse(
        reserved_seconds=reservation.reserved_seconds,
        remaining_seconds=reservation.remaining_seconds,
        degraded=reservation.degraded,
    )
