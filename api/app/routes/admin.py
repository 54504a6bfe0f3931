from __future__ import annotations

from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ..models.schemas import ClearUsageResponse, SessionResponse, UsageStatusResponse
from ..services.auth import require_admin
from ..services.identity import client_ip
from ..services.usage_ledger import UsageLedger
from ..services.usage_store import TransientBackendFailure
from .usage import get_ledger

router = APIRouter(tags=["admin"])

_ACTIONS = ["clear", "status"]


def _resolve_day(day: Optional[str], ledger: UsageLedger) -> str:
    if not day:
        return ledger.today()
    try:
        return date.fromisoformat(day).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="day must be YYYY-MM-DD")


@router.api_route(
    "/admin/usage",
    methods=["GET", "POST"],
    response_model=Union[UsageStatusResponse, ClearUsageResponse],
)
def admin_usage(
    request: Request,
    action: Optional[str] = Query(default=None),
    identifier: Optional[str] = Query(default=None),
    day: Optional[str] = Query(default=None),
    _admin: None = Depends(require_admin),
    ledger: UsageLedger = Depends(get_ledger),
):
    """Test/ops bypass: inspect or clear one identifier's usage for a day."""
    if action not in _ACTIONS:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid action", "availableActions": _ACTIONS},
        )

    who = identifier or client_ip(request)
    target_day = _resolve_day(day, ledger)

    if action == "clear":
        try:
            existed = ledger.clear_usage(who, target_day)
        except TransientBackendFailure as e:
            raise HTTPException(status_code=503, detail=f"Usage storage unavailable: {e}", headers={"Retry-After": "1"})
        return ClearUsageResponse(
            success=True,
            existed=existed,
            message=f"Cleared usage for {who} on {target_day}",
        )

    usage = ledger.get_usage(who, target_day)
    return UsageStatusResponse(
        identifier=who,
        day=target_day,
        used_seconds=usage.used_seconds,
        remaining_seconds=usage.remaining_seconds,
        sessions=[SessionResponse(duration=s.duration, timestamp=s.timestamp) for s in usage.sessions],
        max_daily_seconds=ledger.max_daily_seconds,
        degraded=usage.degraded,
    )
