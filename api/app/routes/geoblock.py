from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..models.schemas import GeoblockResponse
from ..services.geoblock import check_geoblock
from ..services.logging import get_logger
from ..services.settings import Settings, get_settings

logger = get_logger(__name__)

router = APIRouter(tags=["geoblock"])


@router.get("/geoblock", response_model=GeoblockResponse)
def geoblock(
    request: Request,
    test_country: Optional[str] = Query(default=None, alias="testCountry"),
    settings: Settings = Depends(get_settings),
):
    decision = check_geoblock(settings=settings, headers=request.headers, test_country=test_country)
    if decision.blocked:
        logger.info(
            "Geoblocked request from country %s%s",
            decision.country,
            " (test mode)" if decision.test_mode else "",
        )
        return JSONResponse(
            status_code=403,
            content={"error": "geoblocked", "message": "Service not available in your region"},
        )
    return GeoblockResponse(geoblocked=False)
