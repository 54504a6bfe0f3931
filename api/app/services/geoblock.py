from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .settings import Settings


@dataclass(frozen=True)
class GeoDecision:
    blocked: bool
    country: Optional[str]
    test_mode: bool = False


def country_from_headers(headers: Mapping[str, str], header_names: tuple[str, ...]) -> Optional[str]:
    for name in header_names:
        value = (headers.get(name) or "").strip()
        if value:
            return value.upper()
    return None


def check_geoblock(*, settings: Settings, headers: Mapping[str, str], test_country: Optional[str] = None) -> GeoDecision:
    test_mode = bool(test_country and test_country.strip())
    if test_mode:
        country = test_country.strip().upper()
        blocked_list = settings.test_blocked_countries
    else:
        country = country_from_headers(headers, settings.geo_headers)
        blocked_list = settings.blocked_countries

    blocked = bool(country) and country in blocked_list
    return GeoDecision(blocked=blocked, country=country, test_mode=test_mode)
