"""Country to Criteo routing region resolution.

Criteo serves s2s traffic from regional hosts. The region prefix is derived
from the country segment of the event's `context.locale` and placed in front of
the vendor host: `http://{region}.{host}/m/event`.

The region is always resolved from the normalized event, never from the mapped
payload, so routing cannot drift if the payload's account block is reshaped.

Regions:
    us  Americas
    as  Asia-Pacific
    eu  Europe, Middle East and Africa (also the default fallback)
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from .models.segment import NormalizedEvent

__all__ = ["COUNTRY_REGIONS", "DEFAULT_REGION", "region_for_country", "resolve_region"]

DEFAULT_REGION = "eu"

_AMERICAS = (
    "US CA MX BR AR CL CO PE VE EC BO PY UY GT CR PA DO PR HN SV NI CU JM TT BS BB"
)
_APAC = (
    "JP KR CN HK TW SG MY ID TH VN PH IN AU NZ PK BD LK NP KH MM MO BN MN FJ PG"
)

COUNTRY_REGIONS: Dict[str, str] = {
    **{code: "us" for code in _AMERICAS.split()},
    **{code: "as" for code in _APAC.split()},
}


def region_for_country(
    country: Optional[str],
    *,
    overrides: Optional[Mapping[str, str]] = None,
    default: str = DEFAULT_REGION,
) -> str:
    """Look up the region for an ISO-3166 alpha-2 country code (case-insensitive)."""
    if not country:
        return default
    code = country.strip().upper()
    if overrides and code in overrides:
        return overrides[code]
    return COUNTRY_REGIONS.get(code, default)


def resolve_region(
    event: NormalizedEvent,
    *,
    overrides: Optional[Mapping[str, str]] = None,
    default: str = DEFAULT_REGION,
) -> str:
    parts = event.locale_parts()
    country = parts[1] if parts else None
    return region_for_country(country, overrides=overrides, default=default)
