"""Date normalization and travel date-range extraction.

Criteo expects travel dates as plain `YYYY-MM-DD` strings in the `din` / `dout`
fields of a `vs` sub-event. Event properties carry these dates in several
shapes depending on the vertical and SDK, so conversion is lenient.

Accepted Inputs:
    date / datetime objects
    ISO-8601 strings ("2024-06-01", "2024-06-01T10:00:00Z", ...)
    Epoch numbers: values < 1_000_000_000_000 treated as seconds, larger
    values as milliseconds

Date Precedence (first rule whose trigger key is present wins):
    1. Hotel:      checkin_date / checkout_date
    2. Flights:    flights[0].departure_date / flights[1].departure_date
                   (rule only applies with at least two legs)
    3. Departure:  departure_date used for both bounds
    4. Car rental: pickup_date / dropoff_date

Bounds are never merged across rules: a hotel stay missing its checkout date
yields no date event even when a departure date is also present.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Tuple

__all__ = ["format_date", "extract_date_range", "date_range_event"]

logger = logging.getLogger(__name__)

_DATE_FORMAT = "%Y-%m-%d"


def _epoch_to_dt(value: float) -> datetime:
    if value < 1_000_000_000_000:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def format_date(value: Any) -> Optional[str]:
    """Format a date-like value as `YYYY-MM-DD`.

    Timezone-aware datetimes keep their own calendar date (no conversion), so
    "2024-06-01T23:30:00-05:00" formats as 2024-06-01.

    Returns:
        The formatted date or None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.strftime(_DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(_DATE_FORMAT)
    if isinstance(value, (int, float)):
        try:
            return _epoch_to_dt(value).strftime(_DATE_FORMAT)
        except (OverflowError, OSError, ValueError):
            logger.debug("Epoch date out of range: %r", value)
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).strftime(_DATE_FORMAT)
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10]).strftime(_DATE_FORMAT)
        except ValueError:
            logger.debug("Unparseable date string: %r", value)
            return None
    logger.debug("Unsupported date type %s", type(value).__name__)
    return None


def _leg_departure(flights: Any, index: int) -> Any:
    leg = flights[index]
    if isinstance(leg, Mapping):
        return leg.get("departure_date")
    return None


def extract_date_range(props: Mapping[str, Any]) -> Optional[Tuple[Any, Any]]:
    """Return the raw (start, end) pair selected by the precedence rules.

    Either bound may be None when the winning rule is incomplete; callers treat
    that as "no date range".
    """
    if props.get("checkin_date"):
        return props.get("checkin_date"), props.get("checkout_date")
    flights = props.get("flights")
    if isinstance(flights, (list, tuple)) and len(flights) >= 2:
        return _leg_departure(flights, 0), _leg_departure(flights, 1)
    if props.get("departure_date"):
        departure = props.get("departure_date")
        return departure, departure
    if props.get("pickup_date"):
        return props.get("pickup_date"), props.get("dropoff_date")
    return None


def date_range_event(props: Mapping[str, Any]) -> Optional[dict[str, str]]:
    """Build the `{event: "vs", din, dout}` sub-event, or None if not applicable."""
    selected = extract_date_range(props)
    if selected is None:
        return None
    date_in, date_out = (format_date(v) for v in selected)
    if not (date_in and date_out):
        return None
    return {"event": "vs", "din": date_in, "dout": date_out}
