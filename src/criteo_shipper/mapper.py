"""Public facade for normalized event to Criteo payload mapping.

This module provides the stable public API for converting normalized
analytics events into Criteo s2s payloads. The mapping logic lives in the
criteo_shipper.mapping package; this facade selects the right mapper for an
event and exposes identity mappings for event types Criteo does not consume.

Public Functions:
    map_event: Map a track event to a CriteoPayload via its subtype mapper
    map_track, map_application_opened, map_product_list_viewed,
    map_product_viewed, map_cart_viewed, map_order_completed: subtype mappers
    map_page, map_screen, map_identify, map_group, map_alias: pass-through
"""

from __future__ import annotations

from typing import Any, Dict

from .mapping.events import (
    TRACK_MAPPERS,
    map_application_opened,
    map_cart_viewed,
    map_order_completed,
    map_product_list_viewed,
    map_product_viewed,
    map_track,
    mapper_for,
)
from .models.criteo import CriteoPayload
from .models.segment import NormalizedEvent

__all__ = [
    "map_event",
    "map_track",
    "map_application_opened",
    "map_product_list_viewed",
    "map_product_viewed",
    "map_cart_viewed",
    "map_order_completed",
    "map_page",
    "map_screen",
    "map_identify",
    "map_group",
    "map_alias",
    "TRACK_MAPPERS",
]


def map_event(event: NormalizedEvent) -> CriteoPayload:
    """Convert a track event into a Criteo payload.

    The mapper is chosen by event name (Application Opened, Product Viewed,
    ...); any other track event goes through the generic `vs` mapping.

    Args:
        event: Validated track event. Callers are expected to run
            `validation.ensure_valid` first; mapping itself never raises for
            missing optional data.

    Returns:
        CriteoPayload ready for `to_wire()` serialization.

    Raises:
        ValueError: If called with a non-track event.
    """
    if event.type != "track":
        raise ValueError(f"Only track events map to Criteo payloads, got {event.type!r}")
    return mapper_for(event)(event)


def _passthrough(event: NormalizedEvent) -> Dict[str, Any]:
    return event.model_dump(mode="json", exclude_none=True)


# Criteo has no counterpart for these calls; the transport layer decides what
# to do with them (the bundled dispatcher skips them).
map_page = _passthrough
map_screen = _passthrough
map_identify = _passthrough
map_group = _passthrough
map_alias = _passthrough
