"""Per-event-type mappers producing Criteo payloads.

Every mapper is a pure function `NormalizedEvent -> CriteoPayload` composed
from three blocks:

    top_level_properties(event)   account / site_type / id / version
    alternate_identity(event)     optional hashed-email block
    events                        primary sub-event plus optional date range

Sub-event names:
    generic track          vs
    Application Opened     viewHome
    Product List Viewed    viewListing
    Product Viewed         viewProduct
    Cart Viewed            viewBasket
    Order Completed        trackTransaction

Cart Viewed reads each product's `productId` while Order Completed reads its
`id`.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.criteo import CriteoPayload, SubEvent, reject_empty
from ..models.segment import NormalizedEvent, Product
from .dates import date_range_event
from .identity import alternate_identity
from .top_level import top_level_properties

__all__ = [
    "EventMapper",
    "build_payload",
    "map_track",
    "map_application_opened",
    "map_product_list_viewed",
    "map_product_viewed",
    "map_cart_viewed",
    "map_order_completed",
    "TRACK_MAPPERS",
    "normalize_event_name",
    "mapper_for",
]

logger = logging.getLogger(__name__)

EventMapper = Callable[[NormalizedEvent], CriteoPayload]


def build_payload(event: NormalizedEvent, primary: SubEvent) -> CriteoPayload:
    """Merge shared blocks with the primary sub-event and optional extras.

    `events` collapses to the bare primary object when nothing else applies.
    """
    sub_events: List[SubEvent] = [reject_empty(primary)]
    dated = date_range_event(event.properties)
    if dated is not None:
        sub_events.append(dated)
    events: Any = sub_events[0] if len(sub_events) == 1 else sub_events
    return CriteoPayload(
        **top_level_properties(event),
        **alternate_identity(event),
        events=events,
    )


def _line_item(product: Product, product_id: Any) -> Dict[str, Any]:
    return reject_empty(
        {"id": product_id, "price": product.price, "quantity": product.quantity}
    )


def map_track(event: NormalizedEvent) -> CriteoPayload:
    primary: SubEvent = {"event": "vs", "ci": event.userId}
    # Non-empty event properties override the defaults on key clash.
    primary.update(reject_empty(event.properties))
    return build_payload(event, primary)


def map_application_opened(event: NormalizedEvent) -> CriteoPayload:
    return build_payload(event, {"event": "viewHome", "ci": event.userId})


def map_product_list_viewed(event: NormalizedEvent) -> CriteoPayload:
    product_ids = [
        p.productId if p.productId is not None else p.id for p in event.products()
    ]
    return build_payload(
        event,
        {
            "event": "viewListing",
            "ci": event.userId,
            "product": [pid for pid in product_ids if pid is not None],
        },
    )


def map_product_viewed(event: NormalizedEvent) -> CriteoPayload:
    product_id = event.properties.get("productId")
    if product_id is None:
        product_id = event.properties.get("id")
    return build_payload(
        event, {"event": "viewProduct", "ci": event.userId, "product": product_id}
    )


def map_cart_viewed(event: NormalizedEvent) -> CriteoPayload:
    return build_payload(
        event,
        {
            "event": "viewBasket",
            "ci": event.userId,
            "currency": event.currency(),
            "product": [_line_item(p, p.productId) for p in event.products()],
        },
    )


def map_order_completed(event: NormalizedEvent) -> CriteoPayload:
    return build_payload(
        event,
        {
            "event": "trackTransaction",
            "ci": event.userId,
            "currency": event.currency(),
            "product": [_line_item(p, p.id) for p in event.products()],
        },
    )


# Keys are lower-cased event names; v1 ecommerce spellings are accepted too.
TRACK_MAPPERS: Dict[str, EventMapper] = {
    "application opened": map_application_opened,
    "product list viewed": map_product_list_viewed,
    "viewed product category": map_product_list_viewed,
    "product viewed": map_product_viewed,
    "viewed product": map_product_viewed,
    "cart viewed": map_cart_viewed,
    "viewed cart": map_cart_viewed,
    "order completed": map_order_completed,
    "completed order": map_order_completed,
}


def normalize_event_name(name: Optional[str]) -> str:
    return " ".join((name or "").split()).lower()


def mapper_for(event: NormalizedEvent) -> EventMapper:
    """Select the mapper for a track event; unknown names use the generic one."""
    mapper = TRACK_MAPPERS.get(normalize_event_name(event.event), map_track)
    logger.debug("Selected mapper %s for event %r", mapper.__name__, event.event)
    return mapper
