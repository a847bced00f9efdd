from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone

import pytest

from criteo_shipper.mapper import (
    map_application_opened,
    map_cart_viewed,
    map_event,
    map_order_completed,
    map_page,
    map_product_list_viewed,
    map_product_viewed,
    map_track,
)
from criteo_shipper.models.segment import NormalizedEvent


def _event(event="Character Upgraded", properties=None, user_id="user-1", **context):
    ctx = {
        "app": {"namespace": "com.Segment.testApp", "version": 1.0},
        "os": {"name": "iOS"},
        "device": {"type": "ios", "advertisingId": "123456", "adTrackingEnabled": 1},
        "locale": "en-US",
    }
    ctx.update(context)
    return NormalizedEvent(
        type="track",
        event=event,
        userId=user_id,
        properties=properties or {},
        context=ctx,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_basic_track_payload():
    wire = map_track(_event(properties={"level": 3})).to_wire()
    assert wire == {
        "account": {"an": "com.Segment.testApp", "cn": "us", "ln": "en"},
        "site_type": "aios",
        "id": {"idfa": "123456"},
        "version": "s2s_v1.0.0",
        "events": {"event": "vs", "ci": "user-1", "level": 3},
    }
    assert list(wire.keys()) == ["account", "site_type", "id", "version", "events"]


def test_android_uses_gaid_and_aa_site_type():
    wire = map_track(_event(os={"name": "Android"})).to_wire()
    assert wire["site_type"] == "aa"
    assert wire["id"] == {"gaid": "123456"}


def test_namespace_postfix_appended():
    wire = map_track(_event(Criteo={"namePostfix": "staging"})).to_wire()
    assert wire["account"]["an"] == "com.Segment.testApp.staging"


def test_hotel_dates_add_date_range_event():
    props = {"checkin_date": "2024-06-01", "checkout_date": "2024-06-05"}
    wire = map_track(_event(properties=props)).to_wire()
    events = wire["events"]
    assert isinstance(events, list)
    assert events[0] == {
        "event": "vs",
        "ci": "user-1",
        "checkin_date": "2024-06-01",
        "checkout_date": "2024-06-05",
    }
    assert {"event": "vs", "din": "2024-06-01", "dout": "2024-06-05"} in events
    assert len(events) == 2


def test_email_produces_single_alternate_id():
    email = "test@example.com"
    evt = _event(event="Application Opened", traits={"email": email})
    wire = map_application_opened(evt).to_wire()
    assert wire["alternate_ids"] == [
        {
            "type": "email",
            "value": hashlib.md5(email.encode()).hexdigest(),
            "hash_method": "md5",
        }
    ]
    # Hashed identity lives only in alternate_ids; events stays singular.
    assert wire["events"] == {"event": "viewHome", "ci": "user-1"}
    assert "setHashedEmail" not in json.dumps(wire)
    assert list(wire.keys()) == [
        "account",
        "site_type",
        "id",
        "version",
        "alternate_ids",
        "events",
    ]


def test_no_email_means_no_alternate_ids_key():
    wire = map_application_opened(_event(event="Application Opened")).to_wire()
    assert "alternate_ids" not in wire


def test_cart_viewed_products_use_product_id():
    props = {"products": [{"productId": "p1", "price": 9.99, "quantity": 2}]}
    wire = map_cart_viewed(_event(event="Cart Viewed", properties=props)).to_wire()
    assert wire["events"] == {
        "event": "viewBasket",
        "ci": "user-1",
        "currency": "USD",
        "product": [{"id": "p1", "price": 9.99, "quantity": 2}],
    }


def test_cart_viewed_strips_missing_product_fields_and_keeps_currency():
    props = {"currency": "EUR", "products": [{"productId": "p1"}, {"productId": "p2", "quantity": 1}]}
    events = map_cart_viewed(_event(event="Cart Viewed", properties=props)).to_wire()["events"]
    assert events["currency"] == "EUR"
    assert events["product"] == [{"id": "p1"}, {"id": "p2", "quantity": 1}]


def test_order_completed_products_use_id_not_product_id():
    props = {
        "currency": "GBP",
        "products": [
            {"id": "o1", "productId": "ignored", "price": 5, "quantity": 1},
            {"id": "o2"},
        ],
    }
    events = map_order_completed(_event(event="Order Completed", properties=props)).to_wire()["events"]
    assert events["event"] == "trackTransaction"
    assert events["currency"] == "GBP"
    assert events["product"] == [{"id": "o1", "price": 5.0, "quantity": 1}, {"id": "o2"}]


def test_product_list_viewed_keeps_order_and_prefers_product_id():
    props = {"products": [{"productId": "a"}, {"id": "b"}, {"productId": "c", "id": "x"}, "junk"]}
    events = map_product_list_viewed(_event(event="Product List Viewed", properties=props)).to_wire()["events"]
    assert events == {"event": "viewListing", "ci": "user-1", "product": ["a", "b", "c"]}


@pytest.mark.parametrize(
    "props, expected",
    [({"productId": "p9", "id": "other"}, "p9"), ({"id": "p10"}, "p10")],
)
def test_product_viewed_id_precedence(props, expected):
    events = map_product_viewed(_event(event="Product Viewed", properties=props)).to_wire()["events"]
    assert events == {"event": "viewProduct", "ci": "user-1", "product": expected}


def test_missing_user_id_drops_ci():
    events = map_application_opened(_event(event="Application Opened", user_id=None)).to_wire()["events"]
    assert events == {"event": "viewHome"}


@pytest.mark.parametrize(
    "name, sub_event",
    [
        ("Application Opened", "viewHome"),
        ("Product Viewed", "viewProduct"),
        ("viewed product", "viewProduct"),
        ("Product List Viewed", "viewListing"),
        ("Cart Viewed", "viewBasket"),
        ("Order  Completed", "trackTransaction"),
        ("Character Upgraded", "vs"),
    ],
)
def test_map_event_selects_mapper_by_name(name, sub_event):
    wire = map_event(_event(event=name)).to_wire()
    assert wire["events"]["event"] == sub_event


def test_date_event_applies_to_ecommerce_subtypes_too():
    props = {"departure_date": "2024-07-14", "productId": "flight-1"}
    events = map_event(_event(event="Product Viewed", properties=props)).to_wire()["events"]
    assert events[0]["event"] == "viewProduct"
    assert events[1] == {"event": "vs", "din": "2024-07-14", "dout": "2024-07-14"}


def test_mapping_is_deterministic():
    evt = _event(
        properties={"checkin_date": "2024-06-01", "checkout_date": "2024-06-05", "email": "a@b.co"},
    )
    first = json.dumps(map_event(evt).to_wire())
    second = json.dumps(map_event(evt).to_wire())
    assert first == second


def test_non_track_events_pass_through():
    page = NormalizedEvent(type="page", userId="u", properties={"path": "/"})
    assert map_page(page)["type"] == "page"
    assert map_page(page)["properties"] == {"path": "/"}
    with pytest.raises(ValueError):
        map_event(page)


def test_generic_track_ignores_empty_property_overrides():
    evt = _event(properties={"event": None, "ci": "", "level": 3}, user_id=None)
    events = map_track(evt).to_wire()["events"]
    assert events == {"event": "vs", "level": 3}


def test_missing_namespace_omits_account_name():
    wire = map_event(_event(app={})).to_wire()
    assert wire["account"] == {"cn": "us", "ln": "en"}


def test_cart_viewed_keeps_price_when_quantity_is_invalid():
    props = {"products": [{"productId": "p1", "price": 9.99, "quantity": 1.5}]}
    events = map_cart_viewed(_event(event="Cart Viewed", properties=props)).to_wire()["events"]
    assert events["product"] == [{"id": "p1", "price": 9.99}]
