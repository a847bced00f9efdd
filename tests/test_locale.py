from __future__ import annotations

import pytest

from criteo_shipper.locale import DEFAULT_REGION, region_for_country, resolve_region
from criteo_shipper.mapper import map_event
from criteo_shipper.models.segment import NormalizedEvent


@pytest.mark.parametrize(
    "country, region",
    [("US", "us"), ("br", "us"), ("JP", "as"), ("au", "as"), ("DE", "eu"), ("FR", "eu")],
)
def test_country_table(country, region):
    assert region_for_country(country) == region


def test_unknown_or_missing_country_uses_default():
    assert region_for_country("ZZ") == DEFAULT_REGION
    assert region_for_country(None) == DEFAULT_REGION
    assert region_for_country("ZZ", default="us") == "us"


def test_overrides_win_over_table():
    assert region_for_country("gb", overrides={"GB": "us"}) == "us"
    assert region_for_country("US", overrides={"GB": "us"}) == "us"


def test_region_resolved_from_event_locale():
    evt = NormalizedEvent(
        type="track",
        event="Application Opened",
        context={
            "app": {"namespace": "com.acme"},
            "device": {"advertisingId": "ad"},
            "locale": "ja-JP",
        },
    )
    assert resolve_region(evt) == "as"
    # Same country the payload reports, but resolution never reads the payload.
    assert map_event(evt).to_wire()["account"]["cn"] == "jp"


def test_event_without_locale_routes_to_default():
    assert resolve_region(NormalizedEvent()) == DEFAULT_REGION
