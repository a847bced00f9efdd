from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from criteo_shipper import __main__ as cli
from criteo_shipper.config import Settings

runner = CliRunner()

VALID = {
    "type": "track",
    "event": "Product Viewed",
    "userId": "user-1",
    "properties": {"productId": "sku-1"},
    "context": {
        "app": {"namespace": "com.acme.app"},
        "os": {"name": "Android"},
        "device": {"advertisingId": "gaid-1"},
        "locale": "en-GB",
    },
}
INVALID = {"type": "track", "event": "Product Viewed", "context": {"locale": "en-GB"}}
PAGE = {"type": "page", "userId": "user-1"}


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(_env_file=None, DRY_RUN=True))


def test_map_prints_wire_payload(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps([VALID]), encoding="utf-8")
    result = runner.invoke(cli.app, ["map", str(path)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout.strip().splitlines()[0])
    assert payload["site_type"] == "aa"
    assert payload["id"] == {"gaid": "gaid-1"}
    assert payload["account"] == {"an": "com.acme.app", "cn": "gb", "ln": "en"}
    assert payload["events"] == {"event": "viewProduct", "ci": "user-1", "product": "sku-1"}


def test_map_exits_nonzero_on_invalid_event(tmp_path):
    path = tmp_path / "events.ndjson"
    path.write_text("\n".join(json.dumps(e) for e in (VALID, INVALID)) + "\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["map", str(path)])
    assert result.exit_code == 1


def test_send_dry_run_summary(tmp_path):
    path = tmp_path / "events.ndjson"
    path.write_text("\n".join(json.dumps(e) for e in (VALID, PAGE)), encoding="utf-8")
    result = runner.invoke(cli.app, ["send", str(path)])
    assert result.exit_code == 0, result.output
    assert "Processed 2 event(s)." in result.output
    assert "dry_run=1" in result.output
    assert "skipped=1" in result.output
    assert "dry_run=True" in result.output


def test_load_events_accepts_single_object(tmp_path):
    path = tmp_path / "one.json"
    path.write_text(json.dumps(VALID), encoding="utf-8")
    assert cli.load_events(path) == [VALID]
