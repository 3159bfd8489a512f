from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
import typer
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import CLIConfig, load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.calls: List[tuple] = []
        self.closed = False

    def building(self, feed, historical: bool = False) -> Dict[str, Any]:
        self.calls.append(("building", len(feed), historical))
        return {
            "key": "building",
            "total_occupancy": 50.0,
            "peak_occupancy": 30.0,
            "avg_occupancy_percentage": 50.0,
            "sample_count": 2,
            "max_capacity": 100.0,
            "available_capacity": 50.0,
            "total_max_capacity": 100.0,
            "entrance_count": 100.0,
            "floor_breakdown": {
                "MF": {"total_occupancy": 20.0, "avg_occupancy_percentage": 40.0},
                "2F": {"total_occupancy": 30.0, "avg_occupancy_percentage": 60.0},
            },
        }

    def floors(self, feed, historical: bool = False) -> Dict[str, Any]:
        self.calls.append(("floors", len(feed), historical))
        return {"1F": {"total_occupancy": 50.0, "avg_occupancy_percentage": 0.0}}

    def peaks(self, historical, live, floor_id: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("peaks", len(historical), len(live), floor_id))
        return {
            "building": {"value": 80.0, "is_live": False, "max_capacity": 200.0, "local_hour_label": "10 AM"},
            "floors": {"2F": {"value": 45.0, "is_live": True, "max_capacity": 50.0}},
            "zones": {},
        }

    def trend(self, feed, floor_id=None, zone=None, daily: bool = False) -> List[Dict[str, Any]]:
        self.calls.append(("trend", floor_id, zone, daily))
        return [
            {"timestamp": "2025-04-30", "average_occupancy_percentage": 12.5, "peak_occupancy": 9.0},
        ]

    def hourly(self, feed, floor_id=None, zone=None) -> Dict[str, Any]:
        self.calls.append(("hourly", floor_id, zone))
        totals: List[Optional[float]] = [None] * 24
        totals[4] = -0.5
        totals[10] = 2.5
        totals[13] = 3.75
        return {"utc_offset_hours": 8, "totals": totals}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def _write_feed(tmp_path: Path, name: str = "feed.json", items: int = 2) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps([{"floor_id": "2F"}] * items))
    return path


def test_building_command(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    feed = _write_feed(tmp_path)

    result = runner.invoke(app, ["building", str(feed)])

    assert result.exit_code == 0
    assert "Building Occupancy" in result.stdout
    assert "entrance_count: 100.0" in result.stdout
    assert "- MF: 20.0 people, 40.0%" in result.stdout
    assert stub.calls == [("building", 2, False)]
    assert stub.closed is True


def test_floors_command_historical(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    feed = _write_feed(tmp_path, items=3)

    result = runner.invoke(app, ["--base-url", "http://api:9000/", "floors", str(feed), "--historical"])

    assert result.exit_code == 0
    assert "Floor Occupancy" in result.stdout
    assert stub.calls == [("floors", 3, True)]
    assert stub.config.base_url == "http://api:9000"


def test_peaks_command(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    historical = _write_feed(tmp_path, "historical.json", items=4)
    live = _write_feed(tmp_path, "live.json", items=1)

    result = runner.invoke(app, ["peaks", str(historical), str(live), "--floor", "2F"])

    assert result.exit_code == 0
    assert "building: 80.0 / 200.0 (10 AM)" in result.stdout
    assert "2F: 45.0 / 50.0 (live)" in result.stdout
    assert stub.calls == [("peaks", 4, 1, "2F")]


def test_trend_command(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    feed = _write_feed(tmp_path)

    result = runner.invoke(app, ["trend", str(feed), "--zone", "South-zone", "--daily"])

    assert result.exit_code == 0
    assert "2025-04-30  avg 12.5%  peak 9.0" in result.stdout
    assert stub.calls == [("trend", None, "South-zone", True)]


def test_feed_must_be_json_array(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    feed = tmp_path / "feed.json"
    feed.write_text(json.dumps({"floor_id": "2F"}))

    result = runner.invoke(app, ["building", str(feed)])

    assert result.exit_code != 0
    assert stub.calls == []


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example:8080/")
    monkeypatch.setenv("CLI_TIMEOUT", "nope")

    config = load_config()

    assert config == CLIConfig(base_url="http://example:8080", timeout=30.0)


def _client_with(handler) -> ApiClient:
    client = ApiClient(CLIConfig(base_url="http://testserver"))
    client._client = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))
    return client


def test_api_client_posts_trend_query() -> None:
    seen: Dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[])

    client = _client_with(handler)
    try:
        assert client.trend([{"floor_id": "2F"}], floor_id="2F", daily=True) == []
    finally:
        client.close()

    assert seen == {
        "path": "/historical/trend/daily",
        "params": {"floor_id": "2F"},
        "body": [{"floor_id": "2F"}],
    }


def test_api_client_exits_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"detail": "bad feed"})

    client = _client_with(handler)
    try:
        with pytest.raises(typer.Exit):
            client.building([])
    finally:
        client.close()


def test_hourly_command_rounds_halves_up_for_display(stub: StubClient, runner: CliRunner, tmp_path) -> None:
    feed = _write_feed(tmp_path)

    result = runner.invoke(app, ["hourly", str(feed), "--floor", "2F"])

    assert result.exit_code == 0
    assert "Hourly Occupancy (UTC+8)" in result.stdout
    assert "   4 AM  0" in result.stdout
    assert "  10 AM  3" in result.stdout
    assert "   1 PM  4" in result.stdout
    assert "11 AM" not in result.stdout
    assert stub.calls == [("hourly", "2F", None)]
