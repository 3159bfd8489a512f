from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


def load_feed(path: Path) -> List[Dict[str, Any]]:
    """Read a feed export (historical series or live items) from a JSON file."""
    if not path.exists():
        raise typer.BadParameter(f"File {path} does not exist.")
    if not path.is_file():
        raise typer.BadParameter(f"Path {path} is not a file.")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"File {path} is not valid JSON: {exc.msg}.") from exc
    if not isinstance(payload, list):
        raise typer.BadParameter(f"File {path} must contain a JSON array.")
    return payload


class ApiClient:
    """Minimal HTTP client for the aggregator service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def building(self, feed: List[Dict[str, Any]], historical: bool = False) -> Dict[str, Any]:
        source = "historical" if historical else "live"
        return self._post(f"/{source}/building", feed)

    def floors(self, feed: List[Dict[str, Any]], historical: bool = False) -> Dict[str, Any]:
        source = "historical" if historical else "live"
        return self._post(f"/{source}/floors", feed)

    def peaks(
        self,
        historical: List[Dict[str, Any]],
        live: List[Dict[str, Any]],
        floor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {"floor_id": floor_id} if floor_id else None
        return self._post("/peaks", {"historical": historical, "live": live}, params=params)

    def trend(
        self,
        feed: List[Dict[str, Any]],
        floor_id: Optional[str] = None,
        zone: Optional[str] = None,
        daily: bool = False,
    ) -> List[Dict[str, Any]]:
        params = {key: value for key, value in (("floor_id", floor_id), ("zone", zone)) if value}
        path = "/historical/trend/daily" if daily else "/historical/trend"
        return self._post(path, feed, params=params or None)

    def hourly(
        self,
        feed: List[Dict[str, Any]],
        floor_id: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {key: value for key, value in (("floor_id", floor_id), ("zone", zone)) if value}
        return self._post("/historical/hourly", feed, params=params or None)

    def _post(self, path: str, payload: Any, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = self._client.post(path, json=payload, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            detail = exc.response.json().get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
