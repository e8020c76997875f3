"""HTTP client for the Format Poker API."""

import json
import logging
from collections.abc import Iterator
from typing import Any

import httpx

from format_poker.client.state import FormatRow, VoteCountEvent, VoteResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    # Streamed responses have no body loaded yet
    response.read()
    try:
        data = response.json()
    except ValueError:
        data = None
    detail = data.get("detail", response.text) if isinstance(data, dict) else response.text
    raise ApiError(response.status_code, str(detail))


def parse_sse_lines(lines: Iterator[str]) -> Iterator[VoteCountEvent]:
    """Turn raw SSE lines into vote events.

    Comment frames (``: ping``) are keep-alives and are skipped; frames whose
    data is not a ``{"id", "votes"}`` object are ignored.
    """
    data_lines: list[str] = []
    for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data_lines:
                payload = "\n".join(data_lines)
                data_lines = []
                try:
                    data = json.loads(payload)
                    yield VoteCountEvent(format_id=str(data["id"]), votes=int(data["votes"]))
                except (ValueError, KeyError, TypeError):
                    logger.debug("Skipping malformed live frame: %r", payload)
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if name == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)


class FormatPokerClient:
    """Thin synchronous wrapper over the REST and live endpoints."""

    def __init__(
        self,
        base_url: str,
        admin_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"X-Admin-Key": admin_key} if admin_key else {}
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FormatPokerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._client.request(method, path, **kwargs)
        _raise_for_status(response)
        return response.json()

    # ── Public ──────────────────────────────────────────────────────────────

    def list_formats(
        self,
        q: str | None = None,
        kind: str | None = None,
        status: str | None = None,
        sort: str | None = None,
    ) -> list[FormatRow]:
        params = {
            key: value
            for key, value in {"q": q, "kind": kind, "status": status, "sort": sort}.items()
            if value
        }
        rows = self._request("GET", "/api/formats", params=params)
        return [FormatRow.from_dict(row) for row in rows]

    def get_format(self, format_id: str) -> FormatRow:
        return FormatRow.from_dict(self._request("GET", f"/api/formats/{format_id}"))

    def toggle_vote(self, format_id: str, device_id: str, token: int | None = None) -> VoteResult:
        data = self._request(
            "POST", f"/api/formats/{format_id}/vote", json={"deviceId": device_id}
        )
        return VoteResult(
            format_id=format_id, voted=bool(data["voted"]), votes=int(data["votes"]), token=token
        )

    def votes_for_device(self, device_id: str) -> list[str]:
        return list(self._request("GET", f"/api/votes/{device_id}"))

    def submit_format(self, name: str, kind: str) -> FormatRow:
        data = self._request("POST", "/api/formats/submissions", json={"name": name, "kind": kind})
        return FormatRow.from_dict(data)

    def iter_live_events(self) -> Iterator[VoteCountEvent]:
        """Follow the live stream until the server closes it."""
        with self._client.stream("GET", "/api/live", timeout=None) as response:
            _raise_for_status(response)
            yield from parse_sse_lines(response.iter_lines())

    # ── Admin (needs admin_key) ─────────────────────────────────────────────

    def create_format(self, name: str, kind: str, status: str = "Requested") -> FormatRow:
        data = self._request(
            "POST", "/api/formats", json={"name": name, "kind": kind, "status": status}
        )
        return FormatRow.from_dict(data)

    def update_status(self, format_id: str, status: str) -> FormatRow:
        data = self._request("PUT", f"/api/formats/{format_id}/status", json={"status": status})
        return FormatRow.from_dict(data)

    def delete_format(self, format_id: str) -> None:
        self._request("DELETE", f"/api/formats/{format_id}")
