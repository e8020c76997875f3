"""Local persistence for a voting client (device id, last catalog, own votes).

A single JSON file stands in for browser local storage. Writes replace the
whole file atomically; the last writer wins. A missing or unreadable file is
treated as empty so a client can always start.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEVICE_KEY = "device.id"
ROWS_KEY = "formats.v1"
VOTES_KEY = "votes.v1"


class LocalStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable client cache %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def put(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def load_rows(self) -> list[dict[str, Any]] | None:
        """Last cached catalog, or None if nothing was cached yet."""
        rows = self.get(ROWS_KEY)
        return rows if isinstance(rows, list) else None

    def save_rows(self, rows: list[dict[str, Any]]) -> None:
        self.put(ROWS_KEY, rows)

    def load_voted(self, device_id: str) -> set[str]:
        by_device = self.get(VOTES_KEY) or {}
        if not isinstance(by_device, dict):
            return set()
        return set(by_device.get(device_id) or [])

    def save_voted(self, device_id: str, format_ids: set[str] | frozenset[str]) -> None:
        data = self._read()
        by_device = data.get(VOTES_KEY)
        if not isinstance(by_device, dict):
            by_device = {}
        by_device[device_id] = sorted(format_ids)
        data[VOTES_KEY] = by_device
        self._write(data)
