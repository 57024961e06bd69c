"""Durable storage backends for the date-state store.

A backend loads and saves the raw JSON-shaped payload; it knows nothing
about eligibility or toggling. Every failure is raised as
StorageUnavailable so callers only have one thing to catch.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from greenday.errors import StorageUnavailable
from greenday.fileio import read_json, write_json_atomic
from greenday.workspace import state_path, workspace_root


class Storage(Protocol):
    def load(self) -> dict[str, Any]: ...

    def save(self, data: dict[str, Any]) -> None: ...


class JsonFileStorage:
    """State kept in tracker/state.json, written atomically."""

    def __init__(self, path: Path | None = None, root: Path | None = None) -> None:
        if path is None:
            path = state_path(root if root is not None else workspace_root())
        self.path = path

    def load(self) -> dict[str, Any]:
        try:
            return read_json(self.path)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError too.
            raise StorageUnavailable(f"Cannot read state: {e}", self.path) from e

    def save(self, data: dict[str, Any]) -> None:
        try:
            write_json_atomic(self.path, data)
        except (OSError, TypeError) as e:
            raise StorageUnavailable(f"Cannot write state: {e}", self.path) from e

    def __repr__(self) -> str:
        return f"JsonFileStorage({str(self.path)!r})"


class MemoryStorage:
    """Process-local storage for throwaway sessions."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = json.loads(json.dumps(data)) if data else {}

    def load(self) -> dict[str, Any]:
        return json.loads(json.dumps(self._data))

    def save(self, data: dict[str, Any]) -> None:
        self._data = json.loads(json.dumps(data))

    @property
    def data(self) -> dict[str, Any]:
        return json.loads(json.dumps(self._data))
