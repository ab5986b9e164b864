"""Durable storage for the captured cookie set (the session blob)."""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CookieBlob = list[dict[str, Any]]


class SessionStore:
    """Persists an opaque cookie list to a JSON file and reads it back verbatim.

    The blob is never inspected: whatever ``BrowserContext.cookies()`` returned
    is written, and ``load()`` returns an equal list.
    """

    def __init__(self, path: str | Path, *, log: logging.Logger | None = None) -> None:
        self._path = Path(path)
        self._log = log or logger

    @property
    def path(self) -> Path:
        return self._path

    def save(self, blob: CookieBlob) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(blob, indent=2), encoding="utf-8")
        self._log.info("Session saved (%d cookies) to %s", len(blob), self._path)

    def load(self) -> CookieBlob | None:
        """Return the saved blob, or None when missing or unreadable."""
        if not self._path.exists():
            self._log.debug("Session file not found: %s", self._path)
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            self._log.warning("Failed to load session from %s: %s", self._path, e)
            return None
        if not isinstance(data, list):
            self._log.warning("Session file is not a JSON array: %s", self._path)
            return None
        return data

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
