"""
Navigation handoff storage.

Carries small payloads across a navigation (the record form going to the
map and back, the coordinates picked there). Each entry is keyed by purpose,
consumed once, and expires if nobody reads it.
"""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

from marches_dashboard.utils.logging import get_logger

logger = get_logger()


# Purpose keys
SELECTED_COORDS = "selected_coords"
RECORD_FORM = "record_form"

# Seconds an unread entry stays valid
DEFAULT_MAX_AGE = 15 * 60


class HandoffStore:
    """JSON-file store for one-shot navigation payloads."""

    def __init__(self, state_dir: Path, max_age: float = DEFAULT_MAX_AGE):
        """
        Initialize handoff store.

        Args:
            state_dir: Directory for handoff files
            max_age: Seconds after which an unread entry is discarded
        """
        self.state_dir = Path(state_dir)
        self.max_age = max_age

    def _path(self, key: str) -> Path:
        return self.state_dir / f"handoff_{key}.json"

    def put(self, key: str, data: Dict[str, Any]) -> None:
        """Store a payload, replacing any unread one under the same key."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        entry = {
            "key": key,
            "saved_at": time.time(),
            "data": data,
        }
        self._write_json(self._path(key), entry)

    def peek(self, key: str) -> Optional[Dict[str, Any]]:
        """Read a payload without consuming it."""
        path = self._path(key)
        if not path.exists():
            return None

        try:
            entry = self._read_json(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read handoff '{key}': {e}")
            path.unlink(missing_ok=True)
            return None

        if time.time() - entry.get("saved_at", 0) > self.max_age:
            logger.debug(f"Handoff '{key}' expired")
            path.unlink(missing_ok=True)
            return None

        return entry.get("data")

    def take(self, key: str) -> Optional[Dict[str, Any]]:
        """Read and clear a payload; a second call returns None."""
        data = self.peek(key)
        self.clear(key)
        return data

    def clear(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _write_json(self, path: Path, data: Dict) -> None:
        """Write data to JSON file."""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def _read_json(self, path: Path) -> Dict:
        """Read a handoff entry; anything but {saved_at, data} is corrupt."""
        with open(path, 'r', encoding='utf-8') as f:
            entry = json.load(f)
        if not isinstance(entry, dict) or not isinstance(entry.get("saved_at", 0), (int, float)):
            raise ValueError(f"unexpected handoff entry in {path.name}")
        return entry
