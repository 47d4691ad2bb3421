"""
Persisted login session.

Keeps the backend's session token between command-line invocations, scoped
to the API base it was issued by.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from marches_dashboard.utils.logging import get_logger

logger = get_logger()


class SessionStore:
    """Stores the auth token in state_dir/session.json."""

    def __init__(self, state_dir: Path, api_base: str):
        self.path = Path(state_dir) / "session.json"
        self.api_base = api_base.rstrip("/")

    def load_token(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read session file: {e}")
            return None
        if data.get("api_base") != self.api_base:
            return None
        return data.get("token")

    def save_token(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(
                {"api_base": self.api_base, "token": token, "saved_at": datetime.now().isoformat()},
                f,
                indent=2,
            )
        # The token grants full access to the account
        self.path.chmod(0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.load_token())
