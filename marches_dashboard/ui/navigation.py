"""
Application navigation state.

Pages are identified by a path plus explicit parameters; moving between them
goes through a Navigator that keeps the history.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlencode


# Page paths
DASHBOARD = "/dashboard"
RECORDS = "/dashboard/marches"
ADD_RECORD = "/dashboard/marches/ajouter"
MAP = "/dashboard/map"
LOGIN = "/login"
REGISTER = "/register"

# Value of the `from` parameter that opens the map in selection mode
FROM_ADD_RECORD = "add-record"


def record_path(record_id: int) -> str:
    return f"{RECORDS}/{record_id}"


def edit_record_path(record_id: int) -> str:
    return f"{RECORDS}/{record_id}/modifier"


@dataclass
class Location:
    """A page and the parameters it was opened with."""

    path: str
    params: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.params:
            return self.path
        return f"{self.path}?{urlencode(self.params)}"


class Navigator:
    """History stack of visited locations."""

    def __init__(self, start: Optional[Location] = None):
        self.history: List[Location] = [start or Location(DASHBOARD)]

    @property
    def current(self) -> Location:
        return self.history[-1]

    def push(self, path: str, **params) -> Location:
        location = Location(path, {k: str(v) for k, v in params.items()})
        self.history.append(location)
        return location

    def replace(self, path: str, **params) -> Location:
        self.history[-1] = Location(path, {k: str(v) for k, v in params.items()})
        return self.history[-1]

    def back(self) -> Location:
        """Return to the previous page; the first page is never popped."""
        if len(self.history) > 1:
            self.history.pop()
        return self.current
