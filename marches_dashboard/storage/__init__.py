"""Local storage: navigation handoff and login session."""

from marches_dashboard.storage.handoff import HandoffStore, SELECTED_COORDS, RECORD_FORM
from marches_dashboard.storage.session import SessionStore

__all__ = [
    "HandoffStore",
    "SELECTED_COORDS",
    "RECORD_FORM",
    "SessionStore",
]
