"""
Route access control.

Protected pages need a session; login and registration pages are pointless
once logged in.
"""

from typing import Optional

from marches_dashboard.ui.navigation import DASHBOARD, LOGIN, REGISTER


ENTRY_ONLY_PAGES = (LOGIN, REGISTER)


def is_protected(path: str) -> bool:
    return path == DASHBOARD or path.startswith(DASHBOARD + "/")


def resolve_route(path: str, authenticated: bool) -> Optional[str]:
    """
    Decide where a request for `path` should go.

    Returns:
        The redirect target, or None when the page may be shown
    """
    if is_protected(path) and not authenticated:
        return LOGIN
    if path in ENTRY_ONLY_PAGES and authenticated:
        return DASHBOARD
    return None
