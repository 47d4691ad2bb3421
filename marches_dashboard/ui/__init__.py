"""View-state controllers driven by a front end."""

from marches_dashboard.ui.access import is_protected, resolve_route
from marches_dashboard.ui.browser import DocumentBrowser
from marches_dashboard.ui.dialogs import DialogCoordinator, DialogKind, DialogState
from marches_dashboard.ui.events import COORDS_SELECTED, EventBus
from marches_dashboard.ui.forms import (
    RecordFormController,
    validate_password_reset,
    validate_record_draft,
    validate_registration,
)
from marches_dashboard.ui.map import (
    GeometryDraw,
    Idle,
    MapController,
    SearchDraw,
    SelectionMode,
    TILE_LAYERS,
)
from marches_dashboard.ui.navigation import Location, Navigator
from marches_dashboard.ui.notifier import Banner, Notifier
from marches_dashboard.ui.records import RecordListView

__all__ = [
    "is_protected",
    "resolve_route",
    "DocumentBrowser",
    "DialogCoordinator",
    "DialogKind",
    "DialogState",
    "COORDS_SELECTED",
    "EventBus",
    "RecordFormController",
    "validate_password_reset",
    "validate_record_draft",
    "validate_registration",
    "GeometryDraw",
    "Idle",
    "MapController",
    "SearchDraw",
    "SelectionMode",
    "TILE_LAYERS",
    "Location",
    "Navigator",
    "Banner",
    "Notifier",
    "RecordListView",
]
