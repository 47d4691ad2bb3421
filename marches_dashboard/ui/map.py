"""
Map state controller.

Owns the viewport, the record markers, the selected record and its
geometries, and the drawing modes. The current mode is a single value of the
MapMode union, so two drawing modes can never be active together.

    idle -> search-draw      polygon search, one polygon at a time
    idle -> geometry-draw    shape attached to the selected record
    idle -> selection-mode   clicks feed the record form, then navigate back
    any  -> idle             cancel, or completion of a shape
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import DashboardError, InvalidTransitionError, NetworkUnreachableError, user_message
from marches_dashboard.geo import (
    Cluster,
    build_polygon,
    cluster_markers,
    polygon_from_geojson,
    records_in_polygon,
)
from marches_dashboard.models import Geometry, GEOMETRY_TYPES, Record
from marches_dashboard.storage.handoff import HandoffStore, SELECTED_COORDS
from marches_dashboard.ui.events import COORDS_SELECTED, EventBus
from marches_dashboard.ui.navigation import FROM_ADD_RECORD, Navigator
from marches_dashboard.ui.notifier import Notifier

logger = logging.getLogger(__name__)


TILE_LAYERS = {
    "street": {
        "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "attribution": "© OpenStreetMap contributors",
    },
    "satellite": {
        "url": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        "attribution": "Tiles © Esri & Contributors",
    },
    "dark": {
        "url": "https://tiles.stadiamaps.com/tiles/alidade_smooth_dark/{z}/{x}/{y}{r}.png",
        "attribution": "© Stadia Maps",
    },
}

SELECT_RECORD_FIRST = "Select a record on the map first"
GEOMETRY_SAVED = "Geometry saved"
GEOMETRY_SAVE_FAILED = "Failed to save the geometry"


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class SearchDraw:
    name: ClassVar[str] = "search-draw"


@dataclass(frozen=True)
class GeometryDraw:
    record: Record
    name: ClassVar[str] = "geometry-draw"


@dataclass(frozen=True)
class SelectionMode:
    origin: str = FROM_ADD_RECORD
    name: ClassVar[str] = "selection-mode"


MapMode = Union[Idle, SearchDraw, GeometryDraw, SelectionMode]

IDLE = Idle()


@dataclass
class Viewport:
    center: Tuple[float, float]
    zoom: int
    # (min_lng, min_lat, max_lng, max_lat) when fitted to a shape
    bounds: Optional[Tuple[float, float, float, float]] = None


class MapController:
    """State of the map page."""

    def __init__(
        self,
        api,
        handoff: HandoffStore,
        navigator: Navigator,
        events: Optional[EventBus] = None,
        notifier: Optional[Notifier] = None,
        settings: DashboardSettings = DEFAULT_SETTINGS,
    ):
        self.api = api
        self.handoff = handoff
        self.navigator = navigator
        self.events = events or EventBus()
        self.notifier = notifier or Notifier(settings.banner_duration)
        self.settings = settings

        self.mode: MapMode = IDLE
        self.viewport = Viewport(settings.default_center, settings.default_zoom)
        self.style = "street"
        self.records: List[Record] = []
        self.backend_error: Optional[str] = None

        self.selected_record: Optional[Record] = None
        self.details_open = False
        self.geometries: List[Geometry] = []
        self.search_open = False

        self.polygon = None
        self.polygon_results: List[Record] = []
        self.results_open = False
        self.results_filter = ""
        self.filtered_by_polygon = False

        self._pending_exit: Optional[asyncio.TimerHandle] = None

    @classmethod
    def from_navigation(cls, params: Dict[str, str], *args, **kwargs) -> "MapController":
        """
        Build the controller for a map page opened with `params`.

        `lat`/`lng` centre the view on a record; `from=add-record` enters
        selection mode.
        """
        controller = cls(*args, **kwargs)
        if params.get("lat") and params.get("lng"):
            controller.fly_to(float(params["lat"]), float(params["lng"]))
        if params.get("from") == FROM_ADD_RECORD:
            controller.enter_selection_mode(FROM_ADD_RECORD)
        return controller

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def load_records(self) -> None:
        """Fetch every record for the markers; failures leave the map empty."""
        try:
            page = await self.api.records.list(page=1, limit=self.settings.stats_limit)
        except DashboardError as e:
            logger.error(f"Loading map records failed: {e}")
            if isinstance(e, NetworkUnreachableError):
                self.backend_error = str(e)
            else:
                self.backend_error = f"Connection error: {user_message(e, str(e))}"
            self.set_records([])
            return
        self.backend_error = None
        self.set_records(page.items)

    def set_records(self, records) -> None:
        self.records = list(records) if isinstance(records, (list, tuple)) else []

    def visible_markers(self) -> List[Record]:
        """Located records on the map, narrowed to the polygon results when shown."""
        source = self.polygon_results if self.filtered_by_polygon else self.records
        return [r for r in source if r.has_coordinates]

    def clusters(self) -> List[Cluster]:
        return cluster_markers(
            self.visible_markers(),
            self.viewport.zoom,
            self.settings.max_cluster_radius,
            self.settings.cluster_small_below,
            self.settings.cluster_large_above,
        )

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def fly_to(self, latitude: float, longitude: float, zoom: Optional[int] = None) -> None:
        self.viewport = Viewport((latitude, longitude), zoom or self.settings.fly_to_zoom)

    def set_style(self, style: str) -> None:
        if style not in TILE_LAYERS:
            raise ValueError(f"Unknown map style '{style}'; expected one of {sorted(TILE_LAYERS)}")
        self.style = style

    @property
    def tile_layer(self) -> dict:
        return TILE_LAYERS[self.style]

    # ------------------------------------------------------------------
    # Selection of a record
    # ------------------------------------------------------------------

    async def select_record(self, record: Record) -> None:
        """Select a marker: open its details, centre on it, load its geometries."""
        self.selected_record = record
        self.details_open = True
        if record.has_coordinates:
            self.fly_to(record.latitude, record.longitude)
        await self.load_geometries(record.id)

    async def load_geometries(self, record_id: int) -> None:
        try:
            self.geometries = await self.api.geometries.for_record(record_id)
        except DashboardError as e:
            logger.error(f"Loading geometries of record {record_id} failed: {e}")

    # ------------------------------------------------------------------
    # Mode transitions
    # ------------------------------------------------------------------

    def _require_idle(self, target: str) -> None:
        if not isinstance(self.mode, Idle):
            raise InvalidTransitionError(f"Cannot enter {target} while in {self.mode.name}")

    def _set_mode(self, mode: MapMode) -> None:
        if mode != self.mode:
            logger.debug(f"Map mode {self.mode.name} -> {mode.name}")
        self.mode = mode

    def cancel(self) -> None:
        """Leave any mode and return to idle."""
        if self._pending_exit is not None:
            self._pending_exit.cancel()
            self._pending_exit = None
        self._set_mode(IDLE)

    def start_search_draw(self) -> None:
        self._require_idle(SearchDraw.name)
        self.search_open = False
        self._set_mode(SearchDraw())

    def complete_polygon(self, shape: Union[dict, Sequence[Tuple[float, float]]]) -> List[Record]:
        """
        Finish the search polygon and list the records inside it.

        Args:
            shape: GeoJSON polygon (or feature), or vertices as (lat, lng)

        Returns:
            Records inside the polygon, boundary included
        """
        if not isinstance(self.mode, SearchDraw):
            raise InvalidTransitionError(f"No search polygon is being drawn (mode: {self.mode.name})")

        try:
            polygon = polygon_from_geojson(shape) if isinstance(shape, dict) else build_polygon(shape)
        except ValueError:
            self._set_mode(IDLE)
            raise

        self.polygon = polygon
        self.polygon_results = records_in_polygon(self.records, polygon)
        self.results_filter = ""
        self.results_open = True
        self._set_mode(IDLE)
        logger.info(f"Polygon search matched {len(self.polygon_results)} record(s)")
        return self.polygon_results

    def start_geometry_draw(self) -> bool:
        """
        Start drawing a shape for the selected record.

        Returns:
            False (with an alert) when no record is selected
        """
        if self.selected_record is None:
            self.notifier.alert(SELECT_RECORD_FIRST)
            return False
        self._require_idle(GeometryDraw.name)
        self.search_open = False
        self.details_open = False  # The record stays selected
        self._set_mode(GeometryDraw(self.selected_record))
        return True

    async def complete_geometry(self, geojson: dict) -> Optional[Geometry]:
        """
        Save a finished line or polygon for the record being drawn on.

        The mode returns to idle whether the save succeeds or not.
        """
        if not isinstance(self.mode, GeometryDraw):
            self.notifier.alert(SELECT_RECORD_FIRST)
            return None

        record = self.mode.record
        geometry = geojson.get("geometry", geojson)
        if geometry.get("type") not in GEOMETRY_TYPES:
            self._set_mode(IDLE)
            self.notifier.alert(f"Unsupported geometry type: {geometry.get('type')}")
            return None

        try:
            saved = await self.api.geometries.create(record.id, geometry)
        except DashboardError as e:
            logger.error(f"Saving geometry for record {record.id} failed: {e}")
            self.notifier.alert(user_message(e, GEOMETRY_SAVE_FAILED))
            return None
        finally:
            self._set_mode(IDLE)

        self.geometries.append(saved)
        self.notifier.alert(GEOMETRY_SAVED)
        return saved

    def enter_selection_mode(self, origin: str = FROM_ADD_RECORD) -> None:
        self._require_idle(SelectionMode.name)
        self._set_mode(SelectionMode(origin))

    def click(self, latitude: float, longitude: float) -> bool:
        """
        Handle a click on the map background.

        In selection mode the coordinates are handed to the waiting form
        (stored and announced) and the page navigates back after a short
        delay. Other modes ignore clicks.

        Returns:
            True when the click was consumed
        """
        if not isinstance(self.mode, SelectionMode):
            return False

        coords = {"latitude": latitude, "longitude": longitude, "timestamp": int(time.time() * 1000)}
        self.handoff.put(SELECTED_COORDS, coords)
        self.events.publish(COORDS_SELECTED, coords)
        logger.info(f"Selected coordinates {latitude}, {longitude}")

        if self._pending_exit is not None:
            self._pending_exit.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._leave_selection()
            return True
        self._pending_exit = loop.call_later(self.settings.navigation_delay, self._leave_selection)
        return True

    def _leave_selection(self) -> None:
        self._pending_exit = None
        self._set_mode(IDLE)
        self.navigator.back()

    # ------------------------------------------------------------------
    # Polygon results
    # ------------------------------------------------------------------

    @property
    def filtered_results(self) -> List[Record]:
        """Polygon results narrowed by the results list's text filter."""
        if not self.results_filter:
            return self.polygon_results
        term = self.results_filter.lower()
        return [
            r for r in self.polygon_results
            if term in r.reference.lower()
            or term in r.subject.lower()
            or term in r.organization.lower()
        ]

    def set_results_filter(self, text: str) -> None:
        self.results_filter = text

    def show_results_on_map(self) -> None:
        """Fit the view to the polygon and show only its records."""
        if self.polygon is None:
            return
        min_lng, min_lat, max_lng, max_lat = self.polygon.bounds
        center = ((min_lat + max_lat) / 2, (min_lng + max_lng) / 2)
        self.viewport = Viewport(center, self.viewport.zoom, bounds=self.polygon.bounds)
        self.filtered_by_polygon = True
        self.results_open = False

    async def view_on_map(self, record: Record) -> None:
        """Jump from the results list to one record."""
        if not record.has_coordinates:
            return
        self.results_open = False
        self.filtered_by_polygon = False
        await self.select_record(record)

    def close_results(self) -> None:
        self.results_open = False
        self.filtered_by_polygon = False
