"""Record list page: pagination, filters, localize and delete."""

import logging
from typing import Optional

from marches_dashboard.api.records import RecordFilters
from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import InvalidTransitionError
from marches_dashboard.models import Record
from marches_dashboard.sync.commands import CommandResult
from marches_dashboard.sync.stores import RecordListStore
from marches_dashboard.ui.navigation import ADD_RECORD, MAP, Navigator, edit_record_path, record_path
from marches_dashboard.ui.notifier import Notifier

logger = logging.getLogger(__name__)


COORDINATES_UNAVAILABLE = "Coordinates unavailable for this record"


class RecordListView:
    """Drives the record list on top of a RecordListStore."""

    def __init__(
        self,
        api,
        navigator: Navigator,
        notifier: Optional[Notifier] = None,
        settings: DashboardSettings = DEFAULT_SETTINGS,
    ):
        self.navigator = navigator
        self.notifier = notifier or Notifier(settings.banner_duration)
        self.store = RecordListStore(api, settings)
        self.pending_delete: Optional[Record] = None

    async def load(self) -> None:
        await self.store.fetch()

    async def search(self, **criteria) -> None:
        await self.store.search(RecordFilters(**criteria))

    def localize(self, record: Record) -> bool:
        """Open the map centred on a record."""
        if not record.has_coordinates:
            self.notifier.alert(COORDINATES_UNAVAILABLE)
            return False
        self.navigator.push(MAP, lat=record.latitude, lng=record.longitude)
        return True

    def open_record(self, record: Record) -> None:
        self.navigator.push(record_path(record.id))

    def edit_record(self, record: Record) -> None:
        self.navigator.push(edit_record_path(record.id))

    def add_record(self) -> None:
        self.navigator.push(ADD_RECORD)

    def request_delete(self, record: Record) -> None:
        """Ask for confirmation before deleting."""
        self.pending_delete = record

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> CommandResult:
        if self.pending_delete is None:
            raise InvalidTransitionError("No record deletion is awaiting confirmation")
        record, self.pending_delete = self.pending_delete, None
        logger.info(f"Deleting record {record.id} ({record.reference})")
        result = await self.store.delete(record)
        if result.ok:
            self.notifier.banner("Record deleted")
        else:
            self.notifier.alert(result.message)
        return result
