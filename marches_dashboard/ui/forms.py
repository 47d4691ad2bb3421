"""
Form validation and the add/edit record form controller.
"""

import logging
import re
from dataclasses import fields
from datetime import date
from typing import Callable, Optional

from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import DashboardError, ValidationError, user_message
from marches_dashboard.models import RecordDraft
from marches_dashboard.storage.handoff import HandoffStore, RECORD_FORM, SELECTED_COORDS
from marches_dashboard.sync.commands import Command, CommandResult
from marches_dashboard.sync.stores import RecordListStore
from marches_dashboard.ui.events import COORDS_SELECTED, EventBus
from marches_dashboard.ui.navigation import FROM_ADD_RECORD, MAP, RECORDS, Navigator
from marches_dashboard.ui.notifier import Notifier

logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
MIN_PASSWORD_LENGTH = 6

COORDS_SELECTED_MESSAGE = "Coordinates selected from the map"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_password(password: str, confirm: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", field="password"
        )
    if password != confirm:
        raise ValidationError("Passwords do not match", field="confirm_password")


def validate_registration(name: str, last_name: str, email: str, password: str, confirm: str) -> None:
    """Check the registration form in display order; the first problem wins."""
    if not last_name.strip():
        raise ValidationError("Last name is required", field="last_name")
    if not name.strip():
        raise ValidationError("First name is required", field="name")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email address", field="email")
    validate_password(password, confirm)


def validate_password_reset(password: str, confirm: str) -> None:
    validate_password(password, confirm)


def validate_record_draft(draft: RecordDraft) -> None:
    if not draft.reference.strip():
        raise ValidationError("Reference number is required", field="num_marche")
    if not draft.subject.strip():
        raise ValidationError("Subject is required", field="objet")
    if draft.year is None:
        raise ValidationError("Year is required", field="annee")
    if (draft.latitude is None) != (draft.longitude is None):
        raise ValidationError("Latitude and longitude go together", field="geom")


def draft_from_dict(data: dict, base: Optional[RecordDraft] = None) -> RecordDraft:
    """Overlay saved form values on a draft; unknown keys are ignored."""
    draft = base or RecordDraft()
    names = {f.name for f in fields(RecordDraft)}
    for key, value in data.items():
        if key in names:
            setattr(draft, key, value)
    return draft


# ---------------------------------------------------------------------------
# Record form
# ---------------------------------------------------------------------------

class RecordFormController:
    """
    State of the add or edit record page.

    "Choose on map" parks the form in the handoff store and opens the map in
    selection mode. When the page is shown again, restore() puts the form
    back and applies the picked coordinates; both are consumed once.
    """

    def __init__(
        self,
        api,
        handoff: HandoffStore,
        navigator: Navigator,
        events: Optional[EventBus] = None,
        notifier: Optional[Notifier] = None,
        record_id: Optional[int] = None,
        settings: DashboardSettings = DEFAULT_SETTINGS,
        records: Optional[RecordListStore] = None,
    ):
        self.api = api
        self.handoff = handoff
        self.navigator = navigator
        self.events = events or EventBus()
        self.notifier = notifier or Notifier(settings.banner_duration)
        self.record_id = record_id
        self.settings = settings
        # List reloaded after every save attempt
        self.records = records or RecordListStore(api, settings)
        self.draft = RecordDraft(year=date.today().year)
        self.error: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None

    async def load(self) -> bool:
        """Load the record being edited; the add form starts blank."""
        if not self.is_edit:
            return True
        try:
            record = await self.api.records.get(self.record_id)
        except DashboardError as e:
            logger.error(f"Loading record {self.record_id} failed: {e}")
            self.error = user_message(e, "Failed to load the record")
            return False
        self.draft = RecordDraft.from_record(record)
        return True

    def attach(self) -> None:
        """Start listening for coordinates picked while this form is shown."""
        if self._unsubscribe is None:
            self._unsubscribe = self.events.subscribe(COORDS_SELECTED, self._on_coords)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_coords(self, coords: dict) -> None:
        # The stored copy would be applied again by the next restore()
        self.handoff.clear(SELECTED_COORDS)
        self.apply_coordinates(coords)

    def apply_coordinates(self, coords: dict) -> None:
        self.draft.latitude = float(coords["latitude"])
        self.draft.longitude = float(coords["longitude"])
        self.notifier.banner(COORDS_SELECTED_MESSAGE, self.settings.banner_duration)

    def choose_on_map(self) -> None:
        """Park the form and open the map in selection mode."""
        self.handoff.put(RECORD_FORM, {"record_id": self.record_id, "draft": self.draft.to_dict()})
        self.navigator.push(MAP, **{"from": FROM_ADD_RECORD})

    def restore(self) -> bool:
        """
        Put back a parked form and the picked coordinates.

        Returns:
            True when coordinates were applied
        """
        saved = self.handoff.take(RECORD_FORM)
        if saved and saved.get("record_id") == self.record_id:
            self.draft = draft_from_dict(saved.get("draft") or {}, self.draft)
        elif saved:
            logger.debug("Ignoring a parked form of another record")

        coords = self.handoff.take(SELECTED_COORDS)
        if not coords:
            return False
        try:
            self.apply_coordinates(coords)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed selected coordinates: {e}")
            return False
        return True

    async def submit(self) -> CommandResult:
        """Validate and save; success returns to the record list."""
        try:
            validate_record_draft(self.draft)
        except ValidationError as e:
            self.error = str(e)
            return CommandResult(ok=False, error=e, message=str(e))

        if self.is_edit:
            execute = lambda: self.api.records.update(self.record_id, self.draft)
            failure = "Failed to update the record"
        else:
            execute = lambda: self.api.records.create(self.draft)
            failure = "Failed to add the record"

        def succeeded(_value):
            self.error = None
            if self.is_edit:
                self.notifier.alert("Record updated")
            self.detach()
            self.navigator.push(RECORDS)

        def failed(message: str):
            self.error = message
            self.notifier.alert(message)

        command = Command(
            label="update record" if self.is_edit else "create record",
            execute=execute,
            refetch=self.records.fetch,
            on_success=succeeded,
            on_failure=failed,
            failure_message=failure,
        )
        return await command.run()
