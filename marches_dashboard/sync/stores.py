"""
Client-side views of remote collections.

Each store owns the latest data of one collection, re-fetches it in full
after every mutation, and turns failures into an empty dataset plus a
message instead of raising.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from marches_dashboard.api.records import RecordFilters
from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import DashboardError, user_message
from marches_dashboard.models import DocumentNode, Piece, Record, TreeNode
from marches_dashboard.sync.commands import Command, CommandResult
from marches_dashboard.sync.sequencing import RequestSequencer
from marches_dashboard.tree import DocumentForest

logger = logging.getLogger(__name__)


class RecordListStore:
    """One page of the record list, with filters and request sequencing."""

    def __init__(self, api, settings: DashboardSettings = DEFAULT_SETTINGS):
        self.api = api
        self.settings = settings
        self.filters = RecordFilters()
        self.limit = settings.page_size
        self.records: List[Record] = []
        self.page = 1
        self.total_pages = 1
        self.total_items = 0
        self.error: Optional[str] = None
        self._sequencer = RequestSequencer()

    async def fetch(self, page: Optional[int] = None) -> None:
        """Load a page; responses to superseded requests are dropped."""
        page = page or self.page
        ticket = self._sequencer.issue()
        try:
            result = await self.api.records.list(page=page, limit=self.limit, filters=self.filters)
        except DashboardError as e:
            if not self._sequencer.is_current(ticket):
                return
            logger.error(f"Loading records failed: {e}")
            self.records = []
            self.total_items = 0
            self.total_pages = 1
            self.page = 1
            self.error = user_message(e, "Failed to load records")
            return

        if not self._sequencer.is_current(ticket):
            logger.debug(f"Discarding stale page {page} (ticket {ticket})")
            return

        self.records = list(result.items)
        self.page = result.page
        self.total_pages = result.total_pages
        self.total_items = result.total_items
        self.error = None

    async def change_page(self, page: int) -> bool:
        """Go to a page within 1..total_pages; out-of-range requests are ignored."""
        if page < 1 or page > self.total_pages:
            return False
        self.page = page
        await self.fetch(page)
        return True

    async def next_page(self) -> bool:
        return await self.change_page(self.page + 1)

    async def previous_page(self) -> bool:
        return await self.change_page(self.page - 1)

    async def search(self, filters: RecordFilters) -> None:
        """Apply new filters and go back to the first page."""
        self.filters = filters
        self.page = 1
        await self.fetch(1)

    async def reset_filters(self) -> None:
        await self.search(RecordFilters())

    async def delete(self, record: Record) -> CommandResult:
        """Remove a record, optimistically hiding it until the server answers."""
        snapshot = list(self.records)

        def hide():
            self.records = [r for r in self.records if r.id != record.id]

        def restore():
            self.records = snapshot

        command = Command(
            label=f"delete record {record.id}",
            execute=lambda: self.api.records.delete(record.id),
            refetch=self.fetch,
            apply_optimistic=hide,
            rollback=restore,
            failure_message="Failed to delete the record",
        )
        return await command.run()


class DocumentTreeStore:
    """Document hierarchy and pieces of one record."""

    def __init__(self, api, record_id: int):
        self.api = api
        self.record_id = record_id
        self.nodes: List[DocumentNode] = []
        self.pieces: List[Piece] = []
        self.forest: Optional[DocumentForest] = None
        self.roots: List[TreeNode] = []
        self.error: Optional[str] = None
        self._sequencer = RequestSequencer()

    async def fetch(self) -> None:
        """Reload nodes and pieces together and rebuild the tree."""
        ticket = self._sequencer.issue()
        try:
            nodes, pieces = await asyncio.gather(
                self.api.documents.tree(self.record_id),
                self.api.pieces.for_record(self.record_id),
            )
            forest = DocumentForest.build(nodes, pieces)
        except (DashboardError, ValueError) as e:
            if not self._sequencer.is_current(ticket):
                return
            logger.error(f"Loading documents of record {self.record_id} failed: {e}")
            self.nodes, self.pieces, self.forest, self.roots = [], [], None, []
            if isinstance(e, DashboardError):
                self.error = user_message(e, "Failed to load documents")
            else:
                self.error = str(e)
            return

        if not self._sequencer.is_current(ticket):
            return

        self.nodes = list(nodes)
        self.pieces = list(pieces)
        self.forest = forest
        self.roots = forest.roots()
        self.error = None

    def piece(self, piece_id: int) -> Optional[Piece]:
        for p in self.pieces:
            if p.id == piece_id:
                return p
        return None

    def node(self, node_id: int) -> Optional[DocumentNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


@dataclass
class DashboardStats:
    """Headline numbers of the dashboard home page."""

    total_records: int = 0
    located_records: int = 0
    total_folders: int = 0
    total_pieces: int = 0
    records: List[Record] = field(default_factory=list)


async def load_stats(api, settings: DashboardSettings = DEFAULT_SETTINGS) -> DashboardStats:
    """
    Gather the dashboard statistics.

    The record list must load (authentication errors propagate so the caller
    can redirect to login); the folder and piece counts fall back to 0.
    """
    page = await api.records.list(page=1, limit=settings.stats_limit)
    stats = DashboardStats(
        records=list(page.items),
        total_records=page.total_items or len(page.items),
        located_records=sum(1 for r in page.items if r.has_coordinates),
    )

    try:
        stats.total_folders = await api.documents.count()
    except DashboardError as e:
        logger.error(f"Loading folder count failed: {e}")

    try:
        stats.total_pieces = await api.pieces.count()
    except DashboardError as e:
        logger.error(f"Loading piece count failed: {e}")

    return stats
