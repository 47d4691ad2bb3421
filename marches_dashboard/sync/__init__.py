"""Remote sync layer: sequencing, mutation commands, collection stores."""

from marches_dashboard.sync.sequencing import RequestSequencer
from marches_dashboard.sync.commands import Command, CommandResult
from marches_dashboard.sync.stores import (
    DashboardStats,
    DocumentTreeStore,
    RecordListStore,
    load_stats,
)

__all__ = [
    "RequestSequencer",
    "Command",
    "CommandResult",
    "DashboardStats",
    "DocumentTreeStore",
    "RecordListStore",
    "load_stats",
]
