"""
Mutation commands.

A command bundles one remote mutation with the re-fetch that follows it and
the continuations to run on success or failure. Optimistic commands apply a
local change first and undo it when the mutation fails.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from marches_dashboard.errors import DashboardError, user_message

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a command run."""

    ok: bool
    value: Any = None
    error: Optional[DashboardError] = None
    message: str = ""


@dataclass
class Command:
    """
    One remote mutation and what to do around it.

    Attributes:
        label: Short description used in logs
        execute: Coroutine function performing the mutation
        refetch: Coroutine function reloading the affected collection
        on_success: Called with the mutation result
        on_failure: Called with the user-facing error message
        apply_optimistic: Local change applied before the call
        rollback: Undo of apply_optimistic, run when the call fails
        failure_message: Fallback text when the server gives none
    """

    label: str
    execute: Callable[[], Awaitable[Any]]
    refetch: Optional[Callable[[], Awaitable[Any]]] = None
    on_success: Optional[Callable[[Any], None]] = None
    on_failure: Optional[Callable[[str], None]] = None
    apply_optimistic: Optional[Callable[[], None]] = None
    rollback: Optional[Callable[[], None]] = None
    failure_message: str = "The operation failed"

    async def run(self) -> CommandResult:
        if self.apply_optimistic:
            self.apply_optimistic()

        try:
            value = await self.execute()
        except DashboardError as e:
            message = user_message(e, self.failure_message)
            logger.warning(f"{self.label} failed: {message}")
            if self.rollback:
                self.rollback()
            if self.refetch:
                await self.refetch()
            if self.on_failure:
                self.on_failure(message)
            return CommandResult(ok=False, error=e, message=message)

        logger.info(f"{self.label} succeeded")
        if self.refetch:
            await self.refetch()
        if self.on_success:
            self.on_success(value)
        return CommandResult(ok=True, value=value)
