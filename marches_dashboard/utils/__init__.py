"""Shared utilities for the marchés dashboard."""

from marches_dashboard.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
