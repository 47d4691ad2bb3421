"""Configuration module for the marchés dashboard."""

from marches_dashboard.config.settings import DashboardSettings, DEFAULT_SETTINGS

__all__ = [
    "DashboardSettings",
    "DEFAULT_SETTINGS",
]
