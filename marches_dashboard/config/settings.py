"""
Dashboard settings and configuration constants.

This module centralizes all configurable parameters for the dashboard client,
making it easy to adjust behavior without modifying core logic.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path


# Prefix for environment overrides (e.g. MARCHES_API_BASE)
ENV_PREFIX = "MARCHES_"


@dataclass
class DashboardSettings:
    """Configuration settings for the dashboard client."""

    # API Configuration
    api_base: str = "http://localhost:5001"

    # Timeout settings (no automatic retry)
    request_timeout: int = 30

    # Pagination
    page_size: int = 25
    stats_limit: int = 1000  # Records pulled for the dashboard statistics

    # UI timers (seconds)
    banner_duration: float = 3.0
    navigation_delay: float = 0.2

    # Map defaults
    default_center: tuple[float, float] = (34.0333, -5.0)
    default_zoom: int = 5
    fly_to_zoom: int = 15
    max_cluster_radius: int = 50  # Pixels
    cluster_small_below: int = 10
    cluster_large_above: int = 50

    # Local state (session token, navigation handoff)
    state_dir: Path = Path.home() / ".marches_dashboard"

    @classmethod
    def from_env(cls, environ=None) -> "DashboardSettings":
        """
        Build settings from MARCHES_* environment variables.

        Unknown variables are ignored; values are converted to the type of
        the field default.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or f.name == "default_center":
                continue
            default = f.default
            if isinstance(default, bool):
                overrides[f.name] = raw.lower() in ("1", "true", "yes")
            elif isinstance(default, int):
                overrides[f.name] = int(raw)
            elif isinstance(default, float):
                overrides[f.name] = float(raw)
            elif isinstance(default, Path):
                overrides[f.name] = Path(raw).expanduser()
            else:
                overrides[f.name] = raw.rstrip("/")
        return replace(cls(), **overrides)


# Default settings instance
DEFAULT_SETTINGS = DashboardSettings()
