"""
User-facing notifications: blocking alerts and auto-dismissed banners.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from marches_dashboard.config import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


@dataclass
class Banner:
    """A transient success message."""

    message: str
    visible: bool = True

    def dismiss(self) -> None:
        self.visible = False


class Notifier:
    """
    Collects alerts and banners for the front end to display.

    An optional sink is called with each alert as it is raised (the CLI
    prints them).
    """

    def __init__(
        self,
        banner_duration: float = DEFAULT_SETTINGS.banner_duration,
        sink: Optional[Callable[[str], None]] = None,
    ):
        self.banner_duration = banner_duration
        self.sink = sink
        self.alerts: List[str] = []
        self.banners: List[Banner] = []

    def alert(self, message: str) -> None:
        logger.info(f"Alert: {message}")
        self.alerts.append(message)
        if self.sink:
            self.sink(message)

    @property
    def last_alert(self) -> Optional[str]:
        return self.alerts[-1] if self.alerts else None

    def banner(self, message: str, duration: Optional[float] = None) -> Banner:
        """
        Show a banner that hides itself after `duration` seconds.

        Without a running event loop the banner stays until dismissed.
        """
        banner = Banner(message)
        self.banners.append(banner)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return banner
        loop.call_later(self.banner_duration if duration is None else duration, banner.dismiss)
        return banner

    @property
    def visible_banners(self) -> List[Banner]:
        return [b for b in self.banners if b.visible]
