"""
Request sequencing.

Each fetch takes a ticket before it is sent; when the answer arrives it is
applied only if no newer ticket was issued in the meantime. An older
response that lands after a newer one is discarded, so the view always
shows the data of the latest request.
"""

import itertools


class RequestSequencer:
    """Monotonic ticket counter for one collection."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0

    def issue(self) -> int:
        """Take a ticket for a request about to be sent."""
        self._latest = next(self._counter)
        return self._latest

    def is_current(self, ticket: int) -> bool:
        """True if no request was issued after this ticket."""
        return ticket == self._latest

    @property
    def latest(self) -> int:
        return self._latest
