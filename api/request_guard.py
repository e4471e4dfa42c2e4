"""
In-flight request guard for discarding superseded responses
"""

import threading
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class RequestTicket:
    """Issued to a request before it is sent"""
    key: str
    number: int


class LatestRequestGuard:
    """
    Tracks requests per logical operation.

    Tickets are numbered in issue order per key. A response is superseded
    when a request issued later for the same key has already resolved.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._issued: Dict[str, int] = {}
        self._latest_resolved: Dict[str, int] = {}
        self.superseded_count = 0

    def begin(self, key: str) -> RequestTicket:
        with self._lock:
            number = self._issued.get(key, 0) + 1
            self._issued[key] = number
            return RequestTicket(key, number)

    def resolve(self, ticket: RequestTicket) -> bool:
        """
        Record a resolved request.

        Returns:
            True if the response is current, False if it was superseded
        """
        with self._lock:
            latest = self._latest_resolved.get(ticket.key, 0)
            if ticket.number < latest:
                self.superseded_count += 1
                return False
            self._latest_resolved[ticket.key] = ticket.number
            return True
