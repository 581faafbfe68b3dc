"""
transient_state.py — Short-lived presentation state with expiry.

The layout page has a few purely visual states that clear themselves after a
fixed delay (invalid-drop flash, "just locked" highlight). Instead of timer
threads, members carry an expiry timestamp on a monotonic clock and are
purged whenever the set is read. Re-adding a member re-arms its expiry.
"""

import time


class ExpiringSet:
    """Set whose members can be given a time to live."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._expires = {}

    def add(self, item, ttl=None):
        """Add `item`. With ttl=None it stays until discarded or given a ttl."""
        self._expires[item] = None if ttl is None else self._clock() + ttl

    def expire_after(self, item, ttl):
        if item in self._expires:
            self._expires[item] = self._clock() + ttl

    def replace(self, items, ttl):
        """Drop every member and add `items`, all expiring together."""
        self._expires = {}
        for item in items:
            self.add(item, ttl)

    def discard(self, item):
        self._expires.pop(item, None)

    def clear(self):
        self._expires = {}

    def _purge(self):
        now = self._clock()
        expired = [item for item, until in self._expires.items()
                   if until is not None and until <= now]
        for item in expired:
            del self._expires[item]

    def __contains__(self, item):
        self._purge()
        return item in self._expires

    def __len__(self):
        self._purge()
        return len(self._expires)

    def __iter__(self):
        self._purge()
        return iter(list(self._expires))

    def snapshot(self):
        self._purge()
        return frozenset(self._expires)
