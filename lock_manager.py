"""
lock_manager.py — Lock / unlock of planting positions.

A locked planting cannot be dragged or deleted from the grid. Locking shows
a short "just locked" highlight: the planting id joins the animation set as
soon as the request is issued, stays LOCK_ANIMATION_SECONDS after success,
and is dropped at once on failure. The persisted is_locked flag is only ever
read from the refreshed planting list.
"""

import time
import logging

from transient_state import ExpiringSet


logger = logging.getLogger(__name__)

LOCK_ANIMATION_SECONDS = 0.6


class LockStateManager:

    def __init__(self, layout, store, animation_seconds=LOCK_ANIMATION_SECONDS, clock=time.monotonic):
        self.layout = layout
        self.store = store
        self.animation_seconds = animation_seconds
        self.animating = ExpiringSet(clock)

    def is_animating(self, planting_id):
        return planting_id in self.animating

    def lock(self, planting):
        """Request is_locked = true. Returns True on success."""
        self.animating.add(planting.id)

        _, error = self.store.update_planting(planting.id, {'is_locked': True})
        if error:
            self.animating.discard(planting.id)
            logger.warning("Lock of planting %s failed: %s", planting.id, error)
            self.layout.notify('error', 'Failed to lock planting.')
            return False

        self.animating.expire_after(planting.id, self.animation_seconds)
        self.layout.refresh()
        return True

    def unlock(self, planting):
        """Request is_locked = false. Returns True on success."""
        _, error = self.store.update_planting(planting.id, {'is_locked': False})
        if error:
            logger.warning("Unlock of planting %s failed: %s", planting.id, error)
            self.layout.notify('error', 'Failed to unlock planting.')
            return False

        self.layout.refresh()
        return True
