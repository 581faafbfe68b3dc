"""
drag_controller.py — Drag-and-drop gesture state machine for the bed grid.

States: idle -> dragging -> hovering* -> (moved | no-op | rejected | cancelled) -> idle

The controller owns one DragSession at a time. Every event replaces the
session object as a whole, so hover cell, validity and footprint are always
read together from the same snapshot. Validity is computed against the live
occupancy of the layout with the dragged planting excluded from conflicts.

Drop outcomes:
- 'ignored'  — no gesture, released outside the grid, or planting locked meanwhile
- 'noop'     — dropped on its own current anchor
- 'moved'    — move request accepted by the store
- 'failed'   — move request failed; planting stays where it was
- 'rejected' — invalid target; footprint cells flash, nothing is sent
"""

import time
import logging

from models import DragSession, GridPoint
from layout_engine import (
    footprint_for, footprint_cells, in_bounds,
    is_valid_placement, is_same_anchor,
)
from transient_state import ExpiringSet


logger = logging.getLogger(__name__)

FLASH_INVALID_SECONDS = 0.3

OUTCOME_IGNORED = 'ignored'
OUTCOME_NOOP = 'noop'
OUTCOME_MOVED = 'moved'
OUTCOME_FAILED = 'failed'
OUTCOME_REJECTED = 'rejected'


class DragController:
    """
    Drive a single drag gesture over a bed layout.

    Args:
        layout: Object exposing bed_id, cols, rows, occupancy, plantings,
            find_planting(id), refresh() and notify(category, message)
        store: Planting store with update_planting(id, data)
        flash_seconds: How long rejected footprint cells stay flagged
        clock: Monotonic clock, injectable for tests
    """

    def __init__(self, layout, store, flash_seconds=FLASH_INVALID_SECONDS, clock=time.monotonic):
        self.layout = layout
        self.store = store
        self.flash_seconds = flash_seconds
        self.session = None
        self.flashing = ExpiringSet(clock)

    @property
    def is_dragging(self):
        return self.session is not None

    @property
    def flashing_cells(self):
        return self.flashing.snapshot()

    def start(self, planting_id):
        """
        Begin dragging a planting.

        Only placed, unlocked plantings can be dragged. Returns True when a
        session was started.
        """
        planting = self.layout.find_planting(planting_id)
        if planting is None or not planting.is_placed:
            logger.debug("Drag start ignored: planting %s is not on the grid", planting_id)
            return False
        if planting.is_locked:
            logger.debug("Drag start refused: planting %s is locked", planting_id)
            return False

        self.session = DragSession(
            planting_id=planting.id,
            footprint=footprint_for(planting.spacing_inches),
        )
        return True

    def hover(self, x, y):
        """Pointer entered the cell (x, y); re-run validation for that origin."""
        if self.session is None:
            return None
        if not in_bounds(x, y, self.layout.cols, self.layout.rows):
            return self.leave()

        fp = self.session.footprint
        valid = is_valid_placement(
            self.layout.occupancy, x, y, fp,
            self.layout.cols, self.layout.rows,
            moving_id=self.session.planting_id,
        )
        self.session = DragSession(
            planting_id=self.session.planting_id,
            hover_cell=GridPoint(x, y),
            is_valid_drop=valid,
            footprint=fp,
            cells=frozenset(p.key for p in footprint_cells(x, y, fp)),
        )
        return valid

    def leave(self):
        """Pointer is no longer over any droppable cell."""
        if self.session is None:
            return None
        self.session = DragSession(
            planting_id=self.session.planting_id,
            footprint=self.session.footprint,
        )
        return False

    def cancel(self, planting_id=None):
        """Abort the gesture, or only a gesture of `planting_id` when given."""
        if planting_id is None or (self.session and self.session.planting_id == planting_id):
            self.session = None

    def end(self):
        """
        Release the pointer and resolve the gesture.

        Returns one of the OUTCOME_* constants.
        """
        session, self.session = self.session, None

        if session is None or session.hover_cell is None:
            return OUTCOME_IGNORED

        target = session.hover_cell
        planting = self.layout.find_planting(session.planting_id)
        if planting is None or not planting.is_placed:
            return OUTCOME_IGNORED
        if planting.is_locked:
            logger.debug("Drop of planting %s ignored: locked during the gesture", planting.id)
            return OUTCOME_IGNORED

        # Occupancy may have been refreshed since the last hover
        valid = session.is_valid_drop and is_valid_placement(
            self.layout.occupancy, target.x, target.y, session.footprint,
            self.layout.cols, self.layout.rows, moving_id=planting.id,
        )

        if not valid:
            cells = [
                p.key for p in footprint_cells(target.x, target.y, session.footprint)
                if in_bounds(p.x, p.y, self.layout.cols, self.layout.rows)
            ]
            self.flashing.replace(cells, self.flash_seconds)
            logger.debug("Drop of planting %s at (%d, %d) rejected",
                         session.planting_id, target.x, target.y)
            return OUTCOME_REJECTED

        if is_same_anchor(planting, target.x, target.y):
            return OUTCOME_NOOP

        _, error = self.store.update_planting(
            planting.id, {'grid_x': target.x, 'grid_y': target.y}
        )
        if error:
            logger.warning("Move of planting %s failed: %s", planting.id, error)
            self.layout.notify('error', 'Failed to move planting.')
            return OUTCOME_FAILED

        logger.info("Moved planting %s to (%d, %d)", planting.id, target.x, target.y)
        self.layout.refresh()
        return OUTCOME_MOVED
