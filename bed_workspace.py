"""
bed_workspace.py — Bed detail view state: grid, gestures, picker, locks.

A BedWorkspace ties together, for one bed as seen by one browser session:
- the bed record and planting list fetched from the store
- the occupancy grid derived from them (rebuilt after every refresh)
- the drag controller, lock manager and plant picker
- the pending empty-cell target, the selected planting and the zoom level
- user-facing notifications, drained into each response

Workspaces live in a WorkspaceRegistry held by the Flask app and are thrown
away when the page is closed; nothing here is persisted.
"""

import time
import threading
import logging

from models import GridPoint
from layout_engine import (
    build_occupancy, cell_at, footprint_for, in_bounds, placement_conflicts,
)
from drag_controller import DragController, FLASH_INVALID_SECONDS
from lock_manager import LockStateManager, LOCK_ANIMATION_SECONDS
from plant_picker import PlantPicker, PICKER_PER_PAGE, SEARCH_DEBOUNCE_SECONDS


logger = logging.getLogger(__name__)

# Zoom level -> cell size in pixels
CELL_SIZES = {'S': 24, 'M': 48, 'L': 72}
DEFAULT_ZOOM = 'M'
LABEL_MIN_CELL_SIZE = 48

# Plant type -> (background, border, text) colors
TYPE_COLORS = {
    'vegetable': ('DCFCE7', '4ADE80', '14532D'),
    'herb': ('D1FAE5', '34D399', '064E3B'),
    'tree': ('E7E5E4', 'A8A29E', '292524'),
    'shrub': ('ECFCCB', 'A3E635', '365314'),
    'annual': ('EDE9FE', 'A78BFA', '4C1D95'),
    'perennial': ('DBEAFE', '60A5FA', '1E3A8A'),
    'bulb': ('FEF3C7', 'FBBF24', '78350F'),
    'fruit': ('FFEDD5', 'FB923C', '7C2D12'),
    'flower': ('FCE7F3', 'F472B6', '831843'),
}
DEFAULT_COLORS = ('F1F5F9', '94A3B8', '1E293B')


def type_colors(plant_type):
    if not plant_type:
        return DEFAULT_COLORS
    return TYPE_COLORS.get(plant_type.lower(), DEFAULT_COLORS)


def short_label(planting):
    if not planting.plant or not planting.plant.common_name:
        return '?'
    return planting.plant.common_name.split(' ')[0]


class BedWorkspace:
    """
    Interactive layout state for one bed.

    Args:
        bed_id: Bed being edited
        store: Planting store (get_bed, list_plantings_for_bed,
            create_planting, update_planting, delete_planting)
        catalog: Plant catalog (list_plants)
        clock: Monotonic clock shared by every presentation timer
    """

    def __init__(self, bed_id, store, catalog, clock=time.monotonic,
                 flash_seconds=FLASH_INVALID_SECONDS,
                 lock_animation_seconds=LOCK_ANIMATION_SECONDS,
                 debounce_seconds=SEARCH_DEBOUNCE_SECONDS,
                 per_page=PICKER_PER_PAGE):
        self.bed_id = bed_id
        self.store = store
        self.catalog = catalog

        self.bed = None
        self.plantings = []
        self.occupancy = []

        self.zoom = DEFAULT_ZOOM
        self.pending_cell = None
        self.selected_planting_id = None
        self.notifications = []
        self.lock = threading.RLock()

        self.drag = DragController(self, store, flash_seconds=flash_seconds, clock=clock)
        self.locks = LockStateManager(self, store, animation_seconds=lock_animation_seconds, clock=clock)
        self.picker = PlantPicker(catalog, per_page=per_page, debounce_seconds=debounce_seconds, clock=clock)

        self.refresh()

    # ========================================
    # Data
    # ========================================

    def refresh(self):
        """Re-fetch bed and plantings, then rebuild occupancy from scratch."""
        self.bed = self.store.get_bed(self.bed_id)
        self.plantings = self.store.list_plantings_for_bed(self.bed_id) if self.bed else []
        if self.has_grid:
            self.occupancy = build_occupancy(self.plantings, self.cols, self.rows)
        else:
            self.occupancy = []

        if self.selected_planting_id is not None and self.find_planting(self.selected_planting_id) is None:
            self.selected_planting_id = None

    @property
    def found(self):
        return self.bed is not None

    @property
    def cols(self):
        return self.bed.cols if self.bed else 0

    @property
    def rows(self):
        return self.bed.rows if self.bed else 0

    @property
    def has_grid(self):
        return self.bed is not None and self.bed.has_grid

    def find_planting(self, planting_id):
        for planting in self.plantings:
            if planting.id == planting_id:
                return planting
        return None

    @property
    def selected_planting(self):
        if self.selected_planting_id is None:
            return None
        return self.find_planting(self.selected_planting_id)

    def notify(self, category, message):
        self.notifications.append((category, message))

    def pop_notifications(self):
        messages, self.notifications = self.notifications, []
        return messages

    # ========================================
    # Empty cells and the plant picker
    # ========================================

    def click_cell(self, x, y):
        """Open the picker for an empty cell. Returns True if it opened."""
        if not self.has_grid or not in_bounds(x, y, self.cols, self.rows):
            return False
        cell = cell_at(self.occupancy, x, y)
        if cell is None or cell.kind != 'empty':
            return False

        self.selected_planting_id = None
        self.pending_cell = GridPoint(x, y)
        self.picker.open()
        return True

    def close_picker(self):
        self.picker.close()
        self.pending_cell = None

    def select_plant(self, plant):
        """
        Place the chosen plant at the pending cell.

        The footprint is re-validated against freshly fetched plantings, not
        the state seen when the cell was clicked. Returns True when the
        planting was created.
        """
        target = self.pending_cell
        if target is None:
            return False

        self.refresh()
        fp = footprint_for(plant.spacing_inches)

        if not self.has_grid:
            self.notify('error', 'This bed has no layout grid.')
            self.close_picker()
            return False

        out_of_bounds, blocked = placement_conflicts(
            self.occupancy, target.x, target.y, fp, self.cols, self.rows
        )
        if blocked:
            self.notify('error', 'Not enough space: another plant is in the way.')
            self.close_picker()
            return False
        if out_of_bounds:
            self.notify('error', 'Not enough space: the plant would extend past the edge of the bed.')
            self.close_picker()
            return False

        # Close first so a second click cannot submit the same placement.
        self.close_picker()
        _, error = self.store.create_planting(
            self.bed_id, plant.id, grid_x=target.x, grid_y=target.y, quantity=1
        )
        if error:
            logger.warning("Creating planting of plant %s in bed %s failed: %s",
                           plant.id, self.bed_id, error)
            self.notify('error', 'Failed to add planting.')
            return False

        self.refresh()
        return True

    # ========================================
    # Planted cells
    # ========================================

    def click_anchor(self, planting_id):
        """Locked plantings get selected; clicking an unlocked one deselects."""
        planting = self.find_planting(planting_id)
        if planting is None:
            return None
        self.selected_planting_id = planting.id if planting.is_locked else None
        return self.selected_planting_id

    def delete_planting(self, planting_id):
        planting = self.find_planting(planting_id)
        if planting is None:
            return False
        if planting.is_locked:
            self.notify('error', 'Unlock this planting before removing it.')
            return False

        _, error = self.store.delete_planting(planting.id)
        if error:
            logger.warning("Deleting planting %s failed: %s", planting.id, error)
            self.notify('error', 'Failed to remove planting.')
            return False

        self.refresh()
        return True

    def lock_planting(self, planting_id):
        planting = self.find_planting(planting_id)
        if planting is None or planting.is_locked:
            return False
        self.drag.cancel(planting.id)
        return self.locks.lock(planting)

    def unlock_planting(self, planting_id):
        planting = self.find_planting(planting_id)
        if planting is None or not planting.is_locked:
            return False
        return self.locks.unlock(planting)

    def update_details(self, planting_id, status=None, notes=None):
        """Edit status/notes of a planting from the detail panel."""
        planting = self.find_planting(planting_id)
        if planting is None:
            return False

        data = {}
        if status is not None and status != planting.status:
            data['status'] = status
        if notes is not None and notes != (planting.notes or ''):
            data['notes'] = notes
        if not data:
            return True

        _, error = self.store.update_planting(planting.id, data)
        if error:
            self.notify('error', 'Failed to update planting.')
            return False

        self.refresh()
        return True

    # ========================================
    # Drag and drop
    # ========================================

    def start_drag(self, planting_id):
        started = self.drag.start(planting_id)
        if started:
            self.selected_planting_id = None
        return started

    def hover(self, x, y):
        return self.drag.hover(x, y)

    def leave(self):
        return self.drag.leave()

    def end_drag(self):
        return self.drag.end()

    def cancel_drag(self):
        self.drag.cancel()

    # ========================================
    # Presentation
    # ========================================

    def set_zoom(self, zoom):
        if zoom not in CELL_SIZES:
            raise ValueError(f"Unknown zoom level: {zoom}")
        self.zoom = zoom

    @property
    def cell_size(self):
        return CELL_SIZES[self.zoom]

    @property
    def show_labels(self):
        return self.cell_size >= LABEL_MIN_CELL_SIZE

    def _cell_view(self, x, y, cell, session, flashing):
        key = GridPoint(x, y).key
        hover = None
        if session is not None and key in session.cells:
            hover = 'valid' if session.is_valid_drop else 'invalid'

        view = {
            'x': x,
            'y': y,
            'key': key,
            'kind': cell.kind,
            'hover': hover,
            'is_flashing': key in flashing,
        }
        if cell.kind == 'empty':
            return view

        planting = cell.planting
        background, border, text = type_colors(planting.plant.plant_type if planting.plant else None)
        view.update({
            'planting_id': planting.id,
            'plant_type': planting.plant.plant_type if planting.plant else None,
            'colors': {'bg': background, 'border': border, 'text': text},
            'is_drag_source': session is not None and session.planting_id == planting.id,
        })
        if cell.kind == 'anchor':
            view.update({
                'title': planting.plant.common_name if planting.plant else '',
                'label': short_label(planting) if self.show_labels else None,
                'is_locked': planting.is_locked,
                'is_selected': planting.id == self.selected_planting_id,
                'is_lock_animating': self.locks.is_animating(planting.id),
                'draggable': not planting.is_locked,
                'can_delete': not planting.is_locked,
                'can_lock': not planting.is_locked,
                'can_unlock': planting.is_locked,
            })
        return view

    def grid_view(self):
        """Everything the page needs to draw the grid, as plain data."""
        session = self.drag.session
        flashing = self.drag.flashing_cells

        cells = [
            [self._cell_view(x, y, cell, session, flashing) for x, cell in enumerate(row)]
            for y, row in enumerate(self.occupancy)
        ]

        return {
            'bed': self.bed.to_dict() if self.bed else None,
            'has_grid': self.has_grid,
            'cols': self.cols,
            'rows': self.rows,
            'zoom': self.zoom,
            'cell_size': self.cell_size,
            'show_labels': self.show_labels,
            'label_font_px': 11 if self.cell_size >= CELL_SIZES['L'] else 9,
            'cells': cells,
            'drag': {
                'planting_id': session.planting_id if session else None,
                'hover_cell': [session.hover_cell.x, session.hover_cell.y]
                if session and session.hover_cell else None,
                'is_valid_drop': session.is_valid_drop if session else False,
            },
            'picker_open': self.picker.is_open,
            'pending_cell': [self.pending_cell.x, self.pending_cell.y] if self.pending_cell else None,
            'selected_planting_id': self.selected_planting_id,
            'unplaced': [p.to_dict() for p in self.plantings if not p.is_placed],
            'legend': {name: colors[0] for name, colors in TYPE_COLORS.items()},
        }


WORKSPACE_IDLE_SECONDS = 30 * 60


class WorkspaceRegistry:
    """
    Live workspaces keyed by (session token, bed id).

    Pages that close without saying so are dropped once they have been idle
    for `idle_seconds`; the purge runs whenever a workspace is looked up.
    """

    def __init__(self, idle_seconds=WORKSPACE_IDLE_SECONDS, clock=time.monotonic):
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._workspaces = {}
        self._touched = {}
        self._lock = threading.Lock()

    def _purge_idle(self, now):
        idle = [key for key, touched in self._touched.items()
                if now - touched >= self.idle_seconds]
        for key in idle:
            del self._workspaces[key]
            del self._touched[key]
        if idle:
            logger.debug("Evicted %d idle workspaces", len(idle))

    def get_or_create(self, key, factory):
        with self._lock:
            now = self._clock()
            self._purge_idle(now)
            workspace = self._workspaces.get(key)
            if workspace is None:
                workspace = factory()
                self._workspaces[key] = workspace
                logger.debug("Opened workspace %s", key)
            self._touched[key] = now
            return workspace

    def discard(self, key):
        with self._lock:
            self._touched.pop(key, None)
            return self._workspaces.pop(key, None) is not None

    def __len__(self):
        return len(self._workspaces)
