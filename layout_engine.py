"""
layout_engine.py — Grid geometry for the bed layout designer.

This module implements:
- Footprint calculation: plant spacing (inches) to an N x N block of cells
- Occupancy: projection of the planting list onto a rows x cols grid
- Placement validation: bounds + overlap check with self-exclusion for moves

Grid details:
- One cell is one linear foot; x runs along the bed width, y along its length
- The occupancy grid is indexed [y][x]
- Occupancy is always rebuilt from the full planting list, never patched
- Footprints that run past the bed edge are clipped when building occupancy;
  the validator, in contrast, rejects any candidate that leaves the bed
"""

import math
import logging

from models import EMPTY, AnchorCell, ContinuationCell, GridPoint


logger = logging.getLogger(__name__)

INCHES_PER_CELL = 12
DEFAULT_SPACING_INCHES = 12


def footprint_for(spacing_inches):
    """
    Side length, in cells, of the square a plant occupies.

    Examples:
        None -> 1, 0 -> 1, 12 -> 1, 13 -> 2, 24 -> 2, 36 -> 3
    """
    if spacing_inches is None:
        spacing_inches = DEFAULT_SPACING_INCHES
    return max(1, math.ceil(spacing_inches / INCHES_PER_CELL))


def footprint_cells(x, y, footprint):
    """All grid points covered by a footprint anchored at (x, y), row by row."""
    return [
        GridPoint(x + dx, y + dy)
        for dy in range(footprint)
        for dx in range(footprint)
    ]


def in_bounds(x, y, cols, rows):
    return 0 <= x < cols and 0 <= y < rows


def build_occupancy(plantings, cols, rows):
    """
    Build the rows x cols grid of cell states for a bed.

    Plantings without coordinates are skipped. Each placed planting writes an
    AnchorCell at its origin and ContinuationCells over the rest of its
    footprint. Cells outside the bed are dropped silently. No overlap check
    is done here: if two footprints share a cell, the later planting in the
    list wins.
    """
    grid = [[EMPTY for _ in range(cols)] for _ in range(rows)]

    for planting in plantings:
        if not planting.is_placed:
            continue
        fp = footprint_for(planting.spacing_inches)
        for point in footprint_cells(planting.grid_x, planting.grid_y, fp):
            if not in_bounds(point.x, point.y, cols, rows):
                continue
            if point.x == planting.grid_x and point.y == planting.grid_y:
                grid[point.y][point.x] = AnchorCell(planting)
            else:
                grid[point.y][point.x] = ContinuationCell(planting)

    return grid


def cell_at(occupancy, x, y):
    """Cell state at (x, y), or None when outside the grid."""
    if y < 0 or x < 0 or y >= len(occupancy) or x >= len(occupancy[y]):
        return None
    return occupancy[y][x]


def occupied_by(occupancy, planting_id):
    """Grid points currently claimed by the given planting."""
    points = []
    for y, row in enumerate(occupancy):
        for x, cell in enumerate(row):
            if cell.kind != 'empty' and cell.planting.id == planting_id:
                points.append(GridPoint(x, y))
    return points


def placement_conflicts(occupancy, x, y, footprint, cols, rows, moving_id=None):
    """
    Check a candidate footprint and report why it cannot be placed.

    Args:
        occupancy: Grid from build_occupancy
        x, y: Candidate origin
        footprint: Side length in cells
        cols, rows: Bed dimensions
        moving_id: Id of the planting being moved; its own cells do not block

    Returns:
        (out_of_bounds, blocked) where out_of_bounds is a list of GridPoints
        past the bed edge and blocked is a list of (GridPoint, Planting) pairs
        occupied by another planting.
    """
    out_of_bounds = []
    blocked = []

    for point in footprint_cells(x, y, footprint):
        if not in_bounds(point.x, point.y, cols, rows):
            out_of_bounds.append(point)
            continue
        cell = occupancy[point.y][point.x]
        if cell.kind == 'empty':
            continue
        if moving_id is not None and cell.planting.id == moving_id:
            continue
        blocked.append((point, cell.planting))

    return out_of_bounds, blocked


def is_valid_placement(occupancy, x, y, footprint, cols, rows, moving_id=None):
    """
    True when every cell of the footprint anchored at (x, y) lies in the bed
    and is either empty or owned by `moving_id`.
    """
    out_of_bounds, blocked = placement_conflicts(
        occupancy, x, y, footprint, cols, rows, moving_id=moving_id
    )
    valid = not out_of_bounds and not blocked
    if not valid:
        logger.debug(
            "Placement at (%d, %d) size %d rejected: %d out of bounds, %d blocked",
            x, y, footprint, len(out_of_bounds), len(blocked)
        )
    return valid


def is_same_anchor(planting, x, y):
    """A move onto the planting's current origin is a no-op."""
    return planting.grid_x == x and planting.grid_y == y
