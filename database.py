"""
database.py — SQLite schema, seed data, and planting store operations.

Holds gardens, beds and plantings. Plant details live in the separate
catalog (plant_database.py); plantings keep only the plant id and get a
PlantSummary attached when listed.

Mutations return (result, error_message) tuples; a failed mutation never
raises into the caller.
Uses WAL mode for concurrent read performance.
"""

import sqlite3
import os
import logging

from models import Garden, Bed, Planting, PLANTING_STATUSES
from plant_database import get_plant_summaries, get_plant_summary


logger = logging.getLogger(__name__)

PLANTING_UPDATE_FIELDS = ('grid_x', 'grid_y', 'is_locked', 'status', 'notes', 'quantity')
BED_UPDATE_FIELDS = ('name', 'width_ft', 'length_ft', 'sun_exposure_override', 'soil_amendments', 'notes')


def get_db_path():
    """Get the garden database path from environment or default."""
    default_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'garden.db')
    return os.environ.get('GARDEN_DB_PATH', default_path)


def get_db():
    """Get a database connection with WAL mode and foreign keys enabled."""
    db_path = get_db_path()
    os.makedirs(os.path.dirname(db_path) or '.', exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create all tables and indexes if they don't exist."""
    conn = get_db()
    cursor = conn.cursor()

    # Table: gardens
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS gardens (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: beds. width_ft is the grid column count, length_ft the row count
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS beds (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            garden_id INTEGER NOT NULL REFERENCES gardens(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            width_ft INTEGER CHECK (width_ft IS NULL OR width_ft >= 0),
            length_ft INTEGER CHECK (length_ft IS NULL OR length_ft >= 0),
            sun_exposure_override TEXT,
            soil_amendments TEXT,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Table: plantings. grid_x/grid_y NULL means "not on the grid yet"
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS plantings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            bed_id INTEGER NOT NULL REFERENCES beds(id) ON DELETE CASCADE,
            plant_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'planned',
            date_planted TEXT,
            quantity INTEGER NOT NULL DEFAULT 1,
            notes TEXT,
            grid_x INTEGER,
            grid_y INTEGER,
            is_locked BOOLEAN NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plantings_bed
        ON plantings(bed_id)
    """)

    conn.commit()
    conn.close()


def seed_defaults():
    """Populate a demo garden and bed if the database is empty. Idempotent."""
    conn = get_db()
    existing = conn.execute("SELECT COUNT(*) FROM gardens").fetchone()[0]
    conn.close()
    if existing:
        return

    garden_id, _ = create_garden("Home Garden")
    if garden_id:
        create_bed(garden_id, "Raised Bed 1", width_ft=4, length_ft=8)
        logger.info("Seeded demo garden %s", garden_id)


# ========================================
# Row Mapping
# ========================================

def _row_to_bed(row):
    return Bed(
        id=row['id'],
        garden_id=row['garden_id'],
        name=row['name'],
        width_ft=row['width_ft'],
        length_ft=row['length_ft'],
        sun_exposure_override=row['sun_exposure_override'],
        soil_amendments=row['soil_amendments'],
        notes=row['notes'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _row_to_planting(row, plant=None):
    return Planting(
        id=row['id'],
        bed_id=row['bed_id'],
        plant_id=row['plant_id'],
        plant=plant,
        status=row['status'],
        date_planted=row['date_planted'],
        quantity=row['quantity'],
        notes=row['notes'],
        grid_x=row['grid_x'],
        grid_y=row['grid_y'],
        is_locked=bool(row['is_locked']),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _check_dimension(value, label):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return f"{label} must be a whole number of feet (0 or more)."
    return None


# ========================================
# Gardens and Beds
# ========================================

def create_garden(name, notes=None):
    """Create a garden. Returns (garden_id, error)."""
    if not name or not name.strip():
        return None, "A garden name is required."

    conn = get_db()
    try:
        cursor = conn.execute(
            "INSERT INTO gardens (name, notes) VALUES (?, ?)",
            (name.strip(), notes)
        )
        conn.commit()
        return cursor.lastrowid, None
    except sqlite3.Error as e:
        conn.rollback()
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()


def get_gardens():
    """Retrieve all gardens."""
    conn = get_db()
    rows = conn.execute("SELECT * FROM gardens ORDER BY name").fetchall()
    conn.close()
    return [Garden(**dict(row)) for row in rows]


def get_garden(garden_id):
    """Retrieve a single garden by ID."""
    conn = get_db()
    row = conn.execute("SELECT * FROM gardens WHERE id = ?", (garden_id,)).fetchone()
    conn.close()
    return Garden(**dict(row)) if row else None


def create_bed(garden_id, name, width_ft=None, length_ft=None, notes=None):
    """Create a bed inside a garden. Returns (bed_id, error)."""
    if not name or not name.strip():
        return None, "A bed name is required."

    for value, label in ((width_ft, "Width"), (length_ft, "Length")):
        error = _check_dimension(value, label)
        if error:
            return None, error

    conn = get_db()
    try:
        cursor = conn.execute(
            "INSERT INTO beds (garden_id, name, width_ft, length_ft, notes) VALUES (?, ?, ?, ?, ?)",
            (garden_id, name.strip(), width_ft, length_ft, notes)
        )
        conn.commit()
        return cursor.lastrowid, None
    except sqlite3.Error as e:
        conn.rollback()
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()


def get_bed(bed_id):
    """Retrieve a single bed by ID, or None."""
    conn = get_db()
    row = conn.execute("SELECT * FROM beds WHERE id = ?", (bed_id,)).fetchone()
    conn.close()
    return _row_to_bed(row) if row else None


def get_beds_for_garden(garden_id):
    conn = get_db()
    rows = conn.execute(
        "SELECT * FROM beds WHERE garden_id = ? ORDER BY name", (garden_id,)
    ).fetchall()
    conn.close()
    return [_row_to_bed(row) for row in rows]


def update_bed(bed_id, data):
    """
    Update bed attributes.

    Shrinking width_ft/length_ft leaves existing plantings where they are;
    footprints past the new edge are simply clipped from the grid.

    Returns:
        (Bed, None) on success, (None, error_message) on failure.
    """
    updates = []
    params = []

    for key in BED_UPDATE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in ('width_ft', 'length_ft'):
            error = _check_dimension(value, "Width" if key == 'width_ft' else "Length")
            if error:
                return None, error
        elif key == 'name' and (not value or not str(value).strip()):
            return None, "A bed name is required."
        updates.append(f"{key} = ?")
        params.append(value)

    conn = get_db()
    try:
        existing = conn.execute("SELECT id FROM beds WHERE id = ?", (bed_id,)).fetchone()
        if not existing:
            return None, "Bed not found."

        if updates:
            updates.append("updated_at = CURRENT_TIMESTAMP")
            params.append(bed_id)
            conn.execute(f"UPDATE beds SET {', '.join(updates)} WHERE id = ?", params)
            conn.commit()

        row = conn.execute("SELECT * FROM beds WHERE id = ?", (bed_id,)).fetchone()
        return _row_to_bed(row), None
    except sqlite3.Error as e:
        conn.rollback()
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()


# ========================================
# Plantings
# ========================================

def list_plantings_for_bed(bed_id):
    """
    All plantings of a bed, ordered by id, with plant summaries attached.

    The order is stable; it decides which planting wins a cell when
    footprints overlap in the occupancy grid.
    """
    conn = get_db()
    rows = conn.execute(
        "SELECT * FROM plantings WHERE bed_id = ? ORDER BY id", (bed_id,)
    ).fetchall()
    conn.close()

    plants = get_plant_summaries(row['plant_id'] for row in rows)
    return [_row_to_planting(row, plants.get(row['plant_id'])) for row in rows]


def get_planting(planting_id):
    conn = get_db()
    row = conn.execute("SELECT * FROM plantings WHERE id = ?", (planting_id,)).fetchone()
    conn.close()
    if not row:
        return None
    return _row_to_planting(row, get_plant_summary(row['plant_id']))


def create_planting(bed_id, plant_id, grid_x=None, grid_y=None, quantity=1):
    """
    Create a planting. New plantings are unlocked and 'planned'.

    No placement check happens here; callers validate against occupancy
    before calling.

    Returns:
        (Planting, None) on success, (None, error_message) on failure.
    """
    if (grid_x is None) != (grid_y is None):
        return None, "grid_x and grid_y must be set together."
    if quantity is None or quantity < 1:
        return None, "Quantity must be at least 1."

    conn = get_db()
    try:
        bed = conn.execute("SELECT id FROM beds WHERE id = ?", (bed_id,)).fetchone()
        if not bed:
            return None, "Bed not found."

        cursor = conn.execute(
            """INSERT INTO plantings (bed_id, plant_id, grid_x, grid_y, quantity)
               VALUES (?, ?, ?, ?, ?)""",
            (bed_id, plant_id, grid_x, grid_y, quantity)
        )
        conn.commit()
        planting_id = cursor.lastrowid
    except sqlite3.Error as e:
        conn.rollback()
        logger.warning("Could not create planting in bed %s: %s", bed_id, e)
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()

    logger.info("Created planting %s (plant %s) in bed %s at (%s, %s)",
                planting_id, plant_id, bed_id, grid_x, grid_y)
    return get_planting(planting_id), None


def update_planting(planting_id, data):
    """
    Partially update a planting.

    Accepted keys: grid_x, grid_y, is_locked, status, notes, quantity.
    grid_x and grid_y are only accepted together.
    Unknown keys are ignored.

    Returns:
        (Planting, None) on success, (None, error_message) on failure.
    """
    if ('grid_x' in data) != ('grid_y' in data) or \
            ('grid_x' in data and (data['grid_x'] is None) != (data['grid_y'] is None)):
        return None, "grid_x and grid_y must be set together."

    updates = []
    params = []

    for key in PLANTING_UPDATE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == 'status' and value not in PLANTING_STATUSES:
            return None, f"Unknown status: {value}"
        if key == 'quantity' and (value is None or value < 1):
            return None, "Quantity must be at least 1."
        if key == 'is_locked':
            value = 1 if value else 0
        updates.append(f"{key} = ?")
        params.append(value)

    conn = get_db()
    try:
        existing = conn.execute(
            "SELECT id FROM plantings WHERE id = ?", (planting_id,)
        ).fetchone()
        if not existing:
            return None, "Planting not found."

        if updates:
            updates.append("updated_at = CURRENT_TIMESTAMP")
            params.append(planting_id)
            conn.execute(
                f"UPDATE plantings SET {', '.join(updates)} WHERE id = ?",
                params
            )
            conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.warning("Could not update planting %s: %s", planting_id, e)
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()

    logger.info("Updated planting %s: %s", planting_id, sorted(k for k in data if k in PLANTING_UPDATE_FIELDS))
    return get_planting(planting_id), None


def delete_planting(planting_id):
    """
    Delete a planting.

    Returns:
        (True, None) on success, (False, error_message) on failure.
    """
    conn = get_db()
    try:
        existing = conn.execute(
            "SELECT id FROM plantings WHERE id = ?", (planting_id,)
        ).fetchone()
        if not existing:
            return False, "Planting not found."

        conn.execute("DELETE FROM plantings WHERE id = ?", (planting_id,))
        conn.commit()
        logger.info("Deleted planting %s", planting_id)
        return True, None
    except sqlite3.Error as e:
        conn.rollback()
        logger.warning("Could not delete planting %s: %s", planting_id, e)
        return False, f"Database error: {str(e)}"
    finally:
        conn.close()
