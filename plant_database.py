"""
plant_database.py — Plant catalog used by the plant picker.

This module manages a SEPARATE SQLite database for plant data:
- Common names with a normalized version for searching and duplicate detection
- Plant type (the picker's "cycle" filter) and spacing in inches, which drives
  the grid footprint of every planting of that plant
- Paginated listing for the picker

The catalog is independent from the garden database; plantings only store
the plant id and summaries are joined in at read time.
"""

import sqlite3
import os
import unicodedata
import re
import logging
from typing import Optional, List, Dict, Any, Tuple, Iterable

from models import PlantSummary, PLANT_TYPES


logger = logging.getLogger(__name__)


# Default path for plant database (can be overridden via env var)
def get_plant_db_path() -> str:
    """Get the plant database path from environment or default."""
    default_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'plant_database.db')
    return os.environ.get('PLANT_DB_PATH', default_path)


# ========================================
# Normalization Helper
# ========================================

def normalize_name(name: str) -> str:
    """
    Normalize a plant name for duplicate detection and searching.

    Rules:
    - lowercase
    - trim whitespace
    - remove diacritics (accents)
    - replace hyphens and punctuation with spaces
    - collapse multiple whitespace to single space

    Examples:
        "Cherry Tomato" -> "cherry tomato"
        "Bok-Choy" -> "bok choy"
        "Jalapeño" -> "jalapeno"
        "  Sweet   Basil  " -> "sweet basil"
    """
    if not name:
        return ""

    result = name.lower().strip()

    # NFD decomposition separates base characters from combining diacritical marks
    result = unicodedata.normalize('NFD', result)
    result = ''.join(c for c in result if unicodedata.category(c) != 'Mn')

    result = re.sub(r'[-_.,;:\'\"()]+', ' ', result)
    result = re.sub(r'\s+', ' ', result)

    return result.strip()


# ========================================
# Database Connection Management
# ========================================

def get_plant_db() -> sqlite3.Connection:
    """
    Get a connection to the plant database.

    Creates the database directory and file if they don't exist.
    Uses WAL mode for concurrent read performance.
    """
    db_path = get_plant_db_path()
    os.makedirs(os.path.dirname(db_path) or '.', exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_plant_db():
    """
    Initialize the plant database schema.

    Idempotent - safe to call multiple times.
    """
    conn = get_plant_db()
    cursor = conn.cursor()

    # - plant_type: one of PLANT_TYPES or NULL when unknown
    # - spacing_inches: recommended spacing; NULL means "use the 1 ft default"
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS plants (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            common_name TEXT NOT NULL,
            common_name_norm TEXT NOT NULL UNIQUE,
            scientific_name TEXT,
            cultivar_name TEXT,
            plant_type TEXT,
            spacing_inches REAL,
            family TEXT,
            image_url TEXT,
            source TEXT DEFAULT 'user',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plants_common_name_norm
        ON plants(common_name_norm)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_plants_plant_type
        ON plants(plant_type)
    """)

    conn.commit()
    conn.close()


def check_plant_db_health() -> Tuple[bool, str]:
    """
    Check if the plant database is healthy and accessible.

    Returns:
        Tuple of (is_healthy, message)
    """
    try:
        conn = get_plant_db()
        count = conn.execute("SELECT COUNT(*) FROM plants").fetchone()[0]
        conn.close()
        return True, f"Plant database OK ({count} plants)"
    except sqlite3.Error as e:
        return False, f"Database error: {str(e)}"


def _row_to_summary(row) -> PlantSummary:
    return PlantSummary(
        id=row['id'],
        common_name=row['common_name'],
        scientific_name=row['scientific_name'],
        cultivar_name=row['cultivar_name'],
        plant_type=row['plant_type'],
        spacing_inches=row['spacing_inches'],
        family=row['family'],
        image_url=row['image_url'],
        source=row['source'] or 'user',
    )


# ========================================
# Plant CRUD Operations
# ========================================

def create_plant(
    common_name: str,
    plant_type: Optional[str] = None,
    spacing_inches: Optional[float] = None,
    scientific_name: Optional[str] = None,
    cultivar_name: Optional[str] = None,
    family: Optional[str] = None,
    image_url: Optional[str] = None,
    source: str = 'user'
) -> Tuple[Optional[int], Optional[str]]:
    """
    Create a new plant in the catalog.

    Args:
        common_name: Display name (required), e.g. "Tomato"
        plant_type: One of PLANT_TYPES, or None
        spacing_inches: Recommended spacing; controls the grid footprint
        scientific_name: e.g. "Solanum lycopersicum"

    Returns:
        Tuple of (plant_id, error_message)
    """
    if not common_name or not common_name.strip():
        return None, "A common name is required."

    if plant_type is not None:
        plant_type = plant_type.strip().lower() or None
    if plant_type is not None and plant_type not in PLANT_TYPES:
        return None, f"Unknown plant type: {plant_type}"

    if spacing_inches is not None and spacing_inches < 0:
        return None, "Spacing cannot be negative."

    common_name = common_name.strip()
    common_name_norm = normalize_name(common_name)

    conn = get_plant_db()
    cursor = conn.cursor()

    try:
        existing = cursor.execute(
            "SELECT id, common_name FROM plants WHERE common_name_norm = ?",
            (common_name_norm,)
        ).fetchone()

        if existing:
            return None, f"This plant already exists: {existing['common_name']}"

        cursor.execute(
            """INSERT INTO plants (common_name, common_name_norm, scientific_name, cultivar_name,
               plant_type, spacing_inches, family, image_url, source)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (common_name, common_name_norm, scientific_name, cultivar_name,
             plant_type, spacing_inches, family, image_url, source)
        )
        plant_id = cursor.lastrowid
        conn.commit()
        return plant_id, None

    except sqlite3.Error as e:
        conn.rollback()
        logger.warning("Could not create plant %r: %s", common_name, e)
        return None, f"Database error: {str(e)}"
    finally:
        conn.close()


def get_plant(plant_id: int) -> Optional[Dict[str, Any]]:
    """
    Get a plant by ID with all stored fields.

    Returns:
        Dict with plant data or None if not found
    """
    conn = get_plant_db()
    try:
        row = conn.execute("SELECT * FROM plants WHERE id = ?", (plant_id,)).fetchone()
        if not row:
            return None
        plant = dict(row)
        plant.pop('common_name_norm', None)
        return plant
    finally:
        conn.close()


def get_plant_summary(plant_id: int) -> Optional[PlantSummary]:
    conn = get_plant_db()
    try:
        row = conn.execute("SELECT * FROM plants WHERE id = ?", (plant_id,)).fetchone()
        return _row_to_summary(row) if row else None
    finally:
        conn.close()


def get_plant_summaries(plant_ids: Iterable[int]) -> Dict[int, PlantSummary]:
    """Batch lookup used when attaching plant summaries to plantings."""
    ids = sorted(set(plant_ids))
    if not ids:
        return {}

    conn = get_plant_db()
    try:
        placeholders = ', '.join('?' for _ in ids)
        rows = conn.execute(
            f"SELECT * FROM plants WHERE id IN ({placeholders})", ids
        ).fetchall()
        return {row['id']: _row_to_summary(row) for row in rows}
    finally:
        conn.close()


def update_plant(
    plant_id: int,
    common_name: Optional[str] = None,
    plant_type: Optional[str] = None,
    spacing_inches: Optional[float] = None,
    scientific_name: Optional[str] = None,
    family: Optional[str] = None
) -> Tuple[bool, Optional[str]]:
    """
    Update a plant's catalog information.

    Changing spacing_inches changes the footprint of every planting of this
    plant on the next occupancy rebuild; existing positions are not revisited.

    Returns:
        Tuple of (success, error_message)
    """
    conn = get_plant_db()
    cursor = conn.cursor()

    try:
        existing = cursor.execute(
            "SELECT * FROM plants WHERE id = ?", (plant_id,)
        ).fetchone()

        if not existing:
            return False, "Plant not found."

        updates = []
        params = []

        if common_name is not None:
            common_name = common_name.strip()
            if not common_name:
                return False, "The common name cannot be empty."

            common_name_norm = normalize_name(common_name)
            dup = cursor.execute(
                "SELECT id FROM plants WHERE common_name_norm = ? AND id != ?",
                (common_name_norm, plant_id)
            ).fetchone()
            if dup:
                return False, "Another plant with this name already exists."

            updates.append("common_name = ?")
            params.append(common_name)
            updates.append("common_name_norm = ?")
            params.append(common_name_norm)

        if plant_type is not None:
            plant_type = plant_type.strip().lower()
            if plant_type not in PLANT_TYPES:
                return False, f"Unknown plant type: {plant_type}"
            updates.append("plant_type = ?")
            params.append(plant_type)

        if spacing_inches is not None:
            if spacing_inches < 0:
                return False, "Spacing cannot be negative."
            updates.append("spacing_inches = ?")
            params.append(spacing_inches)

        if scientific_name is not None:
            updates.append("scientific_name = ?")
            params.append(scientific_name.strip() or None)

        if family is not None:
            updates.append("family = ?")
            params.append(family.strip() or None)

        if updates:
            updates.append("updated_at = CURRENT_TIMESTAMP")
            params.append(plant_id)

            cursor.execute(
                f"UPDATE plants SET {', '.join(updates)} WHERE id = ?",
                params
            )
            conn.commit()

        return True, None

    except sqlite3.Error as e:
        conn.rollback()
        return False, f"Database error: {str(e)}"
    finally:
        conn.close()


def delete_plant(plant_id: int) -> Tuple[bool, Optional[str]]:
    """
    Delete a plant from the catalog.

    Returns:
        Tuple of (success, error_message)
    """
    conn = get_plant_db()
    cursor = conn.cursor()

    try:
        existing = cursor.execute(
            "SELECT id FROM plants WHERE id = ?", (plant_id,)
        ).fetchone()

        if not existing:
            return False, "Plant not found."

        cursor.execute("DELETE FROM plants WHERE id = ?", (plant_id,))
        conn.commit()
        return True, None

    except sqlite3.Error as e:
        conn.rollback()
        return False, f"Database error: {str(e)}"
    finally:
        conn.close()


# ========================================
# Listing and Search
# ========================================

def list_plants(
    name: Optional[str] = None,
    cycle: Optional[str] = None,
    page: int = 1,
    per_page: int = 20
) -> Dict[str, Any]:
    """
    List catalog plants one page at a time.

    Args:
        name: Partial match on the normalized common name
        cycle: Plant type filter (one of PLANT_TYPES)
        page: 1-based page number
        per_page: Page size

    Returns:
        {'items': [PlantSummary, ...], 'total': int, 'page': int, 'per_page': int}
    """
    page = max(1, int(page))
    per_page = max(1, int(per_page))

    where = []
    params = []

    name_norm = normalize_name(name) if name else ''
    if name_norm:
        where.append("common_name_norm LIKE ?")
        params.append(f"%{name_norm}%")

    if cycle:
        where.append("plant_type = ?")
        params.append(cycle.strip().lower())

    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    conn = get_plant_db()
    try:
        total = conn.execute(
            f"SELECT COUNT(*) FROM plants {where_sql}", params
        ).fetchone()[0]

        rows = conn.execute(
            f"""SELECT * FROM plants {where_sql}
                ORDER BY common_name_norm
                LIMIT ? OFFSET ?""",
            params + [per_page, (page - 1) * per_page]
        ).fetchall()

        return {
            'items': [_row_to_summary(row) for row in rows],
            'total': total,
            'page': page,
            'per_page': per_page,
        }
    finally:
        conn.close()


def get_plant_count() -> int:
    """Get the total number of plants in the catalog."""
    conn = get_plant_db()
    try:
        return conn.execute("SELECT COUNT(*) FROM plants").fetchone()[0]
    finally:
        conn.close()


# ========================================
# Default Catalog
# ========================================

DEFAULT_PLANTS = [
    # (common_name, scientific_name, plant_type, spacing_inches, family)
    ('Tomato', 'Solanum lycopersicum', 'vegetable', 24, 'Solanaceae'),
    ('Bell Pepper', 'Capsicum annuum', 'vegetable', 18, 'Solanaceae'),
    ('Lettuce', 'Lactuca sativa', 'vegetable', 8, 'Asteraceae'),
    ('Carrot', 'Daucus carota', 'vegetable', 3, 'Apiaceae'),
    ('Zucchini', 'Cucurbita pepo', 'vegetable', 36, 'Cucurbitaceae'),
    ('Sweet Basil', 'Ocimum basilicum', 'herb', 12, 'Lamiaceae'),
    ('Rosemary', 'Salvia rosmarinus', 'herb', 24, 'Lamiaceae'),
    ('Marigold', 'Tagetes erecta', 'annual', 10, 'Asteraceae'),
    ('Lavender', 'Lavandula angustifolia', 'perennial', 18, 'Lamiaceae'),
    ('Strawberry', 'Fragaria x ananassa', 'fruit', 12, 'Rosaceae'),
    ('Blueberry', 'Vaccinium corymbosum', 'shrub', 48, 'Ericaceae'),
    ('Garlic', 'Allium sativum', 'bulb', 6, 'Amaryllidaceae'),
]


def seed_plants():
    """Populate the default catalog if it is empty. Idempotent."""
    if get_plant_count() > 0:
        return

    for common_name, scientific_name, plant_type, spacing, family in DEFAULT_PLANTS:
        create_plant(
            common_name,
            plant_type=plant_type,
            spacing_inches=spacing,
            scientific_name=scientific_name,
            family=family,
            source='seed',
        )
    logger.info("Seeded plant catalog with %d plants", len(DEFAULT_PLANTS))
