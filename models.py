"""
models.py — Python dataclasses for the bed layout application.

Maps to the SQLite tables created in database.py and plant_database.py,
plus the derived cell states of the layout grid (never persisted).
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, ClassVar


PLANTING_STATUSES = (
    'planned', 'seedling', 'growing', 'flowering',
    'fruiting', 'harvesting', 'dormant', 'removed',
)

PLANT_TYPES = (
    'vegetable', 'herb', 'annual', 'perennial',
    'shrub', 'tree', 'fruit', 'bulb',
)


@dataclass
class Garden:
    """Garden owning a set of beds."""
    id: Optional[int] = None
    name: str = ""
    notes: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Bed:
    """Rectangular planting area. One grid cell is one square foot."""
    id: Optional[int] = None
    garden_id: int = 0
    name: str = ""
    width_ft: Optional[int] = None
    length_ft: Optional[int] = None
    sun_exposure_override: Optional[str] = None
    soil_amendments: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def cols(self) -> int:
        return self.width_ft or 0

    @property
    def rows(self) -> int:
        return self.length_ft or 0

    @property
    def has_grid(self) -> bool:
        """The layout grid is only available when both dimensions are set."""
        return self.cols > 0 and self.rows > 0

    def to_dict(self):
        return asdict(self)


@dataclass
class PlantSummary:
    """Catalog entry as shown in the picker and attached to plantings."""
    id: int = 0
    common_name: str = ""
    scientific_name: Optional[str] = None
    cultivar_name: Optional[str] = None
    plant_type: Optional[str] = None
    spacing_inches: Optional[float] = None
    family: Optional[str] = None
    image_url: Optional[str] = None
    source: str = "user"

    def to_dict(self):
        return asdict(self)


@dataclass
class Planting:
    """A plant placed (or waiting to be placed) in a bed."""
    id: Optional[int] = None
    bed_id: int = 0
    plant_id: int = 0
    plant: Optional[PlantSummary] = None
    status: str = "planned"
    date_planted: Optional[str] = None
    quantity: int = 1
    notes: Optional[str] = None
    grid_x: Optional[int] = None
    grid_y: Optional[int] = None
    is_locked: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_placed(self) -> bool:
        return self.grid_x is not None and self.grid_y is not None

    @property
    def spacing_inches(self) -> Optional[float]:
        return self.plant.spacing_inches if self.plant else None

    def to_dict(self):
        return asdict(self)


# ========================================
# Grid cell states (derived)
# ========================================

@dataclass(frozen=True)
class EmptyCell:
    kind: ClassVar[str] = 'empty'


@dataclass(frozen=True, eq=False)
class AnchorCell:
    """Top-left origin of a planting's footprint."""
    planting: Planting
    kind: ClassVar[str] = 'anchor'


@dataclass(frozen=True, eq=False)
class ContinuationCell:
    """Covered by a planting's footprint without being its origin."""
    planting: Planting
    kind: ClassVar[str] = 'continuation'


EMPTY = EmptyCell()


@dataclass(frozen=True)
class GridPoint:
    x: int
    y: int

    @property
    def key(self) -> str:
        return f"{self.x}-{self.y}"


@dataclass
class DragSession:
    """State of the single in-progress drag gesture."""
    planting_id: int
    hover_cell: Optional[GridPoint] = None
    is_valid_drop: bool = False
    footprint: int = 1
    cells: frozenset = field(default_factory=frozenset)
