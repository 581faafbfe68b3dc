"""
tests/conftest.py — Shared fixtures: a controllable clock, in-memory
planting store and plant catalog for the layout logic tests.
"""

import os
import tempfile
from dataclasses import replace

import pytest

from models import Bed, Planting, PlantSummary


TOMATO = PlantSummary(id=1, common_name='Tomato', plant_type='vegetable', spacing_inches=24)
LETTUCE = PlantSummary(id=2, common_name='Lettuce', plant_type='vegetable', spacing_inches=8)
BASIL = PlantSummary(id=3, common_name='Sweet Basil', plant_type='herb', spacing_inches=12)
ZUCCHINI = PlantSummary(id=4, common_name='Zucchini', plant_type='vegetable', spacing_inches=36)


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeStore:
    """In-memory stand-in for database.py with switchable failures."""

    def __init__(self):
        self.beds = {}
        self.plantings = {}
        self.calls = []
        self.fail = set()
        self._next_id = 1

    def add_bed(self, bed_id=1, width_ft=4, length_ft=4, name='Test Bed'):
        self.beds[bed_id] = Bed(id=bed_id, garden_id=1, name=name,
                                width_ft=width_ft, length_ft=length_ft)
        return self.beds[bed_id]

    def add_planting(self, plant, x=None, y=None, bed_id=1, is_locked=False):
        """Insert a planting directly, as another client would."""
        planting = Planting(id=self._next_id, bed_id=bed_id, plant_id=plant.id, plant=plant,
                            grid_x=x, grid_y=y, is_locked=is_locked)
        self.plantings[planting.id] = planting
        self._next_id += 1
        return planting

    def calls_of(self, name):
        return [call for call in self.calls if call[0] == name]

    # Store interface

    def get_bed(self, bed_id):
        bed = self.beds.get(bed_id)
        return replace(bed) if bed else None

    def list_plantings_for_bed(self, bed_id):
        return [replace(p) for p in sorted(self.plantings.values(), key=lambda p: p.id)
                if p.bed_id == bed_id]

    def create_planting(self, bed_id, plant_id, grid_x=None, grid_y=None, quantity=1):
        self.calls.append(('create', bed_id, plant_id, grid_x, grid_y))
        if 'create' in self.fail:
            return None, 'Database error: disk I/O error'
        plant = next((p for p in (TOMATO, LETTUCE, BASIL, ZUCCHINI) if p.id == plant_id), None)
        planting = self.add_planting(plant, grid_x, grid_y, bed_id=bed_id)
        return replace(planting), None

    def update_planting(self, planting_id, data):
        self.calls.append(('update', planting_id, dict(data)))
        if 'update' in self.fail:
            return None, 'Database error: disk I/O error'
        planting = self.plantings.get(planting_id)
        if planting is None:
            return None, 'Planting not found.'
        for key, value in data.items():
            setattr(planting, key, value)
        return replace(planting), None

    def delete_planting(self, planting_id):
        self.calls.append(('delete', planting_id))
        if 'delete' in self.fail:
            return False, 'Database error: disk I/O error'
        if self.plantings.pop(planting_id, None) is None:
            return False, 'Planting not found.'
        return True, None


class FakeCatalog:
    """In-memory stand-in for plant_database.list_plants."""

    def __init__(self, plants):
        self.plants = sorted(plants, key=lambda p: p.common_name.lower())
        self.queries = []

    def list_plants(self, name=None, cycle=None, page=1, per_page=20):
        self.queries.append({'name': name, 'cycle': cycle, 'page': page, 'per_page': per_page})
        matches = [
            p for p in self.plants
            if (not name or name.lower() in p.common_name.lower())
            and (not cycle or p.plant_type == cycle)
        ]
        start = (page - 1) * per_page
        return {
            'items': matches[start:start + per_page],
            'total': len(matches),
            'page': page,
            'per_page': per_page,
        }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    store = FakeStore()
    store.add_bed(1, width_ft=4, length_ft=4)
    return store


@pytest.fixture
def catalog():
    return FakeCatalog([TOMATO, LETTUCE, BASIL, ZUCCHINI])


@pytest.fixture
def workspace(store, catalog, clock):
    from bed_workspace import BedWorkspace
    return BedWorkspace(1, store=store, catalog=catalog, clock=clock)


@pytest.fixture
def temp_dbs(monkeypatch):
    """Point both SQLite databases at fresh temporary files."""
    garden_fd, garden_path = tempfile.mkstemp(suffix='.db')
    plant_fd, plant_path = tempfile.mkstemp(suffix='.db')
    monkeypatch.setenv('GARDEN_DB_PATH', garden_path)
    monkeypatch.setenv('PLANT_DB_PATH', plant_path)

    from database import init_db
    from plant_database import init_plant_db
    init_db()
    init_plant_db()

    yield garden_path, plant_path

    for fd, path in ((garden_fd, garden_path), (plant_fd, plant_path)):
        os.close(fd)
        for suffix in ('', '-wal', '-shm'):
            try:
                os.unlink(path + suffix)
            except (FileNotFoundError, PermissionError):
                pass  # Windows may hold the file
