"""
plant_picker.py — Filtered, paginated plant search for the empty-cell flow.

The picker only answers "which plant?". It never touches the grid; the bed
workspace decides where the chosen plant goes.

Filters:
- name: free text, committed only after SEARCH_DEBOUNCE_SECONDS without
  further typing
- cycle: 'all' or one of PLANT_TYPES
- page: 1-based, reset to 1 whenever a filter changes
"""

import math
import time

from models import PLANT_TYPES


SEARCH_DEBOUNCE_SECONDS = 0.4
PICKER_PER_PAGE = 12
ALL_TYPES = 'all'


class PlantPicker:

    def __init__(self, catalog, per_page=PICKER_PER_PAGE,
                 debounce_seconds=SEARCH_DEBOUNCE_SECONDS, clock=time.monotonic):
        self.catalog = catalog
        self.per_page = per_page
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self.is_open = False
        self._reset()

    def _reset(self):
        self.input_value = ''
        self._typed_at = None
        self._name = ''
        self.cycle = ALL_TYPES
        self._page = 1
        self.last_result = None

    def open(self):
        self._reset()
        self.is_open = True

    def close(self):
        self._reset()
        self.is_open = False

    def type_name(self, text):
        """Record raw input; it becomes the name filter once the debounce elapses."""
        self.input_value = text or ''
        self._typed_at = self._clock()

    def _settle(self):
        if self._typed_at is None:
            return
        if self._clock() - self._typed_at < self.debounce_seconds:
            return
        self._typed_at = None
        if self.input_value != self._name:
            self._name = self.input_value
            self._page = 1

    @property
    def name_pending(self):
        """True while typed text is still waiting out the debounce delay."""
        self._settle()
        return self._typed_at is not None

    @property
    def settle_in(self):
        """Seconds until the pending text becomes the name filter (0 if none)."""
        self._settle()
        if self._typed_at is None:
            return 0
        return max(0, self.debounce_seconds - (self._clock() - self._typed_at))

    @property
    def name_filter(self):
        self._settle()
        return self._name

    @property
    def page(self):
        self._settle()
        return self._page

    def set_cycle(self, cycle):
        cycle = (cycle or ALL_TYPES).strip().lower()
        if cycle != ALL_TYPES and cycle not in PLANT_TYPES:
            raise ValueError(f"Unknown plant type: {cycle}")
        if cycle != self.cycle:
            self.cycle = cycle
            self._page = 1

    def set_page(self, page):
        self._settle()
        self._page = max(1, int(page))

    def params(self):
        """Query parameters for the catalog's list_plants."""
        name = self.name_filter
        return {
            'name': name or None,
            'cycle': None if self.cycle == ALL_TYPES else self.cycle,
            'page': self.page,
            'per_page': self.per_page,
        }

    def fetch(self):
        """Fetch the current page from the catalog and remember it."""
        self.last_result = self.catalog.list_plants(**self.params())
        return self.last_result

    @property
    def total_pages(self):
        if not self.last_result:
            return 0
        return math.ceil(self.last_result['total'] / self.per_page)

    def choose(self, plant_id):
        """Return the summary of a plant from the last fetched page, or None."""
        if not self.last_result:
            return None
        for plant in self.last_result['items']:
            if plant.id == plant_id:
                return plant
        return None
