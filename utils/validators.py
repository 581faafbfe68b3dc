"""
utils/validators.py — Input validation helpers for the JSON routes.

Validates:
- Grid coordinates (non-negative integers, set in pairs)
- Flags (JSON booleans)
- Bed dimensions (whole feet, 0 or more, or empty)
- Zoom levels (S / M / L)
- Plant type filters ('all' or a known plant type)
- Planting statuses

Each helper returns the cleaned value or raises ValueError with a message
suitable for the user.
"""

from models import PLANT_TYPES, PLANTING_STATUSES


def parse_int(value, label):
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a whole number.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a whole number.")


def parse_bool(value, label):
    """JSON true/false only; strings and numbers are refused."""
    if not isinstance(value, bool):
        raise ValueError(f"{label} must be true or false.")
    return value


def parse_coordinate(value, label):
    result = parse_int(value, label)
    if result < 0:
        raise ValueError(f"{label} cannot be negative.")
    return result


def parse_grid_point(data):
    """Read an (x, y) pair from a JSON body or query dict."""
    if data is None:
        raise ValueError("Grid coordinates are required.")
    return parse_coordinate(data.get('x'), 'x'), parse_coordinate(data.get('y'), 'y')


def parse_dimension(value, label):
    """Bed width/length in feet. Empty values mean 'not set'."""
    if value is None or value == '':
        return None
    result = parse_int(value, label)
    if result < 0:
        raise ValueError(f"{label} cannot be negative.")
    return result


def validate_zoom(zoom):
    zoom = (zoom or '').strip().upper()
    if zoom not in ('S', 'M', 'L'):
        raise ValueError("Zoom must be S, M or L.")
    return zoom


def validate_plant_type(cycle):
    cycle = (cycle or 'all').strip().lower()
    if cycle != 'all' and cycle not in PLANT_TYPES:
        raise ValueError(f"Unknown plant type: {cycle}")
    return cycle


def validate_status(status):
    if status not in PLANTING_STATUSES:
        raise ValueError(f"Unknown status: {status}")
    return status


def check_coordinate_pair(data):
    """grid_x and grid_y must be given together and be both set or both empty."""
    has_x, has_y = 'grid_x' in data, 'grid_y' in data
    if has_x != has_y or (has_x and (data['grid_x'] is None) != (data['grid_y'] is None)):
        raise ValueError("grid_x and grid_y must be set together.")
