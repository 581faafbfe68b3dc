"""
routes/api.py — REST API for beds and plantings.

Provides:
- GET    /api/beds/<bed_id>              — Bed record
- PATCH  /api/beds/<bed_id>              — Update name, dimensions, notes
- GET    /api/beds/<bed_id>/plantings    — Plantings of a bed (with plant summaries)
- POST   /api/plantings                  — Create a planting
- PATCH  /api/plantings/<planting_id>    — Update a planting
- DELETE /api/plantings/<planting_id>    — Delete a planting

These are plain data endpoints. Placement rules are enforced by the bed page
(routes/beds.py) before it calls the same store functions.
"""

from flask import Blueprint, request, jsonify

from database import (
    get_bed, update_bed, list_plantings_for_bed,
    create_planting, update_planting, delete_planting,
)
from utils.validators import (
    parse_int, parse_bool, parse_coordinate, parse_dimension, check_coordinate_pair,
)

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _error(message, status=400):
    return jsonify({'success': False, 'error': message}), status


# ========================================
# Beds
# ========================================

@api_bp.route('/beds/<int:bed_id>')
def bed_get(bed_id):
    bed = get_bed(bed_id)
    if not bed:
        return _error('Bed not found.', 404)
    return jsonify({'success': True, 'bed': bed.to_dict()})


@api_bp.route('/beds/<int:bed_id>', methods=['PATCH'])
def bed_update(bed_id):
    data = dict(request.get_json(silent=True) or {})
    try:
        for key in ('width_ft', 'length_ft'):
            if key in data:
                data[key] = parse_dimension(data[key], key)
    except ValueError as e:
        return _error(str(e))

    bed, error = update_bed(bed_id, data)
    if error:
        return _error(error, 404 if error == 'Bed not found.' else 400)
    return jsonify({'success': True, 'bed': bed.to_dict()})


@api_bp.route('/beds/<int:bed_id>/plantings')
def bed_plantings(bed_id):
    if not get_bed(bed_id):
        return _error('Bed not found.', 404)
    plantings = list_plantings_for_bed(bed_id)
    return jsonify({'success': True, 'plantings': [p.to_dict() for p in plantings]})


# ========================================
# Plantings
# ========================================

@api_bp.route('/plantings', methods=['POST'])
def planting_create():
    data = request.get_json(silent=True) or {}
    try:
        bed_id = parse_int(data.get('bed_id'), 'bed_id')
        plant_id = parse_int(data.get('plant_id'), 'plant_id')
        grid_x = parse_coordinate(data['grid_x'], 'grid_x') if data.get('grid_x') is not None else None
        grid_y = parse_coordinate(data['grid_y'], 'grid_y') if data.get('grid_y') is not None else None
        quantity = parse_int(data.get('quantity', 1), 'quantity')
    except ValueError as e:
        return _error(str(e))

    planting, error = create_planting(bed_id, plant_id, grid_x=grid_x, grid_y=grid_y, quantity=quantity)
    if error:
        return _error(error, 404 if error == 'Bed not found.' else 400)
    return jsonify({'success': True, 'planting': planting.to_dict()}), 201


@api_bp.route('/plantings/<int:planting_id>', methods=['PATCH'])
def planting_update(planting_id):
    data = dict(request.get_json(silent=True) or {})
    try:
        check_coordinate_pair(data)
        for key in ('grid_x', 'grid_y'):
            if data.get(key) is not None:
                data[key] = parse_coordinate(data[key], key)
        if 'quantity' in data:
            data['quantity'] = parse_int(data['quantity'], 'quantity')
        if 'is_locked' in data:
            data['is_locked'] = parse_bool(data['is_locked'], 'is_locked')
    except ValueError as e:
        return _error(str(e))

    planting, error = update_planting(planting_id, data)
    if error:
        return _error(error, 404 if error == 'Planting not found.' else 400)
    return jsonify({'success': True, 'planting': planting.to_dict()})


@api_bp.route('/plantings/<int:planting_id>', methods=['DELETE'])
def planting_delete(planting_id):
    success, error = delete_planting(planting_id)
    if not success:
        return _error(error, 404 if error == 'Planting not found.' else 400)
    return jsonify({'success': True})
