"""
routes/plant_db.py — Plant catalog API routes.

Provides:
- GET  /plants/         — Paginated list (name, cycle, page, per_page)
- GET  /plants/<id>     — Get plant details
- GET  /plants/count    — Number of plants in the catalog
- GET  /plants/health   — Catalog database health
- POST /plants/add      — Add a new plant
- POST /plants/edit     — Edit a plant
- POST /plants/delete   — Delete a plant
"""

from flask import Blueprint, request, jsonify

from plant_database import (
    check_plant_db_health,
    list_plants,
    get_plant,
    create_plant,
    update_plant,
    delete_plant,
    get_plant_count,
)
from utils.validators import validate_plant_type

plant_db_bp = Blueprint('plant_db', __name__, url_prefix='/plants')

MAX_PER_PAGE = 100


def _payload():
    """Support both JSON bodies and form posts."""
    if request.is_json:
        return request.get_json() or {}
    return request.form


def _optional_float(value):
    if value is None or value == '':
        return None
    return float(value)


# ========================================
# Plant List and Details
# ========================================

@plant_db_bp.route('/')
def list_catalog():
    """List plants one page at a time (JSON API)."""
    name = request.args.get('name', '').strip() or None
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), MAX_PER_PAGE)

    try:
        cycle = validate_plant_type(request.args.get('cycle'))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    try:
        result = list_plants(
            name=name,
            cycle=None if cycle == 'all' else cycle,
            page=page,
            per_page=per_page,
        )
        return jsonify({
            'success': True,
            'items': [p.to_dict() for p in result['items']],
            'total': result['total'],
            'page': result['page'],
            'per_page': result['per_page'],
        })
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


@plant_db_bp.route('/<int:plant_id>')
def get_plant_detail(plant_id):
    """Get a single plant with all details (JSON API)."""
    try:
        plant = get_plant(plant_id)
        if not plant:
            return jsonify({'success': False, 'error': 'Plant not found.'}), 404
        return jsonify({'success': True, 'plant': plant})
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


@plant_db_bp.route('/count')
def plant_count():
    """Get plant count (JSON API)."""
    try:
        return jsonify({'success': True, 'count': get_plant_count()})
    except Exception as e:
        return jsonify({'success': False, 'error': str(e)}), 500


@plant_db_bp.route('/health')
def plant_db_health():
    """Check plant database health (JSON API)."""
    healthy, message = check_plant_db_health()
    return jsonify({'success': healthy, 'message': message})


# ========================================
# Plant CRUD
# ========================================

@plant_db_bp.route('/add', methods=['POST'])
def add_plant():
    """Add a new plant."""
    data = _payload()

    try:
        spacing = _optional_float(data.get('spacing_inches'))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'Spacing must be a number.'}), 400

    plant_id, error = create_plant(
        common_name=data.get('common_name', ''),
        plant_type=data.get('plant_type') or None,
        spacing_inches=spacing,
        scientific_name=data.get('scientific_name') or None,
        cultivar_name=data.get('cultivar_name') or None,
        family=data.get('family') or None,
        image_url=data.get('image_url') or None,
    )

    if plant_id:
        return jsonify({'success': True, 'plant_id': plant_id, 'plant': get_plant(plant_id)})
    return jsonify({'success': False, 'error': error}), 400


@plant_db_bp.route('/edit', methods=['POST'])
def edit_plant():
    """Edit a plant's catalog information."""
    data = _payload()
    plant_id = data.get('plant_id')

    if not plant_id:
        return jsonify({'success': False, 'error': 'Missing plant id.'}), 400

    try:
        spacing = _optional_float(data.get('spacing_inches'))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'Spacing must be a number.'}), 400

    success, error = update_plant(
        plant_id=int(plant_id),
        common_name=data.get('common_name'),
        plant_type=data.get('plant_type'),
        spacing_inches=spacing,
        scientific_name=data.get('scientific_name'),
        family=data.get('family'),
    )

    if success:
        return jsonify({'success': True, 'plant': get_plant(int(plant_id))})
    return jsonify({'success': False, 'error': error}), 400


@plant_db_bp.route('/delete', methods=['POST'])
def remove_plant():
    """Delete a plant."""
    data = _payload()
    plant_id = data.get('plant_id')

    if not plant_id:
        return jsonify({'success': False, 'error': 'Missing plant id.'}), 400

    success, error = delete_plant(int(plant_id))
    if success:
        return jsonify({'success': True})
    return jsonify({'success': False, 'error': error}), 400
