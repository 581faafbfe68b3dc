"""
routes/beds.py — Bed detail page and layout grid interactions.

Provides:
- GET    /beds/<bed_id>                          — Bed detail page with the layout grid
- GET    /beds/<bed_id>/layout                   — JSON: grid view (re-fetches plantings)
- POST   /beds/<bed_id>/zoom                     — Set zoom level (S, M, L)
- POST   /beds/<bed_id>/cells/click              — Click an empty cell: open the picker
- POST   /beds/<bed_id>/picker                   — Update picker filters and fetch a page
- POST   /beds/<bed_id>/picker/select            — Place the chosen plant at the pending cell
- POST   /beds/<bed_id>/picker/close             — Close the picker
- POST   /beds/<bed_id>/drag/start               — Start dragging a planting
- POST   /beds/<bed_id>/drag/hover               — Pointer over a cell
- POST   /beds/<bed_id>/drag/leave               — Pointer left the grid
- POST   /beds/<bed_id>/drag/end                 — Drop
- POST   /beds/<bed_id>/drag/cancel              — Abort the gesture
- POST   /beds/<bed_id>/plantings/<id>/click     — Select (locked) / deselect (unlocked)
- POST   /beds/<bed_id>/plantings/<id>/lock      — Lock position
- POST   /beds/<bed_id>/plantings/<id>/unlock    — Unlock position
- POST   /beds/<bed_id>/plantings/<id>/delete    — Remove an unlocked planting
- POST   /beds/<bed_id>/plantings/<id>/details   — Update status / notes
- DELETE /beds/<bed_id>/workspace                — Discard the page state

Every JSON answer carries the current grid view under 'layout' and pending
user notifications under 'messages'. Requests for a bed that does not exist
answer 404 and leave no workspace behind.
"""

import uuid

from flask import Blueprint, render_template, request, jsonify, session, current_app

import database
import plant_database
from models import PLANT_TYPES
from bed_workspace import BedWorkspace
from utils.validators import (
    parse_grid_point, parse_int, validate_zoom, validate_plant_type, validate_status,
)

beds_bp = Blueprint('beds', __name__, url_prefix='/beds')


# ========================================
# Helpers
# ========================================

def _workspace_key(bed_id):
    token = session.get('workspace_token')
    if not token:
        token = uuid.uuid4().hex
        session['workspace_token'] = token
    return token, bed_id


def _get_workspace(bed_id):
    """
    Workspace for this browser session and bed, created on first use.

    Returns None when the bed does not exist; a workspace whose bed has
    disappeared since it was opened is discarded.
    """
    config = current_app.config
    registry = current_app.extensions['bed_workspaces']
    key = _workspace_key(bed_id)

    def factory():
        return BedWorkspace(
            bed_id,
            store=database,
            catalog=plant_database,
            flash_seconds=config['FLASH_INVALID_SECONDS'],
            lock_animation_seconds=config['LOCK_ANIMATION_SECONDS'],
            debounce_seconds=config['SEARCH_DEBOUNCE_SECONDS'],
            per_page=config['PICKER_PER_PAGE'],
        )

    if database.get_bed(bed_id) is None:
        registry.discard(key)
        return None

    workspace = registry.get_or_create(key, factory)
    if not workspace.found:
        workspace.refresh()
        if not workspace.found:
            registry.discard(key)
            return None
    return workspace


def _respond(workspace, success=True, status=200, **extra):
    body = {
        'success': success,
        'layout': workspace.grid_view(),
        'messages': [
            {'category': category, 'message': message}
            for category, message in workspace.pop_notifications()
        ],
    }
    body.update(extra)
    return jsonify(body), status


def _error(message, status=400):
    return jsonify({'success': False, 'error': message}), status


def _not_found():
    return _error('Bed not found.', 404)


def _body():
    return request.get_json(silent=True) or {}


def _picker_items(result):
    return [p.to_dict() for p in result['items']] if result else []


# ========================================
# Page
# ========================================

@beds_bp.route('/<int:bed_id>')
def bed_detail(bed_id):
    """Bed detail page — header, zoom controls, grid and picker dialog."""
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return render_template('bed_detail.html', bed=None), 404

    with workspace.lock:
        workspace.refresh()
        garden = database.get_garden(workspace.bed.garden_id)
        return render_template(
            'bed_detail.html',
            bed=workspace.bed,
            garden=garden,
            layout=workspace.grid_view(),
            messages=workspace.pop_notifications(),
            plant_types=PLANT_TYPES,
        )


@beds_bp.route('/<int:bed_id>/layout')
def layout(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        workspace.refresh()
        return _respond(workspace)


@beds_bp.route('/<int:bed_id>/zoom', methods=['POST'])
def set_zoom(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    try:
        zoom = validate_zoom(_body().get('zoom'))
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        workspace.set_zoom(zoom)
        return _respond(workspace)


@beds_bp.route('/<int:bed_id>/workspace', methods=['DELETE'])
def close_workspace(bed_id):
    registry = current_app.extensions['bed_workspaces']
    closed = registry.discard(_workspace_key(bed_id))
    return jsonify({'success': True, 'closed': closed})


# ========================================
# Empty cells and picker
# ========================================

@beds_bp.route('/<int:bed_id>/cells/click', methods=['POST'])
def click_cell(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    try:
        x, y = parse_grid_point(_body())
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        workspace.refresh()
        opened = workspace.click_cell(x, y)
        result = workspace.picker.fetch() if opened else None
        return _respond(
            workspace, success=opened,
            picker={'items': _picker_items(result), 'total_pages': workspace.picker.total_pages},
        )


@beds_bp.route('/<int:bed_id>/picker', methods=['POST'])
def picker_query(bed_id):
    """
    Update picker filters and answer with the current page.

    A typed name only becomes a filter once the debounce delay has passed
    without further typing. Until then the catalog is not queried: the
    previous page is returned with 'pending' set and 'settle_in' seconds to
    wait before asking again.
    """
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    data = _body()

    with workspace.lock:
        picker = workspace.picker
        if not picker.is_open:
            return _error('The plant picker is not open.', 409)

        try:
            if 'name' in data:
                picker.type_name(data.get('name'))
            if 'cycle' in data:
                picker.set_cycle(validate_plant_type(data.get('cycle')))
            if 'page' in data:
                picker.set_page(parse_int(data.get('page'), 'page'))
        except ValueError as e:
            return _error(str(e))

        filters_changed = 'cycle' in data or 'page' in data
        result = picker.last_result
        if result is None or filters_changed or not picker.name_pending:
            try:
                result = picker.fetch()
            except Exception as e:
                current_app.logger.exception("Plant search failed")
                return _error(str(e), 500)

        return jsonify({
            'success': True,
            'items': _picker_items(result),
            'total': result['total'],
            'page': picker.page,
            'total_pages': picker.total_pages,
            'name': picker.name_filter,
            'cycle': picker.cycle,
            'pending': picker.name_pending,
            'settle_in': picker.settle_in,
        })


@beds_bp.route('/<int:bed_id>/picker/select', methods=['POST'])
def picker_select(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    try:
        plant_id = parse_int(_body().get('plant_id'), 'plant_id')
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        plant = workspace.picker.choose(plant_id) or plant_database.get_plant_summary(plant_id)
        if plant is None:
            return _error('Plant not found.', 404)
        created = workspace.select_plant(plant)
        return _respond(workspace, success=created)


@beds_bp.route('/<int:bed_id>/picker/close', methods=['POST'])
def picker_close(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        workspace.close_picker()
        return _respond(workspace)


# ========================================
# Drag and drop
# ========================================

@beds_bp.route('/<int:bed_id>/drag/start', methods=['POST'])
def drag_start(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    try:
        planting_id = parse_int(_body().get('planting_id'), 'planting_id')
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        workspace.refresh()
        started = workspace.start_drag(planting_id)
        return _respond(workspace, success=started)


@beds_bp.route('/<int:bed_id>/drag/hover', methods=['POST'])
def drag_hover(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    try:
        x, y = parse_grid_point(_body())
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        valid = workspace.hover(x, y)
        return _respond(workspace, valid=bool(valid))


@beds_bp.route('/<int:bed_id>/drag/leave', methods=['POST'])
def drag_leave(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        workspace.leave()
        return _respond(workspace)


@beds_bp.route('/<int:bed_id>/drag/end', methods=['POST'])
def drag_end(bed_id):
    """Drop. An optional final {x, y} is applied as a last hover first."""
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    data = _body()

    with workspace.lock:
        # Pick up locks and moves made elsewhere during the gesture
        workspace.refresh()
        if data.get('outside'):
            workspace.leave()
        elif 'x' in data or 'y' in data:
            try:
                x, y = parse_grid_point(data)
            except ValueError as e:
                workspace.cancel_drag()
                return _error(str(e))
            workspace.hover(x, y)

        outcome = workspace.end_drag()
        return _respond(workspace, success=outcome != 'failed', outcome=outcome)


@beds_bp.route('/<int:bed_id>/drag/cancel', methods=['POST'])
def drag_cancel(bed_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        workspace.cancel_drag()
        return _respond(workspace)


# ========================================
# Planted cells
# ========================================

@beds_bp.route('/<int:bed_id>/plantings/<int:planting_id>/click', methods=['POST'])
def planting_click(bed_id, planting_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        selected = workspace.click_anchor(planting_id)
        selected_planting = workspace.selected_planting
        return _respond(
            workspace,
            selected=selected_planting.to_dict() if selected_planting else None,
            selected_id=selected,
        )


@beds_bp.route('/<int:bed_id>/plantings/<int:planting_id>/lock', methods=['POST'])
def planting_lock(bed_id, planting_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        return _respond(workspace, success=workspace.lock_planting(planting_id))


@beds_bp.route('/<int:bed_id>/plantings/<int:planting_id>/unlock', methods=['POST'])
def planting_unlock(bed_id, planting_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        return _respond(workspace, success=workspace.unlock_planting(planting_id))


@beds_bp.route('/<int:bed_id>/plantings/<int:planting_id>/delete', methods=['POST'])
def planting_delete(bed_id, planting_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    with workspace.lock:
        return _respond(workspace, success=workspace.delete_planting(planting_id))


@beds_bp.route('/<int:bed_id>/plantings/<int:planting_id>/details', methods=['POST'])
def planting_details(bed_id, planting_id):
    workspace = _get_workspace(bed_id)
    if workspace is None:
        return _not_found()

    data = _body()
    try:
        status = validate_status(data['status']) if 'status' in data else None
    except ValueError as e:
        return _error(str(e))

    with workspace.lock:
        updated = workspace.update_details(planting_id, status=status, notes=data.get('notes'))
        return _respond(workspace, success=updated)
