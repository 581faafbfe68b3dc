"""
tests/test_routes.py — End-to-end tests of the bed page JSON endpoints.

Uses the seeded catalog: Tomato (id 1, 24in spacing) and Lettuce (id 3, 8in)
on the seeded 4 x 8 bed (id 1).
"""

import pytest

import plant_database
from app import create_app
from database import get_planting, list_plantings_for_bed, update_planting


TOMATO_ID = 1
LETTUCE_ID = 3


@pytest.fixture
def app(temp_dbs):
    return create_app({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'SECRET_KEY': 'dev-key-for-testing',
        'SEARCH_DEBOUNCE_SECONDS': 0,
    })


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _place(client, plant_id, x, y):
    rv = client.post('/beds/1/cells/click', json={'x': x, 'y': y})
    assert rv.get_json()['success'] is True
    return client.post('/beds/1/picker/select', json={'plant_id': plant_id})


def _messages(rv):
    return [m['message'] for m in rv.get_json()['messages']]


# ========================================
# Layout and picker
# ========================================

class TestLayoutAndPicker:

    def test_layout(self, client):
        data = client.get('/beds/1/layout').get_json()
        layout = data['layout']
        assert data['success'] is True
        assert (layout['cols'], layout['rows']) == (4, 8)
        assert len(layout['cells']) == 8
        assert len(layout['cells'][0]) == 4
        assert layout['zoom'] == 'M'

    def test_layout_missing_bed(self, client, app):
        rv = client.get('/beds/9999/layout')
        assert rv.status_code == 404
        assert len(app.extensions['bed_workspaces']) == 0

    def test_click_opens_picker_with_first_page(self, client):
        data = client.post('/beds/1/cells/click', json={'x': 0, 'y': 0}).get_json()
        assert data['success'] is True
        assert data['layout']['picker_open'] is True
        assert data['layout']['pending_cell'] == [0, 0]
        assert len(data['picker']['items']) == 12
        assert data['picker']['total_pages'] == 1

    def test_bad_coordinates(self, client):
        rv = client.post('/beds/1/cells/click', json={'x': 'a', 'y': 0})
        assert rv.status_code == 400

    def test_picker_filters(self, client):
        client.post('/beds/1/cells/click', json={'x': 0, 'y': 0})

        data = client.post('/beds/1/picker', json={'cycle': 'herb'}).get_json()
        assert data['total'] == 2
        assert {p['common_name'] for p in data['items']} == {'Sweet Basil', 'Rosemary'}

        data = client.post('/beds/1/picker', json={'cycle': 'all', 'name': 'tom'}).get_json()
        assert [p['common_name'] for p in data['items']] == ['Tomato']
        assert data['page'] == 1

    def test_fast_typing_does_not_query_catalog(self, temp_dbs, monkeypatch):
        app = create_app({
            'TESTING': True,
            'WTF_CSRF_ENABLED': False,
            'SECRET_KEY': 'dev-key-for-testing',
            'SEARCH_DEBOUNCE_SECONDS': 30,
        })
        queries = []
        real_list_plants = plant_database.list_plants

        def counting_list_plants(**kwargs):
            queries.append(kwargs)
            return real_list_plants(**kwargs)

        monkeypatch.setattr(plant_database, 'list_plants', counting_list_plants)

        with app.test_client() as client:
            client.post('/beds/1/cells/click', json={'x': 0, 'y': 0})
            assert len(queries) == 1

            for text in ('t', 'to', 'tom', 'toma', 'tomat'):
                data = client.post('/beds/1/picker', json={'name': text}).get_json()
                assert data['pending'] is True
                assert data['settle_in'] > 0
                assert data['name'] == ''
                assert len(data['items']) == 12
            assert len(queries) == 1

            data = client.post('/beds/1/picker', json={'cycle': 'herb'}).get_json()
            assert len(queries) == 2
            assert queries[-1]['name'] is None
            assert data['total'] == 2

    def test_picker_unknown_type(self, client):
        client.post('/beds/1/cells/click', json={'x': 0, 'y': 0})
        rv = client.post('/beds/1/picker', json={'cycle': 'cactus'})
        assert rv.status_code == 400

    def test_picker_closed(self, client):
        rv = client.post('/beds/1/picker', json={'name': 'tom'})
        assert rv.status_code == 409

    def test_place_plant(self, client):
        data = _place(client, TOMATO_ID, 1, 1).get_json()
        assert data['success'] is True

        cells = data['layout']['cells']
        assert cells[1][1]['kind'] == 'anchor'
        assert cells[2][2]['kind'] == 'continuation'
        assert data['layout']['picker_open'] is False

        plantings = list_plantings_for_bed(1)
        assert [(p.plant_id, p.grid_x, p.grid_y) for p in plantings] == [(TOMATO_ID, 1, 1)]

    def test_place_past_edge(self, client):
        rv = _place(client, TOMATO_ID, 3, 7)
        assert rv.get_json()['success'] is False
        assert _messages(rv) == ['Not enough space: the plant would extend past the edge of the bed.']
        assert list_plantings_for_bed(1) == []

    def test_place_unknown_plant(self, client):
        client.post('/beds/1/cells/click', json={'x': 0, 'y': 0})
        rv = client.post('/beds/1/picker/select', json={'plant_id': 9999})
        assert rv.status_code == 404

    def test_zoom(self, client):
        data = client.post('/beds/1/zoom', json={'zoom': 's'}).get_json()
        assert data['layout']['zoom'] == 'S'
        assert data['layout']['cell_size'] == 24
        assert client.post('/beds/1/zoom', json={'zoom': 'XL'}).status_code == 400


# ========================================
# Drag and drop
# ========================================

class TestDragAndDrop:

    def test_move(self, client):
        _place(client, TOMATO_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        assert client.post('/beds/1/drag/start', json={'planting_id': planting_id}).get_json()['success']
        hover = client.post('/beds/1/drag/hover', json={'x': 2, 'y': 4}).get_json()
        assert hover['valid'] is True
        assert hover['layout']['cells'][4][2]['hover'] == 'valid'

        data = client.post('/beds/1/drag/end', json={}).get_json()
        assert data['outcome'] == 'moved'
        planting = get_planting(planting_id)
        assert (planting.grid_x, planting.grid_y) == (2, 4)

    def test_drop_coordinates_on_end(self, client):
        _place(client, LETTUCE_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        client.post('/beds/1/drag/start', json={'planting_id': planting_id})
        data = client.post('/beds/1/drag/end', json={'x': 3, 'y': 7}).get_json()
        assert data['outcome'] == 'moved'

    def test_rejected_drop_flashes(self, client):
        _place(client, TOMATO_ID, 0, 0)
        _place(client, LETTUCE_ID, 2, 0)
        tomato_id = list_plantings_for_bed(1)[0].id

        client.post('/beds/1/drag/start', json={'planting_id': tomato_id})
        client.post('/beds/1/drag/hover', json={'x': 1, 'y': 0})
        data = client.post('/beds/1/drag/end', json={}).get_json()

        assert data['outcome'] == 'rejected'
        assert data['layout']['cells'][0][1]['is_flashing'] is True
        planting = get_planting(tomato_id)
        assert (planting.grid_x, planting.grid_y) == (0, 0)

    def test_lock_during_drag_keeps_position(self, client):
        _place(client, LETTUCE_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        client.post('/beds/1/drag/start', json={'planting_id': planting_id})
        client.post('/beds/1/drag/hover', json={'x': 2, 'y': 2})
        data = client.post(f'/beds/1/plantings/{planting_id}/lock').get_json()
        assert data['success'] is True
        assert data['layout']['drag']['planting_id'] is None

        data = client.post('/beds/1/drag/end', json={'x': 3, 'y': 3}).get_json()
        assert data['outcome'] == 'ignored'
        planting = get_planting(planting_id)
        assert (planting.grid_x, planting.grid_y) == (0, 0)
        assert planting.is_locked is True

    def test_lock_from_elsewhere_during_drag(self, client):
        _place(client, LETTUCE_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        client.post('/beds/1/drag/start', json={'planting_id': planting_id})
        client.post('/beds/1/drag/hover', json={'x': 2, 'y': 2})
        update_planting(planting_id, {'is_locked': True})

        data = client.post('/beds/1/drag/end', json={}).get_json()
        assert data['outcome'] == 'ignored'
        planting = get_planting(planting_id)
        assert (planting.grid_x, planting.grid_y) == (0, 0)

    def test_noop_and_outside(self, client):
        _place(client, TOMATO_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        client.post('/beds/1/drag/start', json={'planting_id': planting_id})
        data = client.post('/beds/1/drag/end', json={'x': 0, 'y': 0}).get_json()
        assert data['outcome'] == 'noop'

        client.post('/beds/1/drag/start', json={'planting_id': planting_id})
        client.post('/beds/1/drag/hover', json={'x': 2, 'y': 2})
        data = client.post('/beds/1/drag/end', json={'outside': True}).get_json()
        assert data['outcome'] == 'ignored'


# ========================================
# Locks, selection, removal
# ========================================

class TestPlantedCells:

    def test_lock_blocks_drag_and_delete(self, client):
        _place(client, TOMATO_ID, 0, 0)
        planting_id = list_plantings_for_bed(1)[0].id

        data = client.post(f'/beds/1/plantings/{planting_id}/lock').get_json()
        assert data['success'] is True
        anchor = data['layout']['cells'][0][0]
        assert anchor['is_locked'] is True
        assert anchor['is_lock_animating'] is True
        assert get_planting(planting_id).is_locked is True

        assert client.post('/beds/1/drag/start', json={'planting_id': planting_id}).get_json()['success'] is False

        rv = client.post(f'/beds/1/plantings/{planting_id}/delete')
        assert rv.get_json()['success'] is False
        assert _messages(rv) == ['Unlock this planting before removing it.']

        data = client.post(f'/beds/1/plantings/{planting_id}/click').get_json()
        assert data['selected_id'] == planting_id
        assert data['selected']['plant']['common_name'] == 'Tomato'

        data = client.post(f'/beds/1/plantings/{planting_id}/unlock').get_json()
        assert data['success'] is True
        assert get_planting(planting_id).is_locked is False

    def test_delete(self, client):
        _place(client, LETTUCE_ID, 1, 1)
        planting_id = list_plantings_for_bed(1)[0].id

        data = client.post(f'/beds/1/plantings/{planting_id}/delete').get_json()
        assert data['success'] is True
        assert data['layout']['cells'][1][1]['kind'] == 'empty'
        assert get_planting(planting_id) is None

    def test_details(self, client):
        _place(client, LETTUCE_ID, 1, 1)
        planting_id = list_plantings_for_bed(1)[0].id

        rv = client.post(f'/beds/1/plantings/{planting_id}/details',
                         json={'status': 'growing', 'notes': 'Thinned'})
        assert rv.get_json()['success'] is True
        planting = get_planting(planting_id)
        assert planting.status == 'growing'
        assert planting.notes == 'Thinned'

        rv = client.post(f'/beds/1/plantings/{planting_id}/details', json={'status': 'bogus'})
        assert rv.status_code == 400

    def test_close_workspace(self, client, app):
        client.get('/beds/1/layout')
        assert len(app.extensions['bed_workspaces']) == 1
        data = client.delete('/beds/1/workspace').get_json()
        assert data['closed'] is True
        assert len(app.extensions['bed_workspaces']) == 0


# ========================================
# Workspace lifetime
# ========================================

class TestWorkspaces:

    def test_missing_bed_leaves_no_workspace(self, client, app):
        for bed_id in range(900, 950):
            rv = client.post(f'/beds/{bed_id}/drag/cancel')
            assert rv.status_code == 404
        assert client.post('/beds/900/cells/click', json={'x': 0, 'y': 0}).status_code == 404
        assert client.get('/beds/900').status_code == 404
        assert len(app.extensions['bed_workspaces']) == 0

    def test_idle_workspaces_evicted(self, temp_dbs):
        app = create_app({
            'TESTING': True,
            'WTF_CSRF_ENABLED': False,
            'SECRET_KEY': 'dev-key-for-testing',
            'WORKSPACE_IDLE_SECONDS': 0,
        })
        assert app.extensions['bed_workspaces'].idle_seconds == 0
        with app.test_client() as first, app.test_client() as second:
            first.get('/beds/1/layout')
            second.get('/beds/1/layout')
        assert len(app.extensions['bed_workspaces']) == 1


# ========================================
# REST API
# ========================================

class TestApi:

    def test_planting_crud(self, client):
        rv = client.post('/api/plantings', json={'bed_id': 1, 'plant_id': LETTUCE_ID, 'grid_x': 2, 'grid_y': 3})
        assert rv.status_code == 201
        planting = rv.get_json()['planting']
        assert planting['is_locked'] is False

        rv = client.patch(f"/api/plantings/{planting['id']}", json={'is_locked': True})
        assert rv.get_json()['planting']['is_locked'] is True

        rv = client.get('/api/beds/1/plantings')
        assert len(rv.get_json()['plantings']) == 1

        rv = client.delete(f"/api/plantings/{planting['id']}")
        assert rv.get_json()['success'] is True
        assert client.delete(f"/api/plantings/{planting['id']}").status_code == 404

    def test_update_validates_lock_flag_and_coordinates(self, client):
        rv = client.post('/api/plantings', json={'bed_id': 1, 'plant_id': LETTUCE_ID, 'grid_x': 2, 'grid_y': 3})
        planting_id = rv.get_json()['planting']['id']

        rv = client.patch(f"/api/plantings/{planting_id}", json={'is_locked': 'false'})
        assert rv.status_code == 400
        assert rv.get_json()['error'] == 'is_locked must be true or false.'
        assert get_planting(planting_id).is_locked is False

        rv = client.patch(f"/api/plantings/{planting_id}", json={'grid_x': 0})
        assert rv.status_code == 400
        assert rv.get_json()['error'] == 'grid_x and grid_y must be set together.'
        assert (get_planting(planting_id).grid_x, get_planting(planting_id).grid_y) == (2, 3)

        rv = client.patch(f"/api/plantings/{planting_id}", json={'grid_x': 0, 'grid_y': 1, 'is_locked': False})
        assert rv.status_code == 200
        assert (get_planting(planting_id).grid_x, get_planting(planting_id).grid_y) == (0, 1)

    def test_create_in_missing_bed(self, client):
        rv = client.post('/api/plantings', json={'bed_id': 9999, 'plant_id': 1})
        assert rv.status_code == 404

    def test_update_bed_dimensions(self, client):
        rv = client.patch('/api/beds/1', json={'width_ft': 6})
        assert rv.get_json()['bed']['width_ft'] == 6
        assert client.patch('/api/beds/1', json={'width_ft': -2}).status_code == 400

        data = client.get('/beds/1/layout').get_json()
        assert data['layout']['cols'] == 6

    def test_catalog_listing(self, client):
        data = client.get('/plants/?name=bell&per_page=5').get_json()
        assert data['total'] == 1
        assert data['items'][0]['common_name'] == 'Bell Pepper'
