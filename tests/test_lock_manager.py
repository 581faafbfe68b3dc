"""
tests/test_lock_manager.py — Tests for locking planting positions.
"""

from conftest import TOMATO


class RecordingStore:
    """Wraps a store and records the animation state seen during each update."""

    def __init__(self, store, workspace_ref):
        self.store = store
        self.workspace_ref = workspace_ref
        self.seen_animating = []

    def update_planting(self, planting_id, data):
        self.seen_animating.append(self.workspace_ref[0].locks.is_animating(planting_id))
        return self.store.update_planting(planting_id, data)


def test_lock_persists_and_animates(store, workspace, clock):
    tomato = store.add_planting(TOMATO, 0, 0)
    workspace.refresh()

    assert workspace.lock_planting(tomato.id) is True
    assert store.calls_of('update') == [('update', tomato.id, {'is_locked': True})]
    assert workspace.find_planting(tomato.id).is_locked is True
    assert workspace.locks.is_animating(tomato.id)

    view = workspace.grid_view()['cells'][0][0]
    assert view['is_locked'] is True
    assert view['is_lock_animating'] is True
    assert view['draggable'] is False
    assert view['can_unlock'] is True

    clock.advance(0.61)
    assert not workspace.locks.is_animating(tomato.id)
    assert workspace.find_planting(tomato.id).is_locked is True


def test_animation_starts_before_the_request_completes(store, workspace):
    tomato = store.add_planting(TOMATO, 0, 0)
    workspace.refresh()
    recorder = RecordingStore(store, [workspace])
    workspace.locks.store = recorder

    workspace.lock_planting(tomato.id)
    assert recorder.seen_animating == [True]


def test_lock_failure_rolls_back_animation(store, workspace):
    tomato = store.add_planting(TOMATO, 0, 0)
    workspace.refresh()
    store.fail.add('update')

    assert workspace.lock_planting(tomato.id) is False
    assert not workspace.locks.is_animating(tomato.id)
    assert workspace.find_planting(tomato.id).is_locked is False
    assert workspace.pop_notifications() == [('error', 'Failed to lock planting.')]


def test_unlock(store, workspace):
    tomato = store.add_planting(TOMATO, 0, 0, is_locked=True)
    workspace.refresh()

    assert workspace.unlock_planting(tomato.id) is True
    assert workspace.find_planting(tomato.id).is_locked is False
    assert workspace.start_drag(tomato.id) is True


def test_unlock_failure_notifies(store, workspace):
    tomato = store.add_planting(TOMATO, 0, 0, is_locked=True)
    workspace.refresh()
    store.fail.add('update')

    assert workspace.unlock_planting(tomato.id) is False
    assert workspace.find_planting(tomato.id).is_locked is True
    assert workspace.pop_notifications() == [('error', 'Failed to unlock planting.')]


def test_lock_already_locked_sends_nothing(store, workspace):
    tomato = store.add_planting(TOMATO, 0, 0, is_locked=True)
    workspace.refresh()

    assert workspace.lock_planting(tomato.id) is False
    assert workspace.unlock_planting(999) is False
    assert store.calls == []
