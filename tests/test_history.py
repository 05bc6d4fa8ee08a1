"""Tests for the undo/redo snapshot history."""

from template_studio.editor.history import History
from template_studio.model.template import TemplateData


def _templates(count):
    return [TemplateData(name=f"T{i}") for i in range(count)]


def test_undo_and_redo_walk_snapshots():
    first, second, third = _templates(3)
    history = History(first)
    history.push(second)
    history.push(third)

    assert history.undo() is second
    assert history.undo() is first
    assert history.redo() is second
    assert history.current is second


def test_undo_and_redo_are_no_ops_at_the_ends():
    first, second = _templates(2)
    history = History(first)

    assert not history.can_undo
    assert history.undo() is first

    history.push(second)
    assert not history.can_redo
    assert history.redo() is second


def test_push_truncates_redo_tail():
    first, second, third, fourth = _templates(4)
    history = History(first)
    history.push(second)
    history.push(third)
    history.undo()
    history.undo()

    history.push(fourth)

    assert len(history) == 2
    assert not history.can_redo
    assert history.undo() is first


def test_oldest_snapshot_dropped_past_limit():
    snapshots = _templates(6)
    history = History(snapshots[0], limit=3)
    for snapshot in snapshots[1:]:
        history.push(snapshot)

    assert len(history) == 3
    assert history.index == 2
    history.undo()
    history.undo()
    assert history.current is snapshots[3]
    assert not history.can_undo


def test_limit_defaults_to_configuration():
    history = History(TemplateData(name="T"))
    assert history.limit == 50


def test_reset_starts_over():
    first, second, other = _templates(3)
    history = History(first)
    history.push(second)

    history.reset(other)

    assert len(history) == 1
    assert history.current is other
    assert not history.can_undo
