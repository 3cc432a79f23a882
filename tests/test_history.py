from history import History
from store import TaskStore


def test_snapshot_and_undo_restore_document():
    store = TaskStore()
    store.create("a")
    history = History()

    history.snapshot(store, "Add task")
    store.create("b")
    store.select(2)

    assert history.peek_label() == "Add task"
    assert history.undo(store) == "Add task"
    assert store.roots() == [1]
    assert store.next_id == 2
    assert store.selected_id is None
    assert len(history) == 0


def test_undo_on_empty_history_leaves_state():
    store = TaskStore()
    store.create("a")
    history = History()

    assert history.undo(store) is None
    assert history.can_undo is False
    assert store.roots() == [1]


def test_oldest_entries_are_evicted():
    store = TaskStore()
    history = History(max_levels=2)
    for label in ("one", "two", "three"):
        history.snapshot(store, label)

    assert len(history) == 2
    assert history.undo(store) == "three"
    assert history.undo(store) == "two"
    assert history.undo(store) is None


def test_entries_carry_timestamp_and_independent_copies():
    store = TaskStore()
    store.create("a")
    history = History()
    history.snapshot(store, "Toggle done")
    store.get(1).done = True

    entry = history._entries[-1]

    assert entry.timestamp
    assert entry.tasks[1].done is False


def test_clear():
    history = History()
    history.snapshot(TaskStore(), "x")

    history.clear()

    assert history.peek_label() is None
