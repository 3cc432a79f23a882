from store import TaskStore


def _tree():
    """roots: 1 [2 [4], 3]; 5"""
    store = TaskStore()
    a = store.create("a")
    b = store.create("b", parent_id=a)
    store.create("c", parent_id=a)
    store.create("d", parent_id=b)
    store.create("e")
    return store


def test_create_assigns_monotonic_ids_and_links_parent():
    store = _tree()

    assert store.roots() == [1, 5]
    assert store.children_of(1) == [2, 3]
    assert store.children_of(2) == [4]
    assert store.get(4).parent_id == 2
    assert store.next_id == 6


def test_create_inserts_at_index():
    store = _tree()

    new_id = store.create("x", index=1)

    assert store.roots() == [1, new_id, 5]


def test_get_missing_is_none():
    store = _tree()

    assert store.get(99) is None
    assert store.get(None) is None
    assert store.children_of(99) == []


def test_delete_subtree_removes_descendants_and_detaches():
    store = _tree()
    store.select(4)

    removed = store.delete_subtree(2)

    assert sorted(removed) == [2, 4]
    assert removed[-1] == 2
    assert 2 not in store.tasks and 4 not in store.tasks
    assert store.children_of(1) == [3]
    assert store.selected_id is None


def test_delete_subtree_keeps_unrelated_selection():
    store = _tree()
    store.select(5)

    store.delete_subtree(1)

    assert store.roots() == [5]
    assert store.selected_id == 5
    assert set(store.tasks) == {5}


def test_delete_missing_is_noop():
    store = _tree()

    assert store.delete_subtree(42) == []
    assert len(store) == 5


def test_set_parent_moves_between_lists():
    store = _tree()

    assert store.set_parent(5, 3) is True
    assert store.roots() == [1]
    assert store.children_of(3) == [5]
    assert store.get(5).parent_id == 3

    assert store.set_parent(5, None, index=0) is True
    assert store.roots() == [5, 1]
    assert store.get(5).parent_id is None


def test_set_parent_refuses_cycle():
    store = _tree()

    assert store.set_parent(1, 4) is False
    assert store.set_parent(2, 2) is False
    assert store.get(1).parent_id is None
    assert store.children_of(4) == []


def test_is_descendant_or_self():
    store = _tree()

    assert store.is_descendant_or_self(1, 1)
    assert store.is_descendant_or_self(4, 1)
    assert not store.is_descendant_or_self(1, 4)
    assert not store.is_descendant_or_self(5, 1)


def test_is_ancestor_done():
    store = _tree()
    store.get(1).done = True

    assert store.is_ancestor_done(4)
    assert not store.is_ancestor_done(1)
    assert not store.is_ancestor_done(5)


def test_walk_is_preorder_with_depth():
    store = _tree()

    assert list(store.walk()) == [(1, 0), (2, 1), (4, 2), (3, 1), (5, 0)]


def test_walk_handles_deep_nesting():
    store = TaskStore()
    parent = None
    for i in range(2000):
        parent = store.create(f"t{i}", parent_id=parent)

    depths = [depth for _, depth in store.walk()]

    assert depths[-1] == 1999
    assert store.is_descendant_or_self(parent, 1)


def test_renumber_follows_preorder():
    store = _tree()
    store.set_parent(5, 2, index=0)

    store.renumber()

    assert [store.get(i).order for i in (1, 2, 5, 4, 3)] == [1, 2, 3, 4, 5]


def test_capture_is_independent_of_live_state():
    store = _tree()
    tasks, roots, selected, next_id = store.capture()

    store.get(1).children.append(99)
    store.get(1).text = "changed"
    store.root_ids.append(42)

    assert tasks[1].children == [2, 3]
    assert tasks[1].text == "a"
    assert roots == (1, 5)
    assert next_id == 6


def test_restore_drops_unknown_selection():
    store = _tree()
    tasks, roots, _, next_id = store.capture()

    store.restore(tasks, roots, 77, next_id)

    assert store.selected_id is None
    assert store.roots() == [1, 5]


def test_create_flattens_text_to_one_field():
    store = TaskStore()

    tid = store.create("  call: bob\r\nlater ")

    assert store.get(tid).text == "call  bob  later"
