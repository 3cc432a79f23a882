import random

from board import Board
from models import CHILD, PARENT, PLACEMENTS, SIBLING
from settings import Settings
from storage import Storage, dump_tasks, parse_tasks


def _edges(store):
    return {
        tid: (t.parent_id, t.text, t.done, t.collapsed, t.order, list(t.children))
        for tid, t in store.tasks.items()
    }


def _deep_board(seed=3):
    rng = random.Random(seed)
    board = Board(max_undo=1)
    board.add("root")
    # a chain six levels deep first, then random growth
    for depth in range(6):
        board.add(f"level {depth}", CHILD)
        board.select(board.store.children_of(board.selected_id)[-1])
    while len(board.store) < 60:
        board.select(rng.choice(sorted(board.store.tasks)))
        board.add(f"Task #{len(board.store)}", rng.choice(PLACEMENTS))
    for tid in rng.sample(sorted(board.store.tasks), 15):
        board.toggle_done(tid)
    for tid in sorted(board.store.tasks):
        if board.store.children_of(tid) and rng.random() < 0.3:
            board.toggle_collapsed(tid)
    return board


def test_round_trip_preserves_tree():
    board = _deep_board()
    store = board.store
    assert max(depth for _, depth in store.walk()) >= 5

    reloaded = parse_tasks(dump_tasks(store))

    assert _edges(reloaded) == _edges(store)
    assert reloaded.roots() == store.roots()
    assert reloaded.next_id == store.next_id


def test_dump_format():
    board = Board()
    board.add("A")
    board.add("B", CHILD)
    board.toggle_done(2)
    board.toggle_collapsed(1)

    assert dump_tasks(board.store) == "1::A:false:1:true\n2:1:B:true:2:false\n"


def test_load_is_order_independent_and_sorts_by_order():
    content = "\n".join([
        "3:1:child b:false:2:false",
        "1::root:false:9:false",
        "2:1:child a:true:1:false",
        "4::first:false:3:true",
    ])

    store = parse_tasks(content)

    assert store.roots() == [4, 1]
    assert store.children_of(1) == [2, 3]
    assert store.get(2).done is True
    assert store.get(4).collapsed is True
    assert store.next_id == 5


def test_malformed_lines_are_skipped():
    content = "\n".join([
        "garbage",
        "1::ok:false:1:false",
        "2::has:colon:false:2:false",
        "x::bad id:false:3:false",
        "3::no order:false::false",
        "",
        "4::short:false:4:",
    ])

    store = parse_tasks(content)

    assert sorted(store.tasks) == [1, 4]
    assert store.get(4).collapsed is False


def test_unresolvable_parents_become_roots():
    content = "\n".join([
        "1:0:zero parent:false:1:false",
        "2:99:dangling:false:2:false",
        "3:3:self:false:3:false",
        "4:abc:junk:false:4:false",
    ])

    store = parse_tasks(content)

    assert store.roots() == [1, 2, 3, 4]
    assert all(store.get(i).parent_id is None for i in (1, 2, 3, 4))


def test_parent_cycle_in_file_is_broken():
    content = "5:6:a:false:1:false\n6:5:b:false:2:false\n7::c:false:3:false\n"

    store = parse_tasks(content)

    assert store.roots() == [7, 5]
    assert store.children_of(5) == [6]
    assert sorted(tid for tid, _ in store.walk()) == [5, 6, 7]


def test_duplicate_ids_last_line_wins():
    store = parse_tasks("1::old:false:1:false\n1::new:true:1:false\n")

    assert store.get(1).text == "new"
    assert store.roots() == [1]


def test_storage_files(tmp_path):
    storage = Storage(tmp_path / "data", "proj")
    assert len(storage.load_tasks()) == 0
    assert storage.load_settings() == Settings()

    board = Board()
    board.add("A")
    board.add("B", SIBLING)
    board.add("C", PARENT)
    storage.save_tasks(board.store)
    storage.save_settings(Settings(show_completed=False, extra={"font_size": "16"}))

    assert (tmp_path / "data" / "proj.tasks").is_file()
    assert storage.load_tasks().roots() == [1, 2, 3]
    loaded = storage.load_settings()
    assert loaded.show_completed is False
    assert loaded.extra == {"font_size": "16"}


def test_text_edited_in_place_still_reloads():
    store = parse_tasks("1::plain:false:1:false\n")
    store.get(1).text = "ratio 16:9\nfinal"

    reloaded = parse_tasks(dump_tasks(store))

    assert sorted(reloaded.tasks) == [1]
    assert reloaded.get(1).text == "ratio 16 9 final"
