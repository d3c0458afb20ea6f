import random

from tordash.filtering import FilterEngine
from tordash.selection import SelectionController

from conftest import make_torrent


def test_empty_view_has_no_cursor():
    selection = SelectionController()
    assert selection.current() is None
    assert selection.reclamp(0) is None
    assert selection.next() is None
    assert selection.previous() is None


def test_first_non_empty_view_selects_the_top_row():
    selection = SelectionController()
    assert selection.reclamp(3) == 0


def test_moves_saturate_at_both_ends():
    selection = SelectionController()
    selection.reclamp(3)
    assert selection.previous() == 0
    assert selection.next() == 1
    assert selection.next() == 2
    assert selection.next() == 2


def test_reclamp_on_shrink_moves_cursor_to_last_row():
    selection = SelectionController()
    selection.reclamp(5)
    for _ in range(4):
        selection.next()
    assert selection.current() == 4

    assert selection.reclamp(3) == 2


def test_reclamp_to_empty_then_back():
    selection = SelectionController()
    selection.reclamp(2)
    selection.next()
    assert selection.reclamp(0) is None
    assert selection.reclamp(4) == 0


def test_cursor_is_positional_not_tied_to_torrent_identity():
    # The cursor keeps its index across refreshes; if rows are reordered the
    # same index may now point at a different torrent. That is accepted.
    selection = SelectionController()
    first = (make_torrent(1, "alpha"), make_torrent(2, "beta"), make_torrent(3, "gamma"))
    selection.reclamp(len(first))
    selection.next()
    assert first[selection.current()].id == 2

    reordered = (first[2], first[0], first[1])
    assert selection.reclamp(len(reordered)) == 1
    assert reordered[selection.current()].id == 1


def test_cursor_stays_in_bounds_for_random_updates():
    rng = random.Random(7)
    names = ["ubuntu", "debian", "fedora", "arch", "gentoo", "alpine", "mint", "void"]
    engine = FilterEngine()
    selection = SelectionController()
    snapshots = ()
    for _ in range(300):
        step = rng.choice(["poll", "filter", "next", "previous"])
        if step == "poll":
            chosen = rng.sample(names, rng.randint(0, len(names)))
            snapshots = tuple(make_torrent(i, name) for i, name in enumerate(chosen))
            view = engine.apply(snapshots)
            selection.reclamp(len(view))
        elif step == "filter":
            engine.set_pattern(rng.choice([None, "a", "ub", "n", "zz"]))
            selection.reclamp(len(engine.apply(snapshots)))
        elif step == "next":
            selection.next()
        else:
            selection.previous()

        length = len(selection)
        if length == 0:
            assert selection.current() is None
        else:
            assert 0 <= selection.current() < length
