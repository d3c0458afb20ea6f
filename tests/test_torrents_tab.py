import pytest

from tordash.actions import ChangeTab, Intent
from tordash.models import TorrentStatus
from tordash.tasks import TaskKind
from tordash.ui.torrents import TORRENT_HEADER, column_widths, torrent_row

from conftest import make_torrent, publish


@pytest.mark.asyncio
async def test_pause_starts_a_stopped_torrent(window, client):
    publish(window, [make_torrent(3, "ubuntu.iso", TorrentStatus.STOPPED)])
    window.dispatch(Intent.PAUSE)
    await window.commands.wait_idle()
    assert client.calls == [("start", {3})]
    assert window.tasks.latest().kind is TaskKind.START


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [TorrentStatus.DOWNLOADING, TorrentStatus.SEEDING, TorrentStatus.QUEUED])
async def test_pause_stops_anything_not_stopped(window, client, status):
    publish(window, [make_torrent(4, "debian.iso", status)])
    window.dispatch(Intent.PAUSE)
    await window.commands.wait_idle()
    assert client.calls == [("stop", {4})]


@pytest.mark.asyncio
async def test_pause_acts_on_the_selected_row(window, client):
    publish(window, [make_torrent(1, "alpha"), make_torrent(2, "beta", TorrentStatus.STOPPED)])
    window.dispatch(Intent.DOWN)
    window.dispatch(Intent.PAUSE)
    await window.commands.wait_idle()
    assert client.calls == [("start", {2})]


def test_actions_without_selection_are_silent(window, client):
    window.dispatch(Intent.PAUSE)
    window.dispatch(Intent.DELETE)
    assert client.calls == []
    assert window.overlays.top() is None
    assert window.tasks.list() == ()


def test_poll_shrinking_the_view_reclamps_the_cursor(window):
    publish(window, [make_torrent(i, f"torrent-{i}") for i in range(5)])
    for _ in range(10):
        window.dispatch(Intent.DOWN)
    assert window.render_model().table.cursor == 4

    publish(window, [make_torrent(i, f"torrent-{i}") for i in range(3)])
    assert window.render_model().table.cursor == 2

    publish(window, [])
    assert window.render_model().table.cursor is None
    assert window.table.current_item() is None


def test_filtered_view_tracks_new_polls(window):
    window.table.set_filter("iso")
    publish(window, [make_torrent(1, "ubuntu.iso"), make_torrent(2, "movie.mkv")])
    assert [t.id for t in window.table.items()] == [1]
    publish(window, [make_torrent(2, "movie.mkv"), make_torrent(3, "arch.iso"), make_torrent(1, "ubuntu.iso")])
    assert [t.id for t in window.table.items()] == [3, 1]
    assert len(window.hub.store.torrents) == 3


def test_rows_and_auto_hidden_columns(window):
    publish(window, [
        make_torrent(1, "ubuntu.iso", progress=1.0, eta=None, rate_down=0, rate_up=0),
        make_torrent(2, "debian.iso", progress=0.25, eta=None, rate_down=0, rate_up=4096),
    ])
    model = window.render_model().table
    assert model.header == TORRENT_HEADER
    assert model.rows[0][2] == ""
    assert model.rows[1][2] == "25.0%"
    assert model.rows[1][5] == "4.0 KiB/s"
    assert model.widths == (None, 9, 9, 0, 0, 9)


def test_widths_are_fixed_without_auto_hide():
    rows = (torrent_row(make_torrent(1, "a", eta=None, rate_down=0)),)
    assert column_widths(rows, auto_hide=False) == (None, 10, 10, 10, 10, 10)


def test_filter_highlights_matched_characters(window):
    publish(window, [make_torrent(1, "ubuntu.iso")])
    window.table.set_filter("uis")
    (positions,) = window.render_model().table.highlights
    assert positions[1:] == (7, 8)
    assert "ubuntu.iso"[positions[0]] == "u"


@pytest.mark.asyncio
async def test_tasks_tab_lists_and_acknowledges(window, client):
    publish(window, [make_torrent(1, "alpha")])
    window.dispatch(Intent.PAUSE)
    await window.commands.wait_idle()

    window.dispatch(ChangeTab(2))
    model = window.render_model()
    assert model.current_tab == 1
    assert model.table.rows == (("1", "Stop", "alpha", "success"),)
    assert model.status_line == "Stopped alpha"

    window.dispatch(Intent.CONFIRM)
    assert window.tasks.list() == ()
    assert window.render_model().table.cursor is None

    window.dispatch(ChangeTab(9))
    assert window.tab_bar.current == 1
    window.dispatch(ChangeTab(1))
    assert window.render_model().table.header == TORRENT_HEADER
