from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import humanize

from ..actions import Action, Intent
from ..errors import EmptySelection
from ..filtering import FilterEngine, FilteredView, match_positions
from ..logging import get_logger
from ..models import TorrentSnapshot, TorrentStatus
from ..selection import SelectionController
from ..sync import SnapshotStore
from ..tasks import TaskKind, TaskState
from .overlays import FilterBar, Overlay, StatisticsPopup
from .wizard import add_torrent_wizard, delete_torrent_wizard

if TYPE_CHECKING:
    from .main_window import Context


LOG = get_logger(__name__)

TORRENT_HEADER = ("Name", "Size", "Progress", "ETA", "Download", "Upload")
DEFAULT_WIDTHS: tuple[int | None, ...] = (None, 10, 10, 10, 10, 10)
TASK_HEADER = ("#", "Kind", "Description", "State")
TASK_WIDTHS: tuple[int | None, ...] = (5, 8, None, 40)


@dataclass(frozen=True)
class TableModel:
    """One tab's table: ``None`` widths are flexible, ``0`` hides a column."""

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    widths: tuple[int | None, ...]
    cursor: int | None
    highlights: tuple[tuple[int, ...], ...] = ()


def _rate(value: int) -> str:
    return humanize.naturalsize(value, binary=True) + "/s" if value > 0 else ""


def torrent_row(torrent: TorrentSnapshot) -> tuple[str, ...]:
    return (
        torrent.name,
        humanize.naturalsize(torrent.size, binary=True),
        f"{torrent.progress * 100:.1f}%" if torrent.progress < 1.0 else "",
        humanize.naturaldelta(torrent.eta) if torrent.eta else "",
        _rate(torrent.rate_down),
        _rate(torrent.rate_up),
    )


def column_widths(rows: tuple[tuple[str, ...], ...], auto_hide: bool) -> tuple[int | None, ...]:
    """Hide the progress/ETA/speed columns when no row has anything to show in them."""
    if not auto_hide:
        return DEFAULT_WIDTHS
    widths: list[int | None] = [None, 9]
    for column in range(2, len(TORRENT_HEADER)):
        widths.append(9 if any(row[column] for row in rows) else 0)
    return tuple(widths)


class TorrentTable:
    """The filtered, selectable view over the snapshot store.

    ``refresh`` recomputes the view and reclamps the cursor in one step, so
    nothing can observe a cursor measured against an old view.
    """

    def __init__(self, store: SnapshotStore, *, auto_hide: bool = True):
        self.store = store
        self.auto_hide = auto_hide
        self.filter = FilterEngine()
        self.selection = SelectionController()
        self.view: FilteredView = ()
        self._source: tuple[TorrentSnapshot, ...] = ()

    def refresh(self, store: SnapshotStore | None = None) -> None:
        source = (store or self.store).torrents
        self.view = self.filter.apply(source)
        self._source = source
        self.selection.reclamp(len(self.view))

    def set_filter(self, pattern: str | None) -> None:
        self.filter.set_pattern(pattern)
        self.refresh()

    def items(self) -> tuple[TorrentSnapshot, ...]:
        return tuple(self._source[index] for index in self.view)

    def current_item(self) -> TorrentSnapshot | None:
        cursor = self.selection.current()
        if cursor is None:
            return None
        return self._source[self.view[cursor]]

    def require_current(self) -> TorrentSnapshot:
        torrent = self.current_item()
        if torrent is None:
            raise EmptySelection()
        return torrent

    def model(self) -> TableModel:
        items = self.items()
        rows = tuple(torrent_row(t) for t in items)
        pattern = self.filter.pattern
        highlights = tuple(match_positions(pattern, t.name) or () for t in items) if pattern else ()
        return TableModel(
            TORRENT_HEADER,
            rows,
            column_widths(rows, self.auto_hide),
            self.selection.current(),
            highlights,
        )


class TorrentsTab:
    def __init__(self, ctx: Context, table: TorrentTable):
        self.ctx = ctx
        self.table = table

    def handle(self, action: Action) -> Overlay | None:
        if action is Intent.UP:
            self.table.selection.previous()
            self.ctx.render.request()
        elif action is Intent.DOWN:
            self.table.selection.next()
            self.ctx.render.request()
        elif action is Intent.SHOW_STATS:
            if self.table.store.stats is not None:
                return StatisticsPopup(self.table.store.stats)
        elif action is Intent.SEARCH:
            return FilterBar(self.table)
        elif action is Intent.ADD_MAGNET:
            return add_torrent_wizard(self.ctx)
        elif action in (Intent.PAUSE, Intent.DELETE, Intent.DELETE_WITH_FILES):
            try:
                torrent = self.table.require_current()
            except EmptySelection:
                LOG.debug("%s ignored: nothing selected", action)
                return None
            if action is Intent.PAUSE:
                self.toggle(torrent)
            else:
                return delete_torrent_wizard(self.ctx, torrent, action is Intent.DELETE_WITH_FILES)
        return None

    def toggle(self, torrent: TorrentSnapshot) -> None:
        client = self.ctx.client
        if torrent.status is TorrentStatus.STOPPED:
            self.ctx.commands.submit(TaskKind.START, torrent.name, lambda: client.start({torrent.id}))
        else:
            self.ctx.commands.submit(TaskKind.STOP, torrent.name, lambda: client.stop({torrent.id}))
        self.ctx.render.request()

    def model(self) -> TableModel:
        return self.table.model()


class TasksTab:
    """Every tracked command; Confirm acknowledges the selected finished one."""

    def __init__(self, ctx: Context):
        self.ctx = ctx
        self.selection = SelectionController()

    def handle(self, action: Action) -> Overlay | None:
        tasks = self._sync()
        if action is Intent.UP:
            self.selection.previous()
        elif action is Intent.DOWN:
            self.selection.next()
        elif action is Intent.CONFIRM:
            cursor = self.selection.current()
            if cursor is None or not self.ctx.tasks.acknowledge(tasks[cursor].id):
                return None
            self._sync()
        else:
            return None
        self.ctx.render.request()
        return None

    def _sync(self):
        tasks = self.ctx.tasks.list()
        self.selection.reclamp(len(tasks))
        return tasks

    def model(self) -> TableModel:
        tasks = self._sync()
        rows = tuple(
            (
                str(task.id),
                task.kind.name.capitalize(),
                task.description,
                task.reason if task.state is TaskState.FAILED else task.state.value,
            )
            for task in tasks
        )
        return TableModel(TASK_HEADER, rows, TASK_WIDTHS, self.selection.current())


class TabBar:
    labels = ("Torrents", "Tasks")

    def __init__(self) -> None:
        self.current = 0

    def select(self, number: int) -> bool:
        """Switch to the 1-based tab ``number``; unknown numbers are ignored."""
        if not 1 <= number <= len(self.labels) or number - 1 == self.current:
            return False
        self.current = number - 1
        return True
