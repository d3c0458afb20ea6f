from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Coroutine

import humanize

from ..actions import Action, ChangeTab, Intent, ShowError
from ..config import AppConfig
from ..logging import get_logger
from ..sync import RenderRequests, SnapshotHub, stats_poller, torrent_poller
from ..tasks import CommandRunner, StatusTask, TaskRegistry
from .overlays import ErrorPopup, HelpPopup, OverlayPayload, OverlayStack, Outcome
from .torrents import TableModel, TabBar, TasksTab, TorrentsTab, TorrentTable


LOG = get_logger(__name__)


@dataclass
class Context:
    """What views, overlays and wizards may use to reach the rest of the app."""

    config: AppConfig
    client: Any
    render: RenderRequests
    tasks: TaskRegistry
    commands: CommandRunner
    send_action: Callable[[Action], None]


@dataclass(frozen=True)
class RenderModel:
    tabs: tuple[str, ...]
    current_tab: int
    table: TableModel
    overlays: tuple[OverlayPayload, ...]
    status_line: str
    stats_line: str

    @property
    def top_overlay(self) -> OverlayPayload | None:
        return self.overlays[-1] if self.overlays else None


class MainWindow:
    """Routes actions to exactly one handler and builds the per-frame render model.

    Background jobs (pollers, RPC commands) never call ``dispatch``: they queue
    actions with ``send_action``, which the render loop drains through
    ``process_pending`` before painting.
    """

    def __init__(self, config: AppConfig, client: Any):
        self.config = config
        self.client = client
        self.render = RenderRequests()
        self.hub = SnapshotHub(self.render)
        self.tasks = TaskRegistry()
        self.commands = CommandRunner(self.tasks, on_settled=self._on_task_settled, on_error=self._on_task_error)
        self.ctx = Context(config, client, self.render, self.tasks, self.commands, self.send_action)

        self.table = TorrentTable(self.hub.store, auto_hide=config.ui.auto_hide)
        self.hub.subscribe(self.table.refresh)
        self.tab_bar = TabBar()
        self.tabs = (TorrentsTab(self.ctx, self.table), TasksTab(self.ctx))
        self.overlays = OverlayStack()

        self.connection_issues: dict[str, str] = {}
        self._pending: deque[Action] = deque()
        poll_options = dict(
            failure_threshold=config.ui.failure_threshold,
            on_failure=self._on_poll_failure,
            on_recover=self._on_poll_recover,
        )
        self.torrent_poller = torrent_poller(client, self.hub, config.ui.refresh_interval, **poll_options)
        self.stats_poller = stats_poller(client, self.hub, config.ui.stats_interval, **poll_options)

    def jobs(self) -> list[Coroutine[Any, Any, None]]:
        """Long-running coroutines the host loop must schedule."""
        return [self.hub.run(), self.torrent_poller.run(), self.stats_poller.run()]

    def send_action(self, action: Action) -> None:
        self._pending.append(action)
        self.render.request()

    def process_pending(self) -> bool:
        should_exit = False
        while self._pending:
            should_exit = self.dispatch(self._pending.popleft()) or should_exit
        return should_exit

    def wants_text(self) -> bool:
        return self.overlays.wants_text()

    def dispatch(self, action: Action) -> bool:
        """Deliver one action. Returns True when the application should exit."""
        if isinstance(action, ShowError):
            LOG.info("Error shown: %s: %s", action.title, action.message)
            self.overlays.push(ErrorPopup(action.title, action.message))
            self.render.request()
            return False

        top = self.overlays.top()
        if top is not None:
            outcome = top.handle(action)
            if self.overlays.pop_top_if_quit(outcome) is not None or outcome is Outcome.RENDER:
                self.render.request()
            return False

        if action is Intent.QUIT:
            return True
        if isinstance(action, ChangeTab):
            if self.tab_bar.select(action.index):
                self.render.request()
            return False
        if action is Intent.SHOW_HELP:
            overlay = HelpPopup()
        else:
            overlay = self.tabs[self.tab_bar.current].handle(action)
        if overlay is not None:
            self.overlays.push(overlay)
            self.render.request()
        return False

    def render_model(self) -> RenderModel:
        return RenderModel(
            tabs=self.tab_bar.labels,
            current_tab=self.tab_bar.current,
            table=self.tabs[self.tab_bar.current].model(),
            overlays=self.overlays.payloads(),
            status_line=self._status_line(),
            stats_line=self._stats_line(),
        )

    def _status_line(self) -> str:
        if self.connection_issues:
            return "No connection: " + "; ".join(self.connection_issues.values())
        task = self.tasks.latest()
        return task.summary() if task else ""

    def _stats_line(self) -> str:
        stats = self.hub.store.stats
        if stats is None:
            return ""
        down = humanize.naturalsize(stats.download_speed, binary=True)
        up = humanize.naturalsize(stats.upload_speed, binary=True)
        return f"↓ {down}/s  ↑ {up}/s  · {stats.active_torrent_count} active · {stats.torrent_count} torrents"

    def _on_task_settled(self, task: StatusTask) -> None:
        self.torrent_poller.wake()
        self.render.request()

    def _on_task_error(self, title: str, message: str) -> None:
        self.send_action(ShowError(title, message))

    def _on_poll_failure(self, name: str, exc: Exception) -> None:
        self.connection_issues[name] = str(exc)
        self.send_action(ShowError("Connection error", f"Could not refresh {name}: {exc}"))

    def _on_poll_recover(self, name: str) -> None:
        LOG.info("%s poller recovered", name)
        self.connection_issues.pop(name, None)
        self.render.request()
