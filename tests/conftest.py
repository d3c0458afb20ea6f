"""Shared test fixtures and dummy classes."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pytest

from tordash.actions import TextChanged
from tordash.config import AppConfig, PathConfig, UIConfig
from tordash.errors import RpcError
from tordash.models import SessionStats, TorrentSnapshot, TorrentStatus
from tordash.sync import StatsFetched, TorrentsFetched
from tordash.ui.main_window import MainWindow


def make_torrent(
    torrent_id: int,
    name: str,
    status: TorrentStatus = TorrentStatus.DOWNLOADING,
    **overrides,
) -> TorrentSnapshot:
    fields = dict(
        id=torrent_id,
        name=name,
        size=1024 * 1024,
        progress=0.5,
        eta=120,
        rate_down=2048,
        rate_up=0,
        status=status,
        download_dir="/downloads",
    )
    fields.update(overrides)
    return TorrentSnapshot(**fields)


class DummyClient:
    """In-memory stand-in for the Transmission RPC client."""

    def __init__(self, torrents: Iterable[TorrentSnapshot] = (), stats: SessionStats | None = None) -> None:
        self.torrents = tuple(torrents)
        self.stats = stats or SessionStats(download_speed=1024, torrent_count=len(self.torrents))
        self.calls: list[tuple] = []
        self.failing: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise RpcError(method, ConnectionError("daemon unreachable"))

    async def list_torrents(self) -> tuple[TorrentSnapshot, ...]:
        self._check("list_torrents")
        return self.torrents

    async def session_stats(self) -> SessionStats:
        self._check("session_stats")
        return self.stats

    async def add(self, source: str, destination_dir: str | None = None) -> None:
        self.calls.append(("add", source, destination_dir))
        self._check("add")

    async def start(self, ids) -> None:
        self.calls.append(("start", set(ids)))
        self._check("start")

    async def stop(self, ids) -> None:
        self.calls.append(("stop", set(ids)))
        self._check("stop")

    async def delete(self, ids, with_files: bool = False) -> None:
        self.calls.append(("delete", set(ids), with_files))
        self._check("delete")


def publish(window: MainWindow, torrents: Iterable[TorrentSnapshot]) -> None:
    window.hub.apply(TorrentsFetched(tuple(torrents)))


def publish_stats(window: MainWindow, stats: SessionStats) -> None:
    window.hub.apply(StatsFetched(stats))


def type_text(window: MainWindow, text: str) -> None:
    """Append ``text`` one character at a time, reporting each edit like the input widget does."""
    value = window.render_model().top_overlay.value
    for char in text:
        value += char
        window.dispatch(TextChanged(value))


def set_text(window: MainWindow, text: str) -> None:
    window.dispatch(TextChanged(text))


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        paths=PathConfig(download_dir=Path("/downloads")),
        ui=UIConfig(refresh_interval=0.01, stats_interval=0.01, failure_threshold=3),
    )


@pytest.fixture
def client() -> DummyClient:
    return DummyClient()


@pytest.fixture
def window(config: AppConfig, client: DummyClient) -> MainWindow:
    return MainWindow(config, client)
