"""Background synchronisation with the daemon.

Pollers never write shared state themselves: they send messages to the
``SnapshotHub``, the single owner of the ``SnapshotStore``, which swaps the
new snapshot in, tells its listeners and asks for a render.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from .config import MIN_FAILURE_THRESHOLD
from .errors import RpcError
from .logging import get_logger
from .models import SessionStats, TorrentSnapshot


LOG = get_logger(__name__)


class RenderRequests:
    """Coalescing render signal: any number of requests wake the renderer once."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def pending(self) -> bool:
        return self._event.is_set()

    def request(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
        self._event.clear()


@dataclass(frozen=True)
class TorrentsFetched:
    torrents: tuple[TorrentSnapshot, ...]


@dataclass(frozen=True)
class StatsFetched:
    stats: SessionStats


SnapshotMessage = Union[TorrentsFetched, StatsFetched]


class SnapshotStore:
    """Latest torrent list and session stats. Both are replaced, never edited."""

    def __init__(self) -> None:
        self.torrents: tuple[TorrentSnapshot, ...] = ()
        self.stats: SessionStats | None = None


class SnapshotHub:
    """Owns the ``SnapshotStore`` and applies the messages pollers send it."""

    def __init__(self, render: RenderRequests, store: SnapshotStore | None = None):
        self.store = store or SnapshotStore()
        self.render = render
        self._inbox: asyncio.Queue[SnapshotMessage] = asyncio.Queue()
        self._listeners: list[Callable[[SnapshotStore], None]] = []

    def subscribe(self, listener: Callable[[SnapshotStore], None]) -> None:
        self._listeners.append(listener)

    async def send(self, message: SnapshotMessage) -> None:
        await self._inbox.put(message)

    def apply(self, message: SnapshotMessage) -> None:
        if isinstance(message, TorrentsFetched):
            self.store.torrents = message.torrents
        elif isinstance(message, StatsFetched):
            self.store.stats = message.stats
        else:
            raise TypeError(f"unknown snapshot message: {message!r}")
        for listener in self._listeners:
            listener(self.store)
        self.render.request()

    async def run(self) -> None:
        while True:
            message = await self._inbox.get()
            self.apply(message)
            self._inbox.task_done()


class Poller:
    """Fetches one kind of snapshot on a fixed interval for the app's lifetime.

    A failed tick keeps the previous snapshot. ``on_failure`` fires once when
    ``failure_threshold`` ticks in a row have failed, ``on_recover`` fires on
    the first success after that.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[object]],
        deliver: Callable[[object], Awaitable[None]],
        interval: float,
        *,
        failure_threshold: int = 3,
        on_failure: Callable[[str, Exception], None] | None = None,
        on_recover: Callable[[str], None] | None = None,
    ):
        self.name = name
        self.fetch = fetch
        self.deliver = deliver
        self.interval = interval
        self.failure_threshold = max(MIN_FAILURE_THRESHOLD, failure_threshold)
        self.on_failure = on_failure
        self.on_recover = on_recover
        self.failures = 0
        self._wake = asyncio.Event()

    def wake(self) -> None:
        """Cut the current sleep short so the next tick happens now."""
        self._wake.set()

    async def tick(self) -> bool:
        try:
            result = await self.fetch()
        except Exception as exc:
            self.failures += 1
            if isinstance(exc, RpcError):
                LOG.warning("%s poll failed (%s in a row): %s", self.name, self.failures, exc)
            else:
                LOG.exception("%s poll crashed (%s in a row)", self.name, self.failures)
            if self.failures == self.failure_threshold and self.on_failure:
                self.on_failure(self.name, exc)
            return False

        if self.failures >= self.failure_threshold and self.on_recover:
            self.on_recover(self.name)
        self.failures = 0
        await self.deliver(result)
        return True

    async def run(self) -> None:
        LOG.info("%s poller started, every %.1fs", self.name, self.interval)
        while True:
            await self.tick()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()


def torrent_poller(client, hub: SnapshotHub, interval: float, **kwargs) -> Poller:
    async def deliver(torrents) -> None:
        await hub.send(TorrentsFetched(tuple(torrents)))

    return Poller("torrents", client.list_torrents, deliver, interval, **kwargs)


def stats_poller(client, hub: SnapshotHub, interval: float, **kwargs) -> Poller:
    async def deliver(stats) -> None:
        await hub.send(StatsFetched(stats))

    return Poller("stats", client.session_stats, deliver, interval, **kwargs)
