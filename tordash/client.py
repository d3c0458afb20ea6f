import asyncio
from typing import Any, Iterable, Optional

from transmission_rpc import Client, TransmissionError, Torrent

from .config import AppConfig
from .errors import RpcError
from .logging import get_logger
from .models import SessionStats, TorrentSnapshot, TorrentStatus


LOG = get_logger(__name__)


class TransmissionController:
    """Async facade over the blocking transmission-rpc client.

    Every call runs in a worker thread, is retried with backoff and is bounded
    by the configured timeout. Whatever goes wrong surfaces as ``RpcError``.
    """

    def __init__(self, config: AppConfig, *, retries: int = 2, backoff: float = 0.6):
        self.config = config
        self._client: Client | None = None
        self._default_retries = max(0, retries)
        self._default_delay = max(0.1, backoff)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(
                host=self.config.rpc.host,
                port=self.config.rpc.port,
                path=self.config.rpc.path,
                username=self.config.rpc.username,
                password=self.config.rpc.password,
                timeout=self.config.rpc.timeout,
            )
        return self._client

    def reset(self) -> None:
        self._client = None

    async def _rpc(self, method_name: str, *args, retries: int | None = None, **kwargs):
        """Call Transmission RPC with bounded retries and backoff."""
        attempts = (self._default_retries if retries is None else retries) + 1
        delay = self._default_delay
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                method = getattr(self.client, method_name)
                return await asyncio.to_thread(method, *args, **kwargs)
            except (TransmissionError, OSError) as exc:
                last_error = exc
                self.reset()
                LOG.debug("RPC %s failed (%s/%s): %s", method_name, attempt + 1, attempts, exc)
            except (ValueError, TypeError) as exc:
                LOG.debug("RPC %s rejected its arguments: %s", method_name, exc)
                raise RpcError(method_name, exc) from exc

            if attempt < attempts - 1:
                await asyncio.sleep(delay)
                delay = min(delay * 1.6, 5.0)

        raise RpcError(method_name, last_error)

    async def _call(self, method_name: str, *args, retries: int | None = None, timeout: float | None = None, **kwargs):
        """RPC wrapper with asyncio timeout."""
        timeout = timeout or self.config.rpc.timeout
        try:
            return await asyncio.wait_for(self._rpc(method_name, *args, retries=retries, **kwargs), timeout=timeout)
        except asyncio.TimeoutError as exc:
            self.reset()
            raise RpcError(method_name, exc) from exc

    async def list_torrents(self) -> tuple[TorrentSnapshot, ...]:
        torrents = await self._call("get_torrents")
        return tuple(self._map_torrent(t) for t in torrents)

    async def session_stats(self) -> SessionStats:
        stats = await self._call("session_stats")
        return self._map_stats(stats)

    async def add(self, source: str, destination_dir: Optional[str] = None) -> None:
        await self._call(
            "add_torrent",
            source,
            download_dir=destination_dir or str(self.config.paths.download_dir),
            paused=False,
            retries=0,
        )

    async def start(self, ids: Iterable[int]) -> None:
        await self._call("start_torrent", list(ids))

    async def stop(self, ids: Iterable[int]) -> None:
        await self._call("stop_torrent", list(ids))

    async def delete(self, ids: Iterable[int], with_files: bool = False) -> None:
        await self._call("remove_torrent", list(ids), delete_data=with_files, retries=0)

    def _map_torrent(self, t: Torrent) -> TorrentSnapshot:
        fields = getattr(t, "fields", None) or {}

        eta = self._as_int(fields.get("eta"), default=-1)
        progress = self._as_float(fields.get("percentDone"))
        if progress is None:
            progress = self._as_float(getattr(t, "percent_done", None)) or 0.0

        return TorrentSnapshot(
            id=t.id,
            name=t.name,
            size=self._as_int(fields.get("totalSize") or fields.get("sizeWhenDone")),
            progress=max(0.0, min(1.0, progress)),
            eta=eta if eta >= 0 else None,
            rate_down=self._as_int(fields.get("rateDownload")),
            rate_up=self._as_int(fields.get("rateUpload")),
            status=TorrentStatus.parse(fields.get("status", getattr(t, "status", None))),
            download_dir=str(fields.get("downloadDir") or ""),
        )

    def _map_stats(self, stats: Any) -> SessionStats:
        cumulative = getattr(stats, "cumulative_stats", None)
        return SessionStats(
            download_speed=self._as_int(getattr(stats, "download_speed", 0)),
            upload_speed=self._as_int(getattr(stats, "upload_speed", 0)),
            torrent_count=self._as_int(getattr(stats, "torrent_count", 0)),
            active_torrent_count=self._as_int(getattr(stats, "active_torrent_count", 0)),
            paused_torrent_count=self._as_int(getattr(stats, "paused_torrent_count", 0)),
            uploaded_bytes=self._as_int(getattr(cumulative, "uploaded_bytes", 0)),
            downloaded_bytes=self._as_int(getattr(cumulative, "downloaded_bytes", 0)),
            files_added=self._as_int(getattr(cumulative, "files_added", 0)),
            session_count=self._as_int(getattr(cumulative, "session_count", 0)),
            seconds_active=self._as_int(getattr(cumulative, "seconds_active", 0)),
        )

    @staticmethod
    def _as_int(value: Any, default: int = 0) -> int:
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _as_float(value: Any) -> float | None:
        try:
            if value is None:
                return None
            return float(value)
        except (TypeError, ValueError):
            return None
