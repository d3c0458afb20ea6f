from types import SimpleNamespace

import pytest
from transmission_rpc import TransmissionError

from tordash.client import TransmissionController
from tordash.config import AppConfig
from tordash.errors import RpcError
from tordash.models import TorrentStatus


class DummyTransmission:
    def __init__(self, torrents=(), fail_with: Exception | None = None) -> None:
        self.torrents = list(torrents)
        self.fail_with = fail_with
        self.calls: list[tuple] = []

    def get_torrents(self):
        self.calls.append(("get_torrents",))
        if self.fail_with:
            raise self.fail_with
        return self.torrents

    def add_torrent(self, source, **kwargs):
        self.calls.append(("add_torrent", source, kwargs))

    def stop_torrent(self, ids):
        self.calls.append(("stop_torrent", ids))

    def remove_torrent(self, ids, **kwargs):
        self.calls.append(("remove_torrent", ids, kwargs))

    def session_stats(self):
        return SimpleNamespace(
            download_speed=100,
            upload_speed=50,
            torrent_count=2,
            active_torrent_count=1,
            paused_torrent_count=1,
            cumulative_stats=SimpleNamespace(
                uploaded_bytes=10, downloaded_bytes=5, files_added=2, session_count=4, seconds_active=60
            ),
        )


def _controller(dummy: DummyTransmission, **kwargs) -> TransmissionController:
    controller = TransmissionController(AppConfig(), backoff=0.1, **kwargs)
    controller._client = dummy
    return controller


def _raw_torrent(**fields):
    return SimpleNamespace(id=fields["id"], name=fields["name"], fields=fields)


@pytest.mark.asyncio
async def test_list_torrents_maps_raw_fields():
    dummy = DummyTransmission([
        _raw_torrent(id=1, name="ubuntu.iso", totalSize=2048, percentDone=0.5, eta=30,
                     rateDownload=100, rateUpload=5, status=4, downloadDir="/dl"),
        _raw_torrent(id=2, name="debian.iso", totalSize=10, percentDone=1, eta=-1,
                     rateDownload=0, rateUpload=0, status=0),
    ])
    torrents = await _controller(dummy).list_torrents()

    first, second = torrents
    assert first.size == 2048
    assert first.progress == 0.5
    assert first.eta == 30
    assert first.status is TorrentStatus.DOWNLOADING
    assert first.download_dir == "/dl"
    assert second.eta is None
    assert second.status is TorrentStatus.STOPPED


@pytest.mark.asyncio
async def test_session_stats_maps_cumulative_values():
    stats = await _controller(DummyTransmission()).session_stats()
    assert stats.download_speed == 100
    assert stats.files_added == 2
    assert stats.ratio == 2.0


@pytest.mark.asyncio
async def test_failures_surface_as_rpc_error():
    dummy = DummyTransmission(fail_with=TransmissionError("unauthorized"))
    controller = _controller(dummy, retries=0)
    with pytest.raises(RpcError) as excinfo:
        await controller.list_torrents()
    assert excinfo.value.method == "get_torrents"
    assert "unauthorized" in str(excinfo.value)
    assert len(dummy.calls) == 1
    assert controller._client is None


@pytest.mark.asyncio
async def test_mutating_calls_forward_arguments():
    dummy = DummyTransmission()
    controller = _controller(dummy)
    await controller.add("magnet:?xt=urn:btih:ABC", "/downloads/movies")
    await controller.stop({7})
    await controller.delete({7}, with_files=True)
    assert dummy.calls == [
        ("add_torrent", "magnet:?xt=urn:btih:ABC", {"download_dir": "/downloads/movies", "paused": False}),
        ("stop_torrent", [7]),
        ("remove_torrent", [7], {"delete_data": True}),
    ]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (6, TorrentStatus.SEEDING),
        (2, TorrentStatus.CHECKING),
        (3, TorrentStatus.QUEUED),
        ("download pending", TorrentStatus.QUEUED),
        ("seeding", TorrentStatus.SEEDING),
        ("stopped", TorrentStatus.STOPPED),
    ],
)
def test_status_parsing(raw, expected):
    assert TorrentStatus.parse(raw) is expected


@pytest.mark.asyncio
async def test_transient_failure_is_retried_with_a_fresh_client(monkeypatch):
    dummy = DummyTransmission([_raw_torrent(id=1, name="a", status=6)], fail_with=TransmissionError("reset"))
    created = []

    def fake_client(**kwargs):
        created.append(kwargs)
        dummy.fail_with = None
        return dummy

    monkeypatch.setattr("tordash.client.Client", fake_client)
    controller = _controller(dummy, retries=1)

    torrents = await controller.list_torrents()

    assert [t.status for t in torrents] == [TorrentStatus.SEEDING]
    assert len(dummy.calls) == 2
    assert created[0]["path"] == "/transmission/rpc"


class RejectingTransmission(DummyTransmission):
    def add_torrent(self, source, **kwargs):
        self.calls.append(("add_torrent", source, kwargs))
        raise ValueError("support for file:// URL has been removed.")


@pytest.mark.asyncio
async def test_rejected_arguments_fail_at_once_as_rpc_error():
    dummy = RejectingTransmission()
    controller = _controller(dummy, retries=3)
    with pytest.raises(RpcError) as excinfo:
        await controller.add("file:///tmp/ubuntu.torrent")
    assert "file:// URL" in str(excinfo.value)
    assert len(dummy.calls) == 1
