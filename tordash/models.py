from dataclasses import dataclass
from enum import Enum


class TorrentStatus(Enum):
    STOPPED = "stopped"
    QUEUED = "queued"
    CHECKING = "checking"
    DOWNLOADING = "downloading"
    SEEDING = "seeding"

    @classmethod
    def parse(cls, raw: object) -> "TorrentStatus":
        """Map a Transmission status (numeric code or name) onto the dashboard states."""
        if isinstance(raw, int):
            return _STATUS_CODES.get(raw, cls.STOPPED)
        text = str(getattr(raw, "value", raw)).strip().lower()
        if text.isdigit():
            return _STATUS_CODES.get(int(text), cls.STOPPED)
        if "pending" in text or "queued" in text:
            return cls.QUEUED
        for status in cls:
            if status.value in text:
                return status
        return cls.STOPPED


# transmission's tr_torrent_activity codes
_STATUS_CODES = {
    0: TorrentStatus.STOPPED,
    1: TorrentStatus.QUEUED,
    2: TorrentStatus.CHECKING,
    3: TorrentStatus.QUEUED,
    4: TorrentStatus.DOWNLOADING,
    5: TorrentStatus.QUEUED,
    6: TorrentStatus.SEEDING,
}


@dataclass(frozen=True)
class TorrentSnapshot:
    id: int
    name: str
    size: int
    progress: float
    eta: int | None
    rate_down: int
    rate_up: int
    status: TorrentStatus
    download_dir: str = ""


@dataclass(frozen=True)
class SessionStats:
    download_speed: int = 0
    upload_speed: int = 0
    torrent_count: int = 0
    active_torrent_count: int = 0
    paused_torrent_count: int = 0
    uploaded_bytes: int = 0
    downloaded_bytes: int = 0
    files_added: int = 0
    session_count: int = 0
    seconds_active: int = 0

    @property
    def ratio(self) -> float | None:
        if not self.downloaded_bytes:
            return None
        return self.uploaded_bytes / self.downloaded_bytes
