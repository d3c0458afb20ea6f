import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_DIR = Path(os.environ.get("TORDASH_CONFIG_DIR", "~/.config/tordash")).expanduser()
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# one missed poll must never raise an error popup
MIN_FAILURE_THRESHOLD = 2


@dataclass
class RpcConfig:
    host: str = os.environ.get("TORDASH_HOST", "localhost")
    port: int = int(os.environ.get("TORDASH_PORT", "9091"))
    path: str = os.environ.get("TORDASH_RPC_PATH", "/transmission/rpc")
    username: str | None = os.environ.get("TORDASH_USER") or None
    password: str | None = os.environ.get("TORDASH_PASSWORD") or None
    timeout: float = float(os.environ.get("TORDASH_TIMEOUT", "10.0"))


@dataclass
class PathConfig:
    download_dir: Path = Path(os.environ.get("TORDASH_DOWNLOAD_DIR", "~/Downloads/torrents")).expanduser()


@dataclass
class UIConfig:
    refresh_interval: float = 2.5
    stats_interval: float = 5.0
    failure_threshold: int = 3
    auto_hide: bool = True


@dataclass
class AppConfig:
    rpc: RpcConfig = field(default_factory=RpcConfig)
    paths: PathConfig = field(default_factory=PathConfig)
    ui: UIConfig = field(default_factory=UIConfig)


def ensure_config_dir() -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    ensure_config_dir()
    if CONFIG_FILE.exists():
        data = yaml.safe_load(CONFIG_FILE.read_text()) or {}
    else:
        data = {}

    rpc_data: Dict[str, Any] = data.get("rpc", {})
    paths_data: Dict[str, Any] = data.get("paths", {})
    ui_data: Dict[str, Any] = data.get("ui", {})

    config = AppConfig(
        rpc=RpcConfig(
            host=rpc_data.get("host", RpcConfig().host),
            port=int(rpc_data.get("port", RpcConfig().port)),
            path=rpc_data.get("path", RpcConfig().path),
            username=rpc_data.get("username") or RpcConfig().username,
            password=rpc_data.get("password") or RpcConfig().password,
            timeout=float(rpc_data.get("timeout", RpcConfig().timeout)),
        ),
        paths=PathConfig(
            download_dir=Path(paths_data.get("download_dir", PathConfig().download_dir)).expanduser(),
        ),
        ui=UIConfig(
            refresh_interval=max(0.5, float(ui_data.get("refresh_interval", UIConfig().refresh_interval))),
            stats_interval=max(0.5, float(ui_data.get("stats_interval", UIConfig().stats_interval))),
            failure_threshold=max(MIN_FAILURE_THRESHOLD, int(ui_data.get("failure_threshold", UIConfig().failure_threshold))),
            auto_hide=bool(ui_data.get("auto_hide", UIConfig().auto_hide)),
        ),
    )

    save_config(config)
    return config


def save_config(config: AppConfig) -> None:
    ensure_config_dir()
    payload = {
        "rpc": {
            "host": config.rpc.host,
            "port": config.rpc.port,
            "path": config.rpc.path,
            "username": config.rpc.username or "",
            "password": config.rpc.password or "",
            "timeout": config.rpc.timeout,
        },
        "paths": {
            "download_dir": str(config.paths.download_dir),
        },
        "ui": {
            "refresh_interval": config.ui.refresh_interval,
            "stats_interval": config.ui.stats_interval,
            "failure_threshold": config.ui.failure_threshold,
            "auto_hide": config.ui.auto_hide,
        },
    }
    CONFIG_FILE.write_text(yaml.safe_dump(payload, sort_keys=False, allow_unicode=False))
