"""Configuration loading and saving.

Config file location: ~/.config/note-hashtags/config.toml

The file is optional; every key has a default.

Schema:
    [output]
    csv_file = "result.csv"
    logs_dir = "logs"
    dump_raw = true       # write every API response under logs_dir

    [api]
    base_url = "https://note.com/api/"
    site_url = "https://note.com"
    timeout = 30.0

    [format]
    timezone = "Asia/Tokyo"
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tomli_w

from .client import API_BASE_URL
from .converter import DEFAULT_SITE_URL, DEFAULT_TIMEZONE

CONFIG_DIR = Path.home() / ".config" / "note-hashtags"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class OutputConfig:
    csv_file: Path = Path("result.csv")
    logs_dir: Path = Path("logs")
    dump_raw: bool = True


@dataclass
class AppConfig:
    output: OutputConfig = field(default_factory=OutputConfig)
    base_url: str = API_BASE_URL
    site_url: str = DEFAULT_SITE_URL
    timeout: float = 30.0
    timezone: str = DEFAULT_TIMEZONE

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def validate_timezone(name: str) -> str:
    """Return `name` if it is a known IANA zone, else raise ValueError."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e
    return name


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load config from TOML file, falling back to defaults when absent."""
    if not config_path.exists():
        return AppConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    output_data = data.get("output", {})
    api_data = data.get("api", {})
    format_data = data.get("format", {})

    return AppConfig(
        output=OutputConfig(
            csv_file=Path(output_data.get("csv_file", "result.csv")),
            logs_dir=Path(output_data.get("logs_dir", "logs")),
            dump_raw=bool(output_data.get("dump_raw", True)),
        ),
        base_url=api_data.get("base_url", API_BASE_URL),
        site_url=api_data.get("site_url", DEFAULT_SITE_URL),
        timeout=float(api_data.get("timeout", 30.0)),
        timezone=validate_timezone(format_data.get("timezone", DEFAULT_TIMEZONE)),
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "output": {
            "csv_file": str(config.output.csv_file),
            "logs_dir": str(config.output.logs_dir),
            "dump_raw": config.output.dump_raw,
        },
        "api": {
            "base_url": config.base_url,
            "site_url": config.site_url,
            "timeout": config.timeout,
        },
        "format": {
            "timezone": config.timezone,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
