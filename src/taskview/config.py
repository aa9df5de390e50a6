"""Configuration management for taskview."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from taskview.core.sorting import SortDirection, SortField, SortSpec

logger = logging.getLogger(__name__)

TASKVIEW_HOME = Path(os.environ.get("TASKVIEW_HOME", Path.home() / ".taskview"))
CONFIG_FILE = TASKVIEW_HOME / "config" / "taskview.conf"


@dataclass
class Config:
    """taskview configuration."""

    api_base_url: str = "http://localhost:5001"
    api_token: str = ""
    request_timeout: float = 10.0
    page_size: int = 20
    fetch_page_size: int = 100
    cooldown_seconds: float = 1.0
    default_sort_field: str = "id"
    default_sort_direction: str = "desc"

    def default_sort(self) -> SortSpec:
        """Default sort spec, falling back to id/desc on unknown values."""
        try:
            return SortSpec(SortField(self.default_sort_field), SortDirection(self.default_sort_direction))
        except ValueError:
            logger.warning(
                f"Invalid default sort {self.default_sort_field}/{self.default_sort_direction}, using id/desc"
            )
            return SortSpec()


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _number(key: str, value: str, current, cast):
    try:
        return cast(value)
    except ValueError:
        logger.warning(f"Invalid number for {key.upper()}: {value!r}, keeping {current}")
        return current


def load_config(path: Path | None = None) -> Config:
    """Load configuration from taskview.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "api_base_url":
                config.api_base_url = value
            case "api_token":
                config.api_token = value
            case "request_timeout":
                config.request_timeout = _number(key, value, config.request_timeout, float)
            case "page_size":
                config.page_size = _number(key, value, config.page_size, int)
            case "fetch_page_size":
                config.fetch_page_size = _number(key, value, config.fetch_page_size, int)
            case "cooldown_seconds":
                config.cooldown_seconds = _number(key, value, config.cooldown_seconds, float)
            case "default_sort_field":
                config.default_sort_field = value
            case "default_sort_direction":
                config.default_sort_direction = value.lower()
            case _:
                logger.warning(f"Unknown config key: {key.upper()}")

    return config
