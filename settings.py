from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DEVICE_ID_ENV = "HUB_DEVICE_ID"
_DEVICE_NAME_ENV = "HUB_DEVICE_NAME"
_DATA_ROOT_ENV = "HUB_DATA_ROOT"
_DEVICES_ROOT_ENV = "HUB_DEVICES_ROOT"
_WINDOW_SECONDS_ENV = "HUB_WINDOW_SECONDS"
_CHART_BINS_ENV = "HUB_CHART_BINS"
_RF24_BRIDGE_ID_ENV = "HUB_RF24_BRIDGE_ID"
_BROADCAST_ID_ENV = "HUB_BROADCAST_ID"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEVICE_TYPE = "BME280"
DEVICE_INTERFACE = "RF24"


@dataclass(frozen=True)
class Settings:
    device_id: str
    device_name: str
    data_root: Optional[str]
    devices_root: Optional[str]
    window_seconds: int
    chart_bins: int
    rf24_bridge_id: int
    broadcast_id: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_int_env(name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        device_id=_read_str_env(_DEVICE_ID_ENV, "1"),
        device_name=_read_str_env(_DEVICE_NAME_ENV, "BME280"),
        data_root=_read_optional_env(_DATA_ROOT_ENV, "./data"),
        devices_root=_read_optional_env(_DEVICES_ROOT_ENV, "./devices"),
        window_seconds=_read_int_env(_WINDOW_SECONDS_ENV, 43200),
        chart_bins=_read_int_env(_CHART_BINS_ENV, 200),
        rf24_bridge_id=_read_int_env(_RF24_BRIDGE_ID_ENV, 2, minimum=0),
        broadcast_id=_read_int_env(_BROADCAST_ID_ENV, 0, minimum=0),
        log_level=_read_log_level("INFO"),
    )
