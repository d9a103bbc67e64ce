from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_SRC_ID = 2

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_HTTP_TIMEOUT"
_SRC_ID_ENV = "HUB_RF24_BRIDGE_ID"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    src_id: int = DEFAULT_SRC_ID


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    src_id: Optional[int] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    if src_id is None:
        src_id = _read_int(os.getenv(_SRC_ID_ENV), DEFAULT_SRC_ID)
    return CLIConfig(
        base_url=url.rstrip("/"),
        timeout=timeout,
        src_id=src_id,
    )
