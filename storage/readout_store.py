"""Time-windowed, disk-backed buffer of BME280 readings."""

from __future__ import annotations

import logging
from collections import deque
from datetime import date, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Callable, Deque, Iterator, List, Optional

from datastore.device_snapshot import DeviceSnapshotFile, build_default_snapshot_file
from models.readings import (
    DeviceIdentity,
    Reading,
    format_local_time,
    local_now,
    parse_local_time,
)
from services.errors import EmptyBufferError
from settings import DEVICE_INTERFACE, DEVICE_TYPE, get_settings

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 43200
_MIN_FIELDS = 5


def format_line(reading: Reading) -> str:
    """Serialize ``reading`` as one day-file line, newline included."""
    return (
        f"{format_local_time(reading.timestamp)}, "
        f"{reading.temperature:.5g}, "
        f"{reading.pressure:.6g}, "
        f"{reading.humidity:.5g}, "
        f"{reading.voltage:.4g}, \n"
    )


def parse_line(line: str) -> Optional[Reading]:
    """Parse a day-file line; None for truncated or otherwise malformed lines."""
    cells = line.split(",")
    if len(cells) < _MIN_FIELDS:
        return None
    try:
        return Reading(
            timestamp=parse_local_time(cells[0]),
            temperature=float(cells[1]),
            pressure=float(cells[2]),
            humidity=float(cells[3]),
            voltage=float(cells[4]),
        )
    except ValueError:
        return None


class ReadoutStore:
    """Ordered readings of one device covering the last ``window_seconds``.

    Every appended reading is also written to the day-file of its local date
    under ``root_path`` and the device snapshot is refreshed. On startup
    :meth:`reload` rebuilds the buffer from the day-files that can still hold
    readings inside the window.
    """

    def __init__(
        self,
        device: DeviceIdentity,
        root_path: Optional[Path] = None,
        snapshot_file: Optional[DeviceSnapshotFile] = None,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.device = device
        self.root_path = root_path
        self.snapshot_file = snapshot_file
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock
        self._buffer: Deque[Reading] = deque()
        self.reload_failures = 0

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self._buffer)

    @property
    def last(self) -> Optional[Reading]:
        return self._buffer[-1] if self._buffer else None

    def day_file(self, day: date) -> Optional[Path]:
        if not self.root_path:
            return None
        device_id = self.device.id
        return self.root_path / device_id / f"{device_id}_{self.device.type}_{day.isoformat()}.csv"

    def append(self, reading: Reading) -> bool:
        """Buffer and persist ``reading``.

        Returns False when the day-file or the device snapshot could not be
        written. The reading stays buffered either way.
        """
        self._buffer.append(reading)
        persisted = self._persist(reading)
        self.evict()
        snapshot_ok = True
        if self.snapshot_file is not None:
            snapshot_ok = self.snapshot_file.write(self.device.describe(reading))
        return persisted and snapshot_ok

    def evict(self) -> int:
        cutoff = self._clock() - self.window
        removed = 0
        while self._buffer and self._buffer[0].timestamp < cutoff:
            self._buffer.popleft()
            removed += 1
        if removed:
            logger.debug(
                "Evicted readings outside the window",
                extra={"device_id": self.device.id, "removed": removed},
            )
        return removed

    def reload(self) -> int:
        """Load the window from disk; returns how many readings were retained.

        ``reload_failures`` counts day-files that exist but could not be read.
        """
        now = self._clock()
        today = now.astimezone().date()
        window_start = (now - self.window).astimezone().date()

        days = [window_start] if window_start == today else [window_start, today]
        loaded = 0
        self.reload_failures = 0
        for day in days:
            count = self._load_day(day)
            if count is None:
                self.reload_failures += 1
                continue
            loaded += count

        self.evict()
        logger.info(
            "Reloaded readout buffer",
            extra={"device_id": self.device.id, "loaded": loaded},
        )
        return len(self._buffer)

    def snapshot(
        self, window_seconds: Optional[int] = None, require_data: bool = True
    ) -> List[Reading]:
        if window_seconds is None:
            readings = list(self._buffer)
        else:
            cutoff = self._clock() - timedelta(seconds=window_seconds)
            readings = [reading for reading in self._buffer if reading.timestamp >= cutoff]

        if require_data and not readings:
            raise EmptyBufferError()
        return readings

    def _persist(self, reading: Reading) -> bool:
        path = self.day_file(reading.timestamp.astimezone().date())
        if path is None:
            return True
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(format_line(reading))
        except OSError as exc:
            logger.error(
                "Failed to persist reading",
                extra={"device_id": self.device.id, "path": str(path), "reason": str(exc)},
            )
            return False
        return True

    def _load_day(self, day: date) -> Optional[int]:
        path = self.day_file(day)
        if path is None:
            return 0

        loaded = 0
        try:
            with path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    reading = parse_line(line)
                    if reading is None:
                        continue
                    self._buffer.append(reading)
                    loaded += 1
        except FileNotFoundError:
            logger.warning(
                "No day-file to reload",
                extra={"device_id": self.device.id, "path": str(path)},
            )
        except OSError as exc:
            logger.error(
                "Failed to read day-file",
                extra={"device_id": self.device.id, "path": str(path), "reason": str(exc)},
            )
            return None
        return loaded


@lru_cache
def build_default_store(
    device_id: Optional[str] = None,
    root_path: Optional[str] = None,
) -> ReadoutStore:
    settings = get_settings()
    identity = DeviceIdentity(
        id=settings.device_id if device_id is None else device_id,
        type=DEVICE_TYPE,
        interface=DEVICE_INTERFACE,
        name=settings.device_name,
    )
    data_root = settings.data_root if root_path is None else root_path
    return ReadoutStore(
        device=identity,
        root_path=Path(data_root) if data_root else None,
        snapshot_file=build_default_snapshot_file(),
        window_seconds=settings.window_seconds,
    )
