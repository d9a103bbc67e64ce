"""Domain models for BME280 readouts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, NamedTuple, Optional

# Local wall-clock text without an offset. A time in the repeated hour after a
# DST fall-back always parses to its first occurrence (fold=0), so readings
# from the second pass reload one hour early and out of order.
LOCAL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now() -> datetime:
    """Current wall-clock time as an aware datetime in the host time zone."""
    return datetime.now().astimezone()


def format_local_time(moment: datetime) -> str:
    return moment.astimezone().strftime(LOCAL_TIME_FORMAT)


def parse_local_time(text: str) -> datetime:
    return datetime.strptime(text.strip(), LOCAL_TIME_FORMAT).astimezone()


@dataclass(frozen=True, slots=True)
class Measurement:
    """The four physical values carried by one radio packet."""

    temperature: float
    pressure: float
    humidity: float
    voltage: float

    def at(self, timestamp: datetime) -> Reading:
        return Reading(
            timestamp=timestamp,
            temperature=self.temperature,
            pressure=self.pressure,
            humidity=self.humidity,
            voltage=self.voltage,
        )


@dataclass(frozen=True, slots=True)
class Reading:
    """A single timestamped sensor sample."""

    timestamp: datetime
    temperature: float
    pressure: float
    humidity: float
    voltage: float

    def values(self) -> Dict[str, float]:
        return {
            "temperature": self.temperature,
            "pressure": self.pressure,
            "humidity": self.humidity,
            "voltage": self.voltage,
        }


class DecodedPacket(NamedTuple):
    counter: int
    measurement: Measurement
    lost_total: int


@dataclass
class DeviceIdentity:
    """Identity fields of the device, serialized next to its last reading."""

    id: str
    type: str
    interface: str
    name: str
    status: str = "unknown"
    pipe_index: Optional[int] = None
    last_connected: Optional[datetime] = None

    def as_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "interface": self.interface,
            "name": self.name,
            "status": self.status,
            "pipeIndex": self.pipe_index,
            "lastConnected": (
                format_local_time(self.last_connected) if self.last_connected else None
            ),
        }

    def describe(self, reading: Optional[Reading]) -> Dict[str, Any]:
        """Identity fields merged with the values of ``reading`` (zeros if none)."""
        payload = self.as_payload()
        if reading is None:
            payload.update(temperature=0.0, pressure=0.0, humidity=0.0, voltage=0.0)
        else:
            payload.update(reading.values())
        return payload


@dataclass
class SequenceState:
    expected_counter: int = 0
    last_known_lost_total: int = 0
    lost_events: int = 0
