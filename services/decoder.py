"""Decoding of raw BME280 radio frames.

Wire layout, little-endian, offsets in bytes::

    0       reserved
    1       sequence counter (uint8, 1-255, 0 signals a device start)
    4..19   float32 temperature, pressure, humidity, voltage
    20..23  uint32 cumulative count of packets the sender lost

A frame must carry at least ``MIN_FRAME_LENGTH`` bytes. Shorter payloads that
still pass that check are zero-padded up to ``FRAME_LENGTH`` so untransmitted
fields decode as zero; bytes past ``FRAME_LENGTH`` are ignored.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterable

from models.readings import DecodedPacket, Measurement
from services.errors import ShortFrameError

logger = logging.getLogger(__name__)

MIN_FRAME_LENGTH = 11
FRAME_LENGTH = 24

_COUNTER_OFFSET = 1
_VALUES_OFFSET = 4
_VALUES = struct.Struct("<4f")
_LOST_OFFSET = 20
_LOST = struct.Struct("<I")


class PacketDecoder:
    """Turns a fixed-size byte frame into a :class:`DecodedPacket`."""

    def decode(self, frame: bytes | bytearray | Iterable[int]) -> DecodedPacket:
        raw = bytes(frame)
        if len(raw) < MIN_FRAME_LENGTH:
            logger.error(
                "Rejecting short frame",
                extra={"frame_length": len(raw)},
            )
            raise ShortFrameError(len(raw), MIN_FRAME_LENGTH)

        padded = raw[:FRAME_LENGTH].ljust(FRAME_LENGTH, b"\x00")
        temperature, pressure, humidity, voltage = _VALUES.unpack_from(padded, _VALUES_OFFSET)
        (lost_total,) = _LOST.unpack_from(padded, _LOST_OFFSET)

        return DecodedPacket(
            counter=padded[_COUNTER_OFFSET],
            measurement=Measurement(
                temperature=temperature,
                pressure=pressure,
                humidity=humidity,
                voltage=voltage,
            ),
            lost_total=lost_total,
        )


def encode_frame(counter: int, measurement: Measurement, lost_total: int = 0) -> bytes:
    """Build a frame in the sender's layout; used by tooling and tests."""
    frame = bytearray(FRAME_LENGTH)
    frame[_COUNTER_OFFSET] = counter & 0xFF
    _VALUES.pack_into(
        frame,
        _VALUES_OFFSET,
        measurement.temperature,
        measurement.pressure,
        measurement.humidity,
        measurement.voltage,
    )
    _LOST.pack_into(frame, _LOST_OFFSET, lost_total)
    return bytes(frame)
