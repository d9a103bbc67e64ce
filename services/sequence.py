"""Packet loss detection over the radio sequence counter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.readings import SequenceState

logger = logging.getLogger(__name__)

RESTART_COUNTER = 0
COUNTER_MODULUS = 256


class TrackerStatus(str, Enum):
    uninitialized = "uninitialized"
    tracking = "tracking"


@dataclass(frozen=True)
class LossEvent:
    """A gap between the expected and the received sequence counter."""

    expected: int
    received: int
    lost_total: int


def next_counter(counter: int) -> int:
    """Successor in the 1-255 counter space; 0 is reserved for restarts."""
    candidate = (counter + 1) % COUNTER_MODULUS
    return candidate or 1


class SequenceTracker:
    """Flags gaps in the counter stream of one device.

    The tracker never rejects a packet. It always adopts the received counter
    as the next baseline, so a single gap produces exactly one event.
    """

    def __init__(self, device_id: Optional[str] = None) -> None:
        self.device_id = device_id
        self.status = TrackerStatus.uninitialized
        self.state = SequenceState()

    @property
    def expected_counter(self) -> int:
        return self.state.expected_counter

    def observe(self, counter: int, lost_total: int) -> Optional[LossEvent]:
        self.state.last_known_lost_total = lost_total

        if counter == RESTART_COUNTER:
            logger.info("Device started", extra={"device_id": self.device_id})
            self.status = TrackerStatus.tracking
            self.state.expected_counter = RESTART_COUNTER
            return None

        event: Optional[LossEvent] = None
        if self.status is TrackerStatus.tracking:
            expected = next_counter(self.state.expected_counter)
            if expected != counter:
                event = LossEvent(expected=expected, received=counter, lost_total=lost_total)
                self.state.lost_events += 1
                logger.warning(
                    "Packets lost",
                    extra={
                        "device_id": self.device_id,
                        "expected": expected,
                        "received": counter,
                        "lost_total": lost_total,
                    },
                )

        self.status = TrackerStatus.tracking
        self.state.expected_counter = counter
        return event
