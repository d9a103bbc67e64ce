"""Fixed-budget binning of the readout buffer for charting."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

from models.readings import Reading
from services.errors import EmptyBufferError

logger = logging.getLogger(__name__)

DEFAULT_BIN_BUDGET = 200


@dataclass
class DownsampledSeries:
    """Chronological bins stamped with the newest sample of each chunk.

    Temperature and humidity are scaled by 100.
    """

    temperature: List[int] = field(default_factory=list)
    pressure: List[int] = field(default_factory=list)
    humidity: List[int] = field(default_factory=list)
    time: List[datetime] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.time)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def bin_size_for(count: int, budget: int) -> int:
    return max(count // budget, 1)


def _drop_partial_bin(readings: Sequence[Reading], bin_size: int) -> Sequence[Reading]:
    # The oldest count % bin_size readings never fill a bin and are not emitted.
    remainder = len(readings) % bin_size
    return readings[remainder:]


class Downsampler:
    """Reduces an ascending buffer to at most ``budget`` mean-valued bins."""

    def __init__(self, budget: int = DEFAULT_BIN_BUDGET) -> None:
        if budget < 1:
            raise ValueError("Bin budget must be positive.")
        self.budget = budget

    def aggregate(self, readings: Sequence[Reading]) -> DownsampledSeries:
        if not readings:
            raise EmptyBufferError()

        bin_size = bin_size_for(len(readings), self.budget)
        usable = _drop_partial_bin(readings, bin_size)
        series = DownsampledSeries()

        end = len(usable)
        while end > 0:
            chunk = usable[end - bin_size : end]
            series.temperature.insert(
                0, round_half_away(sum(r.temperature for r in chunk) * 100 / bin_size)
            )
            series.pressure.insert(0, round_half_away(sum(r.pressure for r in chunk) / bin_size))
            series.humidity.insert(
                0, round_half_away(sum(r.humidity for r in chunk) * 100 / bin_size)
            )
            series.time.insert(0, chunk[-1].timestamp)
            end -= bin_size

        logger.debug(
            "Downsampled readout buffer",
            extra={"bin_size": bin_size, "loaded": len(readings)},
        )
        return series
