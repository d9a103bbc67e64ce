"""Unit tests for the chart downsampling logic."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

import pytest

from models.readings import Reading
from services.downsampler import Downsampler, bin_size_for, round_half_away
from services.errors import EmptyBufferError

START = datetime(2024, 6, 15, 0, 0, 0).astimezone()


def _readings(count: int) -> List[Reading]:
    """Helper to build deterministic, ascending readings."""

    return [
        Reading(
            timestamp=START + timedelta(seconds=60 * index),
            temperature=20.0 + index * 0.0123,
            pressure=1000.0 + index * 0.37,
            humidity=40.0 + (index % 7) * 0.11,
            voltage=3.3,
        )
        for index in range(count)
    ]


def test_aggregate_empty_buffer_raises() -> None:
    with pytest.raises(EmptyBufferError):
        Downsampler().aggregate([])


def test_exact_multiple_fills_the_whole_budget() -> None:
    readings = _readings(1000)

    series = Downsampler(budget=200).aggregate(readings)

    assert bin_size_for(1000, 200) == 5
    assert len(series) == 200
    assert len(series.temperature) == len(series.pressure) == len(series.humidity) == 200
    oldest = readings[0:5]
    assert series.time[0] == readings[4].timestamp
    assert series.temperature[0] == round(sum(r.temperature for r in oldest) / 5 * 100)
    assert series.pressure[0] == round(sum(r.pressure for r in oldest) / 5)
    assert series.humidity[0] == round(sum(r.humidity for r in oldest) / 5 * 100)
    assert series.time[-1] == readings[-1].timestamp
    assert series.time == sorted(series.time)


def test_small_buffer_is_not_downsampled() -> None:
    readings = _readings(7)

    series = Downsampler(budget=200).aggregate(readings)

    assert len(series) == 7
    assert series.time == [reading.timestamp for reading in readings]
    assert series.temperature == [round(reading.temperature * 100) for reading in readings]
    assert series.pressure == [round(reading.pressure) for reading in readings]
    assert series.humidity == [round(reading.humidity * 100) for reading in readings]


def test_oldest_remainder_is_dropped() -> None:
    readings = _readings(1003)

    series = Downsampler(budget=200).aggregate(readings)

    assert len(series) == 200
    # readings[0:3] never fill a bin; the first bin covers readings[3:8]
    assert series.time[0] == readings[7].timestamp
    assert series.pressure[0] == round(sum(r.pressure for r in readings[3:8]) / 5)
    assert all(moment > readings[2].timestamp for moment in series.time)


def test_bin_time_is_newest_sample_of_chunk() -> None:
    readings = _readings(20)

    series = Downsampler(budget=4).aggregate(readings)

    assert series.time == [readings[i].timestamp for i in (4, 9, 14, 19)]


def test_round_half_away_from_zero() -> None:
    assert round_half_away(2.5) == 3
    assert round_half_away(-2.5) == -3
    assert round_half_away(2.4999) == 2
    assert round_half_away(-0.4) == 0


def test_invalid_budget_rejected() -> None:
    with pytest.raises(ValueError):
        Downsampler(budget=0)
