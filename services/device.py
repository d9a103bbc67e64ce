"""BME280 device adapter: message handling on top of the readout pipeline."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from app.schemas import (
    DataBuffer,
    DataReceivedMessage,
    GuiMessage,
    NewReadingData,
    PushDataBuffer,
    PushDevice,
    PushNewData,
)
from models.readings import DeviceIdentity, Reading, format_local_time, local_now
from services.decoder import PacketDecoder
from services.downsampler import Downsampler
from services.errors import (
    EmptyBufferError,
    UnknownParameterError,
    UnsupportedMessageError,
)
from services.sequence import LossEvent, SequenceTracker
from settings import get_settings
from storage.readout_store import ReadoutStore, build_default_store

logger = logging.getLogger(__name__)

_READING_PARAMETERS = ("temperature", "pressure", "humidity", "voltage")


class BME280Device:
    """Owns the tracker, store and downsampler of a single device.

    Messages for one device must be delivered one at a time; the adapter does
    no locking of its own.
    """

    def __init__(
        self,
        store: ReadoutStore,
        tracker: Optional[SequenceTracker] = None,
        decoder: Optional[PacketDecoder] = None,
        downsampler: Optional[Downsampler] = None,
        rf24_bridge_id: int = 2,
        broadcast_id: int = 0,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.store = store
        self.identity: DeviceIdentity = store.device
        self.tracker = tracker or SequenceTracker(device_id=self.identity.id)
        self.decoder = decoder or PacketDecoder()
        self.downsampler = downsampler or Downsampler()
        self.rf24_bridge_id = rf24_bridge_id
        self.broadcast_id = broadcast_id
        self._clock = clock
        self.last_reading: Optional[Reading] = None
        self.lost_readouts = 0
        self.last_loss: Optional[LossEvent] = None

    def start(self) -> int:
        """Rebuild the buffer from disk; returns the number of readings retained."""
        retained = self.store.reload()
        self.last_reading = self.store.last
        return retained

    def describe(self) -> Dict[str, Any]:
        return self.identity.describe(self.last_reading)

    def process_device_message(self, msg: Mapping[str, Any]) -> Dict[str, Any]:
        """Handle a frame from the radio bridge and return the ``pushNewData`` reply."""
        if msg.get("srcId") != self.rf24_bridge_id:
            raise UnsupportedMessageError("Message does not come from the RF24 bridge.")
        try:
            message = DataReceivedMessage.model_validate(msg)
        except ValidationError as exc:
            raise UnsupportedMessageError(f"Malformed device message: {exc}") from exc
        if message.type != "dataReceived":
            raise UnsupportedMessageError(f"Unknown device message type {message.type!r}.")

        # Decoding happens before any state change so a short frame leaves no trace.
        packet = self.decoder.decode(message.data)
        self.identity.pipe_index = message.pipe_index
        self.last_loss = self.tracker.observe(packet.counter, packet.lost_total)

        received_at = self._clock()
        reading = packet.measurement.at(received_at)
        self.identity.last_connected = received_at
        self.identity.status = "online"
        self.last_reading = reading
        self.lost_readouts = packet.lost_total

        logger.info(
            "temperature = %s, pressure = %s, humidity = %s, voltage = %s",
            reading.temperature,
            reading.pressure,
            reading.humidity,
            reading.voltage,
            extra={"device_id": self.identity.id, "counter": packet.counter},
        )

        self.store.append(reading)

        reply = PushNewData(
            last_connected=format_local_time(received_at),
            data=NewReadingData(
                time=format_local_time(reading.timestamp),
                **reading.values(),
            ),
        )
        return reply.model_dump(by_alias=True)

    def process_gui_message(self, msg: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            message = GuiMessage.model_validate(msg)
        except ValidationError as exc:
            raise UnsupportedMessageError(f"Malformed GUI message: {exc}") from exc

        if message.type == "setParameter":
            if not message.parameter:
                raise UnsupportedMessageError("setParameter does not contain entry 'parameter'.")
            key, value = next(iter(message.parameter.items()))
            self.set_parameter(key, value)
            reply = PushDevice(des_id=self.broadcast_id, device=self.describe())
            return reply.model_dump(by_alias=True)

        if message.type == "pullDevice":
            reply = PushDevice(des_id=message.src_id, device=self.describe())
            return reply.model_dump(by_alias=True)

        if message.type == "pullDataBuffer":
            return self.pull_data_buffer(message.src_id)

        raise UnsupportedMessageError(f"Unknown GUI message type {message.type!r}.")

    def set_parameter(self, key: str, value: Any) -> None:
        if key == "name":
            self.identity.name = str(value)
            return
        if key not in _READING_PARAMETERS:
            logger.error("Parameter does not exist", extra={"reason": key})
            raise UnknownParameterError(f"Parameter {key!r} does not exist.")

        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise UnsupportedMessageError(f"Parameter {key!r} must be numeric.") from exc

        base = self.last_reading or Reading(self._clock(), 0.0, 0.0, 0.0, 0.0)
        self.last_reading = dataclasses.replace(base, **{key: number})

    def pull_data_buffer(self, des_id: int) -> Dict[str, Any]:
        try:
            readings = self.store.snapshot()
        except EmptyBufferError:
            logger.warning("Readout buffer is empty", extra={"device_id": self.identity.id})
            raise

        series = self.downsampler.aggregate(readings)
        reply = PushDataBuffer(
            des_id=des_id,
            data=DataBuffer(
                temperature=series.temperature,
                pressure=series.pressure,
                humidity=series.humidity,
                time=[format_local_time(moment) for moment in series.time],
            ),
        )
        return reply.model_dump(by_alias=True)


@lru_cache
def build_default_adapter() -> BME280Device:
    """Factory that wires the adapter with the configured storage roots."""
    settings = get_settings()
    return BME280Device(
        store=build_default_store(),
        downsampler=Downsampler(budget=settings.chart_bins),
        rf24_bridge_id=settings.rf24_bridge_id,
        broadcast_id=settings.broadcast_id,
    )
