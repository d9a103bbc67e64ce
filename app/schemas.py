"""Pydantic schemas for the hub's JSON message envelopes."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DataReceivedMessage(BaseModel):
    """Frame forwarded by the radio bridge."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = "dataReceived"
    src_id: int = Field(..., alias="srcId")
    pipe_index: int = Field(..., alias="pipeIndex", ge=0)
    data: List[Annotated[int, Field(ge=0, le=255)]] = Field(
        ..., description="Raw frame bytes, at least 11 expected."
    )


class GuiMessage(BaseModel):
    """Request sent by a UI client to the device."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    src_id: int = Field(0, alias="srcId")
    parameter: Optional[Dict[str, Any]] = None


class NewReadingData(BaseModel):
    temperature: float
    pressure: float
    humidity: float
    voltage: float
    time: str


class PushNewData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["pushNewData"] = "pushNewData"
    last_connected: str = Field(..., alias="lastConnected")
    data: NewReadingData


class DataBuffer(BaseModel):
    """Downsampled series; temperature and humidity are scaled by 100."""

    temperature: List[int] = Field(default_factory=list)
    pressure: List[int] = Field(default_factory=list)
    humidity: List[int] = Field(default_factory=list)
    time: List[str] = Field(default_factory=list)


class PushDataBuffer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    des_id: int = Field(..., alias="desId")
    type: Literal["pushDataBuffer"] = "pushDataBuffer"
    data: DataBuffer


class PushDevice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    des_id: int = Field(..., alias="desId")
    type: Literal["pushDevice"] = "pushDevice"
    device: Dict[str, Any]
