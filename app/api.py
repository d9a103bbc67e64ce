"""HTTP route definitions for the hub adapter."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import DataReceivedMessage, GuiMessage, PushNewData
from services.device import BME280Device, build_default_adapter
from services.errors import (
    EmptyBufferError,
    ShortFrameError,
    UnknownParameterError,
    UnsupportedMessageError,
)

router = APIRouter()


def get_adapter() -> BME280Device:
    return build_default_adapter()


@router.post(
    "/messages/device",
    response_model=PushNewData,
    response_model_by_alias=True,
    summary="Deliver a frame received by the radio bridge.",
)
async def device_message(
    message: DataReceivedMessage,
    adapter: BME280Device = Depends(get_adapter),
) -> Dict[str, Any]:
    try:
        return adapter.process_device_message(message.model_dump(by_alias=True))
    except (ShortFrameError, UnsupportedMessageError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post(
    "/messages/gui",
    summary="Deliver a request from a UI client.",
)
async def gui_message(
    message: GuiMessage,
    adapter: BME280Device = Depends(get_adapter),
) -> Dict[str, Any]:
    try:
        return adapter.process_gui_message(message.model_dump(by_alias=True))
    except EmptyBufferError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except (UnknownParameterError, UnsupportedMessageError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/device",
    summary="Current identity and last reading of the device.",
)
async def get_device(adapter: BME280Device = Depends(get_adapter)) -> Dict[str, Any]:
    return {"device": adapter.describe()}


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(adapter: BME280Device = Depends(get_adapter)) -> Dict[str, Any]:
    return {"status": "ok", "buffered": len(adapter.store)}
