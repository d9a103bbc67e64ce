from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_new_data(payload: Dict[str, Any]) -> None:
    echo_heading("New Reading")
    data = payload.get("data") or {}
    echo_key_values(
        [
            ("lastConnected", payload.get("lastConnected")),
            ("time", data.get("time")),
            ("temperature", data.get("temperature")),
            ("pressure", data.get("pressure")),
            ("humidity", data.get("humidity")),
            ("voltage", data.get("voltage")),
        ]
    )


def render_device(payload: Dict[str, Any]) -> None:
    echo_heading("Device")
    device = payload.get("device") or {}
    echo_key_values(sorted(device.items()))


def render_data_buffer(payload: Dict[str, Any]) -> None:
    data = payload.get("data") or {}
    times = data.get("time") or []
    echo_heading(f"Data Buffer ({len(times)} bins)")
    if not times:
        typer.echo("No bins available.")
        return

    typer.echo("time                 temperature  pressure  humidity")
    rows = zip(times, data.get("temperature") or [], data.get("pressure") or [], data.get("humidity") or [])
    for moment, temperature, pressure, humidity in rows:
        # temperature and humidity arrive scaled by 100
        typer.echo(
            f"{moment}  {temperature / 100:>11.2f}  {pressure:>8d}  {humidity / 100:>8.2f}"
        )
