from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_data_buffer, render_device, render_new_data


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the BME280 hub adapter.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_byte(token: str) -> int:
    try:
        value = int(token, 0)
    except ValueError as exc:
        raise typer.BadParameter(f"{token!r} is not a byte value.") from exc
    if not 0 <= value <= 255:
        raise typer.BadParameter(f"{token!r} is outside 0-255.")
    return value


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Adapter API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
    src_id: Optional[int] = typer.Option(
        None,
        "--src-id",
        help="Radio bridge id used as srcId for sent frames.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout, src_id=src_id)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    frame: List[str] = typer.Argument(..., help="Frame bytes, decimal or 0x-prefixed."),
    pipe: int = typer.Option(0, "--pipe", min=0, help="Radio pipe index of the frame."),
) -> None:
    """Push a raw radio frame through the adapter."""
    state = _get_state(ctx)
    data = [_parse_byte(token) for token in frame]
    payload = state.client.send_frame(data, pipe_index=pipe)
    render_new_data(payload)


@app.command("device")
def device_command(ctx: typer.Context) -> None:
    """Show the device identity and its last reading."""
    state = _get_state(ctx)
    render_device(state.client.get_device())


@app.command("buffer")
def buffer_command(ctx: typer.Context) -> None:
    """Print the downsampled readout buffer."""
    state = _get_state(ctx)
    render_data_buffer(state.client.pull_data_buffer())
