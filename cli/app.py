from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from app.schemas import StateResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_state
from logging_config import configure_logging
from services.controller import SyncController, build_default_controller, build_default_platform


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for inspecting the plant monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor service URL (defaults to MONITOR_SERVICE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between status checks when waiting for a refresh.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to wait when polling for a refresh.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("state")
def state_command(ctx: typer.Context) -> None:
    """Show the service's current reading, alert zone and token."""
    state = _get_state(ctx)
    render_state(state.client.get_state())


@app.command("refresh")
def refresh_command(
    ctx: typer.Context,
    wait: bool = typer.Option(
        False,
        "--wait/--no-wait",
        help="Wait for the fetch to finish and display the new state.",
    ),
) -> None:
    """Ask the service to fetch the sensor state again."""
    state = _get_state(ctx)
    payload = state.client.refresh()
    typer.secho(f"Refresh requested. generation={payload.get('generation')}", fg=typer.colors.GREEN)

    if not wait:
        return

    interval = state.config.poll_interval
    poll_timeout = state.config.poll_timeout
    typer.echo(f"Waiting for refresh (interval={interval}s, timeout={poll_timeout}s)...")
    result = state.client.poll_state(interval=interval, timeout=poll_timeout)
    typer.echo()
    render_state(result)


@app.command("check")
def check_command() -> None:
    """Run the startup sync once in-process, without a running service."""
    configure_logging()
    try:
        payload = asyncio.run(_check_once(build_default_controller()))
    finally:
        build_default_controller.cache_clear()
        build_default_platform.cache_clear()
    render_state(payload)
    if payload.get("status") == "failed":
        raise typer.Exit(code=1)


async def _check_once(controller: SyncController) -> Dict[str, Any]:
    try:
        controller.start()
        await controller.wait_idle()
        return StateResponse.from_snapshot(controller.snapshot()).model_dump(mode="json")
    finally:
        await controller.aclose()
