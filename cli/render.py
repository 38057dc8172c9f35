from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

_ZONE_COLORS = {
    "alert": typer.colors.RED,
    "warning": typer.colors.YELLOW,
    "healthy": typer.colors.GREEN,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_state(payload: Dict[str, Any]) -> None:
    reading = payload.get("reading") or {}
    classification = payload.get("classification") or {}

    echo_heading("Soil Moisture")
    display = reading.get("display_percent")
    percent = f"{display:.0f}%" if isinstance(display, (int, float)) else "n/a"
    typer.secho(percent, fg=_ZONE_COLORS.get(classification.get("color_tag")), bold=True)
    echo_key_values(
        [
            ("status_text", reading.get("status_text")),
            ("zone", classification.get("zone")),
            ("color_tag", classification.get("color_tag")),
        ]
    )

    typer.echo()
    echo_heading("Sync")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("generation", payload.get("generation")),
            ("last_error", payload.get("last_error")),
        ]
    )

    token = payload.get("token")
    typer.echo()
    echo_heading("Push Registration")
    if token:
        echo_key_values(
            [
                ("token", token.get("value")),
                ("delivered_to_backend", token.get("delivered_to_backend")),
            ]
        )
    else:
        typer.echo("No registration token issued.")
