"""CLI — One-shot MQTT publish using the configured broker."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

from groundstation.config import get_settings
from groundstation.exceptions import GroundStationError
from groundstation.items.send_to_mqtt import SendToMqtt
from groundstation.settings_store import ConfigurationStore

app = typer.Typer(help="Publish messages to the configured MQTT broker.")
console = Console()


@app.command("send")
def send(
    payload: str = typer.Argument(help="Message body to publish."),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Override mqtt.default_topic."),
) -> None:
    """Publish PAYLOAD with QoS 2 and the retain flag set."""
    try:
        store = ConfigurationStore.from_settings(get_settings())
        item = SendToMqtt(store)
        if topic is not None:
            item.topic = topic
        item.payload = payload
        if not item.validate():
            for issue in item.issues:
                console.print(f"[red]{issue}[/red]")
            raise typer.Exit(1)
        asyncio.run(item.execute())
    except GroundStationError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Published to[/green] {item.topic}")
