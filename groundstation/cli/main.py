"""GroundStation CLI — Entry point.

Usage:
    groundstation items list
    groundstation validate [KIND ...]
    groundstation mqtt send <payload> [--topic TOPIC]
    groundstation secrets encrypt <value>
    groundstation secrets generate-key
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from groundstation.cli.commands import items, mqtt, secrets, validate
from groundstation.config import Settings, override_settings
from groundstation.logging import configure_logging

app = typer.Typer(
    name="groundstation",
    help="GroundStation — failure notifications and environmental waits for a sequencer.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.add_typer(items.app, name="items")
app.add_typer(mqtt.app, name="mqtt")
app.add_typer(secrets.app, name="secrets")
app.command("validate")(validate.validate)


@app.callback()
def main_callback(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a YAML config file.", exists=True, dir_okay=False
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override logging.level."),
) -> None:
    settings = Settings.load(config)
    override_settings(settings)
    configure_logging(
        level=log_level or settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )


if __name__ == "__main__":
    app()
