"""CLI — Configuration validation."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from groundstation.config import get_settings
from groundstation.exceptions import GroundStationError
from groundstation.sequencer.registry import default_registry
from groundstation.settings_store import ConfigurationStore

console = Console()


def validate(
    kinds: Optional[List[str]] = typer.Argument(
        None, help="Kinds to validate (default: every registered kind)."
    ),
) -> None:
    """Check the current configuration against each item's requirements."""
    registry = default_registry()
    try:
        store = ConfigurationStore.from_settings(get_settings())
        selected = kinds or registry.kinds()
        entities = [registry.create(kind, store) for kind in selected]
    except GroundStationError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Validation")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Valid")
    table.add_column("Issues")

    failed = False
    for entity in entities:
        ok = entity.validate()
        failed = failed or not ok
        table.add_row(
            entity.KIND,
            "[green]yes[/green]" if ok else "[red]no[/red]",
            "\n".join(entity.issues) or "-",
        )
        entity.dispose()
    console.print(table)

    if failed:
        raise typer.Exit(1)
