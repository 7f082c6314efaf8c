"""CLI — Registered trigger and instruction kinds."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from groundstation.sequencer.registry import default_registry

app = typer.Typer(help="Inspect the triggers and instructions offered to the sequencer.")
console = Console()


@app.command("list")
def list_items() -> None:
    """List all registered trigger and instruction kinds."""
    registry = default_registry()

    table = Table(title="Registered Items")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Description")

    for kind, meta in registry.describe().items():
        table.add_row(kind, meta.name, meta.category, meta.description)
    console.print(table)
