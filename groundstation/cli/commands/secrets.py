"""CLI — Credential encryption helpers."""

from __future__ import annotations

import typer
from rich.console import Console

from groundstation.config import get_settings
from groundstation.secrets import SecretCipher

app = typer.Typer(help="Encrypt credentials for the config file.")
console = Console()


@app.command("generate-key")
def generate_key() -> None:
    """Print a new key for ``secrets.key``."""
    typer.echo(SecretCipher.generate_key())


@app.command("encrypt")
def encrypt(value: str = typer.Argument(help="Plaintext credential.")) -> None:
    """Print the ciphertext of VALUE under the configured key."""
    key = get_settings().secrets.key
    if not key:
        console.print("[red]Error: secrets.key is not configured (see 'secrets generate-key').[/red]")
        raise typer.Exit(1)
    typer.echo(SecretCipher(key).encrypt(value))
