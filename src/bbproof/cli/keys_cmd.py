"""bbproof keygen / program-id."""
from __future__ import annotations

from pathlib import Path

import click

from ..attestation import generate_key, program_id


@click.command("keygen")
@click.option("--key", "-k", default=None, type=click.Path(dir_okay=False),
              help="Where to write the Ed25519 private key (PEM)")
@click.option("--force", is_flag=True, help="Overwrite an existing key")
@click.pass_context
def keygen_command(ctx: click.Context, key: str | None, force: bool) -> None:
    """Generate the prover's Ed25519 key pair."""
    key_path = Path(key or ctx.obj["config"]["key_path"]).expanduser()
    if key_path.exists() and not force:
        click.echo(f"Key already exists at {key_path}. Use --force to replace it.", err=True)
        raise SystemExit(1)
    generate_key(key_path)
    click.echo("Generated key pair:")
    click.echo(f"  Private: {key_path}")
    click.echo(f"  Public:  {key_path.with_suffix('.pub')}")


@click.command("program-id")
def program_id_command() -> None:
    """Print the identity receipts from this evaluator carry."""
    click.echo(program_id())
