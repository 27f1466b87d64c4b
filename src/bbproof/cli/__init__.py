"""bbproof CLI - commitment-bound exploit loss claims.

Commands:
    keygen      - Generate a prover signing key
    program-id  - Print the evaluator's program identity
    prove       - Fetch state, assemble, prove and verify a claim
    verify      - Verify a saved receipt
    commit      - Compute claim parameters for offline witness files
"""
from __future__ import annotations

import logging
from pathlib import Path

import click

from ..config import load_config
from .commit_cmd import commit_command
from .keys_cmd import keygen_command, program_id_command
from .prove_cmd import prove_command
from .verify_cmd import verify_command


@click.group()
@click.version_option(version="0.1.0", prog_name="bbproof")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Global config file (default: ~/.bbproof/config.json)")
@click.option("--workspace", "-w", type=click.Path(exists=True, file_okay=False), default=None,
              help="Workspace containing .bbproof/config.json")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, workspace: str | None, verbose: bool) -> None:
    """bbproof - prove an exploit drains more than a threshold without revealing it.

    \b
    Quick start:
      bbproof keygen
      bbproof prove --rpc URL --asset 0x.. --target 0x.. --block N \\
                    --calldata poc.hex --threshold 1000 --post-balance 0
      bbproof verify receipt.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(
            Path(config_path) if config_path else None,
            Path(workspace) if workspace else None,
        )
    except ValueError as e:
        raise click.UsageError(str(e)) from e


cli.add_command(keygen_command, name="keygen")
cli.add_command(program_id_command, name="program-id")
cli.add_command(prove_command, name="prove")
cli.add_command(verify_command, name="verify")
cli.add_command(commit_command, name="commit")


def main() -> None:
    """CLI entry point."""
    cli(prog_name="bbproof")


if __name__ == "__main__":
    main()
