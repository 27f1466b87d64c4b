"""bbproof verify - check a saved receipt before trusting its journal.

Usage:
    bbproof verify receipt.json [--program-id HEX] [--public-key key.pub] [--json]

The signer's public key comes from --public-key, else config
trusted_public_key. Without either, --allow-untrusted-key checks the
receipt against the key it carries, which proves integrity only.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from ..attestation import Receipt, load_public_key, program_id, verify
from ..claims import write_journal
from ..errors import AttestationError
from .prove_cmd import fail
from .report import print_record

LOGGER = logging.getLogger(__name__)


@click.command("verify")
@click.argument("receipt", type=click.Path(exists=True, dir_okay=False))
@click.option("--program-id", "expected", default=None,
              help="Expected evaluator identity (default: this installation's)")
@click.option("--public-key", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Ed25519 public key the receipt must be signed by (default: config trusted_public_key)")
@click.option("--allow-untrusted-key", is_flag=True,
              help="With no trusted key, accept the key embedded in the receipt")
@click.option("--out", "out_path", type=click.Path(dir_okay=False), default=None,
              help="Write the verified journal here")
@click.option("--json", "output_json", is_flag=True, help="Print the journal as JSON")
@click.pass_context
def verify_command(
    ctx: click.Context,
    receipt: str,
    expected: str | None,
    public_key: str | None,
    allow_untrusted_key: bool,
    out_path: str | None,
    output_json: bool,
) -> None:
    """Verify RECEIPT and print the attested result record."""
    key_file = public_key or ctx.obj["config"].get("trusted_public_key")
    try:
        trusted = load_public_key(Path(key_file).expanduser()) if key_file else None
        if trusted is None and allow_untrusted_key:
            LOGGER.warning("no trusted key configured; accepting the key embedded in the receipt")
        record = verify(
            Receipt.load(Path(receipt)),
            expected or program_id(),
            trusted,
            allow_untrusted=allow_untrusted_key,
        )
    except (AttestationError, ValueError, OSError) as e:
        fail(e)
        return

    untrusted = trusted is None
    if out_path:
        write_journal(record, Path(out_path))
    if output_json:
        if untrusted:
            click.echo("Warning: signer not checked against a trusted key", err=True)
        click.echo(json.dumps(record.to_dict(), indent=2))
        return
    print_record(record, title="SIGNATURE VALID (UNTRUSTED SIGNER)" if untrusted else "PROOF VERIFIED")
