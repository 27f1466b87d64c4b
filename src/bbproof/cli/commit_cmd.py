"""bbproof commit - claim parameters (including the commitment) for local files."""
from __future__ import annotations

import json
from pathlib import Path

import click

from ..assembler import assemble, pack_balances
from ..claims import ThresholdRule, WitnessShape
from ..errors import WitnessRejected
from ..rpc import parse_address, read_blob
from .prove_cmd import RULE_CHOICES, SHAPE_CHOICES, fail, parse_u128


def _read(path: str | None) -> bytes:
    return read_blob(Path(path)) if path else b""


@click.command("commit")
@click.option("--shape", type=click.Choice(SHAPE_CHOICES), required=True)
@click.option("--threshold", required=True, help="Threshold as decimal u128")
@click.option("--balance", default=None, help="Balance (single_balance) or pre balance, decimal")
@click.option("--post", "post", default=None, help="Post balance, decimal")
@click.option("--calldata", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--target-code", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--asset-code", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--asset", default=None, help="Asset address (bound shapes)")
@click.option("--target", default=None, help="Target address (bound shapes)")
@click.option("--comparison", type=click.Choice(RULE_CHOICES), default=ThresholdRule.INCLUSIVE.value)
def commit_command(
    shape: str,
    threshold: str,
    balance: str | None,
    post: str | None,
    calldata: str | None,
    target_code: str | None,
    asset_code: str | None,
    asset: str | None,
    target: str | None,
    comparison: str,
) -> None:
    """Print public claim parameters for witness files on disk."""
    claim_shape = WitnessShape(shape)
    if balance is None:
        raise click.UsageError("--balance is required")
    if claim_shape.binds_code and (asset is None or target is None):
        raise click.UsageError(f"{claim_shape.value} claims need --asset and --target")
    try:
        balances = pack_balances(
            claim_shape,
            int(balance, 10),
            int(post, 10) if post is not None else None,
        )
        params, _ = assemble(
            claim_shape,
            parse_u128(threshold),
            balances,
            calldata=_read(calldata),
            target_code=_read(target_code),
            asset_code=_read(asset_code),
            asset=parse_address(asset) if asset else None,
            target=parse_address(target) if target else None,
            comparison=ThresholdRule(comparison),
        )
    except (WitnessRejected, ValueError) as e:
        fail(e)
        return
    click.echo(json.dumps(params.to_dict(), indent=2))
