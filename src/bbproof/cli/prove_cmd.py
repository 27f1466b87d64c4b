"""bbproof prove - fetch pinned state, prove the claim, verify the receipt.

Usage:
    bbproof prove --rpc https://eth.llamarpc.com \\
        --asset 0x... --target 0x... --block 19000000 \\
        --calldata poc.hex --threshold 1000000000000000000 \\
        --post-balance 0 --receipt receipt.json --out journal.json
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from ..assembler import assemble_from_ledger, build_env
from ..attestation import LocalProver, load_private_key, program_id, verify
from ..claims import ThresholdRule, WitnessShape, write_journal
from ..errors import AttestationError, RpcError, WitnessRejected
from ..rpc import JsonRpcLedger, parse_address, read_blob
from .exit_codes import error_to_exit_code, exit_code_description
from .report import print_record

LOGGER = logging.getLogger(__name__)

SHAPE_CHOICES = [s.value for s in WitnessShape]
RULE_CHOICES = [r.value for r in ThresholdRule]


def parse_u128(value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError as e:
        raise click.BadParameter("must be a decimal integer") from e
    if not 0 <= parsed < (1 << 128):
        raise click.BadParameter("must fit in 128 unsigned bits")
    return parsed


def _address(value: str, name: str) -> bytes:
    try:
        return parse_address(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=name) from e


def fail(exc: BaseException) -> None:
    code = error_to_exit_code(exc)
    click.echo(f"Error ({exit_code_description(code)}): {exc}", err=True)
    raise SystemExit(code)


@click.command("prove")
@click.option("--rpc", default=None, help="JSON-RPC endpoint (default: config rpc_url)")
@click.option("--asset", required=True, help="ERC-20 asset address (0x + 40 hex)")
@click.option("--target", required=True, help="Target address (0x + 40 hex)")
@click.option("--block", required=True, type=click.IntRange(min=0), help="Pinned block number")
@click.option("--calldata", type=click.Path(exists=True, dir_okay=False), default=None,
              help="PoC calldata file (0x-hex text or raw bytes)")
@click.option("--threshold", required=True, help="Threshold as decimal u128")
@click.option("--shape", type=click.Choice(SHAPE_CHOICES), default=None,
              help="Witness shape (default: config shape)")
@click.option("--post-block", type=click.IntRange(min=0), default=None,
              help="Block to read the post-exploit balance at")
@click.option("--post-balance", default=None, help="Post-exploit balance as decimal")
@click.option("--comparison", type=click.Choice(RULE_CHOICES), default=None,
              help="Threshold rule: ge (default) or gt")
@click.option("--key", "-k", type=click.Path(dir_okay=False), default=None,
              help="Prover key (default: config key_path)")
@click.option("--receipt", "receipt_path", type=click.Path(dir_okay=False), default=None,
              help="Write the receipt JSON here")
@click.option("--out", "out_path", type=click.Path(dir_okay=False), default=None,
              help="Write journal.json here")
@click.option("--json", "output_json", is_flag=True, help="Print the journal as JSON")
@click.pass_context
def prove_command(
    ctx: click.Context,
    rpc: str | None,
    asset: str,
    target: str,
    block: int,
    calldata: str | None,
    threshold: str,
    shape: str | None,
    post_block: int | None,
    post_balance: str | None,
    comparison: str | None,
    key: str | None,
    receipt_path: str | None,
    out_path: str | None,
    output_json: bool,
) -> None:
    """Prove that the PoC calldata drains more than THRESHOLD from TARGET."""
    cfg = ctx.obj["config"]
    rpc_url = rpc or cfg.get("rpc_url")
    if not rpc_url:
        raise click.UsageError("no RPC endpoint: pass --rpc or set rpc_url / BBPROOF_RPC_URL")

    claim_shape = WitnessShape(shape or cfg["shape"])
    rule = ThresholdRule(comparison or cfg["comparison"])
    threshold_value = parse_u128(threshold)
    asset_addr = _address(asset, "--asset")
    target_addr = _address(target, "--target")
    post_value = None
    if post_balance is not None:
        try:
            post_value = int(post_balance, 10)
        except ValueError as e:
            raise click.BadParameter("must be a decimal integer", param_hint="--post-balance") from e
    if claim_shape.binds_code and calldata is None:
        raise click.UsageError(f"--calldata is required for {claim_shape.value} claims")
    if claim_shape.computes_delta and post_block is None and post_value is None:
        raise click.UsageError(f"{claim_shape.value} claims need --post-block or --post-balance")

    key_path = Path(key or cfg["key_path"]).expanduser()
    if not key_path.exists():
        click.echo(f"No prover key at {key_path}. Run 'bbproof keygen' first.", err=True)
        raise SystemExit(1)

    ledger = JsonRpcLedger(rpc_url, timeout=float(cfg["rpc_timeout_seconds"]))
    try:
        calldata_bytes = read_blob(Path(calldata)) if calldata else b""
        params, witness = assemble_from_ledger(
            ledger,
            claim_shape,
            threshold_value,
            asset_addr,
            target_addr,
            block,
            calldata=calldata_bytes,
            post_block=post_block,
            post_balance=post_value,
            comparison=rule,
        )
        prover = LocalProver(load_private_key(key_path))
        receipt = prover.prove(build_env(params, witness))
        record = verify(receipt, program_id(), prover.private_key.public_key())
    except (WitnessRejected, RpcError, AttestationError, ValueError) as e:
        fail(e)
        return

    if receipt_path:
        receipt.save(Path(receipt_path))
    if out_path:
        write_journal(record, Path(out_path))

    if output_json:
        click.echo(json.dumps(record.to_dict(), indent=2))
        return
    print_record(record, {"block": str(block), "program": receipt.program_id[:16] + "..."})
    if receipt_path:
        click.echo(f"Receipt: {receipt_path}")
    if out_path:
        click.echo(f"Journal: {out_path}")
