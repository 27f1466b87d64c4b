"""Witness assembler.

Runs outside the constrained evaluator. Gathers the public claim
parameters and the private witness, computes the commitment with the
same encoding the evaluator uses, and lays the records out on an
``ExecutionEnv`` in the order the evaluator reads them.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from .claims import SELECTOR_SIZE, ClaimParameters, PrivateWitness, ThresholdRule, WitnessShape
from .commitment import commit_witness
from .errors import MalformedWitness
from .guest import ExecutionEnv
from .hashing import DEFAULT_HASH, HashFn
from .rpc import Ledger
from .u256 import U128_MAX, WORD_SIZE, to_word

LOGGER = logging.getLogger(__name__)

BalanceValue = Union[int, bytes]


def _as_word(value: BalanceValue, name: str) -> bytes:
    if isinstance(value, int):
        return to_word(value)
    if len(value) != WORD_SIZE:
        raise MalformedWitness(f"{name} must be {WORD_SIZE} bytes, got {len(value)}")
    return bytes(value)


def pack_balances(
    shape: WitnessShape,
    balance: BalanceValue,
    post: Optional[BalanceValue] = None,
) -> bytes:
    """Build the balance blob for ``shape`` from ints or 32-byte words."""
    if shape is WitnessShape.SINGLE_BALANCE:
        if post is not None:
            raise ValueError("single_balance claims take one balance")
        return _as_word(balance, "balance")
    if post is None:
        raise ValueError(f"{shape.value} claims need both pre and post balances")
    return _as_word(balance, "pre balance") + _as_word(post, "post balance")


def assemble(
    shape: WitnessShape,
    threshold: int,
    balances: bytes,
    calldata: bytes = b"",
    target_code: bytes = b"",
    asset_code: bytes = b"",
    asset: Optional[bytes] = None,
    target: Optional[bytes] = None,
    comparison: ThresholdRule = ThresholdRule.INCLUSIVE,
    hash_fn: HashFn = DEFAULT_HASH,
) -> tuple[ClaimParameters, PrivateWitness]:
    """Build public parameters and private witness for one claim."""
    if not 0 <= threshold <= U128_MAX:
        raise ValueError("threshold must be a decimal u128")
    if len(balances) != shape.balance_size:
        raise MalformedWitness(
            f"{shape.value} expects {shape.balance_size} balance bytes, got {len(balances)}"
        )

    if not shape.binds_code:
        witness = PrivateWitness(balances=bytes(balances), calldata=b"")
        params = ClaimParameters(
            shape=shape,
            threshold=threshold,
            commitment=commit_witness(shape, witness, hash_fn),
            comparison=comparison,
        )
        LOGGER.debug("assembled %s claim over %d witness bytes", shape.value, len(balances))
        return params, witness

    if len(calldata) < SELECTOR_SIZE:
        raise MalformedWitness("calldata must be at least 4 bytes (needs a function selector)")

    witness = PrivateWitness(
        balances=bytes(balances),
        calldata=bytes(calldata),
        target_code=bytes(target_code),
        asset_code=bytes(asset_code),
    )
    params = ClaimParameters(
        shape=shape,
        threshold=threshold,
        commitment=commit_witness(shape, witness, hash_fn),
        asset=asset,
        target=target,
        selector=bytes(calldata[:SELECTOR_SIZE]),
        target_code_digest=hash_fn(witness.target_code),
        asset_code_digest=hash_fn(witness.asset_code),
        comparison=comparison,
    )
    LOGGER.debug(
        "assembled %s claim: calldata=%d bytes, target code=%d bytes, asset code=%d bytes",
        shape.value, len(calldata), len(target_code), len(asset_code),
    )
    return params, witness


def assemble_from_ledger(
    ledger: Ledger,
    shape: WitnessShape,
    threshold: int,
    asset: bytes,
    target: bytes,
    block: int,
    calldata: bytes = b"",
    post_block: Optional[int] = None,
    post_balance: Optional[int] = None,
    comparison: ThresholdRule = ThresholdRule.INCLUSIVE,
    hash_fn: HashFn = DEFAULT_HASH,
) -> tuple[ClaimParameters, PrivateWitness]:
    """Fetch balances and bytecode pinned at ``block`` and assemble the claim.

    For delta shapes the post balance is read at ``post_block`` or taken
    from ``post_balance``. Ledger errors propagate unchanged.
    """
    balance = ledger.balance_of(asset, target, block)
    if shape is WitnessShape.SINGLE_BALANCE:
        balances = pack_balances(shape, balance)
    else:
        if post_block is not None:
            post: BalanceValue = ledger.balance_of(asset, target, post_block)
        elif post_balance is not None:
            post = post_balance
        else:
            raise ValueError(f"{shape.value} claims need post_block or post_balance")
        balances = pack_balances(shape, balance, post)

    target_code = asset_code = b""
    if shape.binds_code:
        target_code = ledger.code_at(target, block)
        asset_code = ledger.code_at(asset, block)

    return assemble(
        shape,
        threshold,
        balances,
        calldata=calldata,
        target_code=target_code,
        asset_code=asset_code,
        asset=asset if shape.binds_code else None,
        target=target if shape.binds_code else None,
        comparison=comparison,
        hash_fn=hash_fn,
    )


def build_env(params: ClaimParameters, witness: PrivateWitness) -> ExecutionEnv:
    """Write claim records onto a fresh env in evaluator read order."""
    env = ExecutionEnv().write(params)
    if params.shape.binds_code:
        env.write(witness.balances).write(witness.calldata)
        env.write(witness.target_code).write(witness.asset_code)
    else:
        env.write(witness.balances)
    return env
