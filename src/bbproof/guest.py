"""Constrained evaluator.

This is the computation that gets attested. It reads the claim
parameters and witness records in a fixed order, recomputes the
commitment, runs every binding check, derives the loss and emits the
journal exactly once. Any failed check aborts before emission.

Record order on the execution env:

    bound shapes:  ClaimParameters, balance blob, calldata, target code, asset code
    MINIMAL:       ClaimParameters, witness blob (pre || post)
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .binding import iter_checks
from .claims import ClaimParameters, PrivateWitness, ResultRecord, ThresholdRule, WitnessShape
from .errors import MalformedWitness
from .hashing import DEFAULT_HASH, HashFn
from .u256 import WORD_SIZE, meets_threshold, split_halves, sub_saturating

LOGGER = logging.getLogger(__name__)


class ExecutionEnv:
    """Ordered, single-use record channel between assembler and evaluator.

    The assembler ``write``s records; the evaluator ``read``s them back
    in the same order and ``commit``s its journal once.
    """

    def __init__(self) -> None:
        self._records: list[Any] = []
        self._cursor = 0
        self._journal: Optional[ResultRecord] = None

    def write(self, record: Any) -> "ExecutionEnv":
        if self._cursor:
            raise RuntimeError("execution env is already being read")
        self._records.append(record)
        return self

    def read(self) -> Any:
        if self._cursor >= len(self._records):
            raise MalformedWitness("record stream exhausted")
        record = self._records[self._cursor]
        self._cursor += 1
        return record

    @property
    def remaining(self) -> int:
        return len(self._records) - self._cursor

    @property
    def started(self) -> bool:
        return self._cursor > 0

    def commit(self, record: ResultRecord) -> None:
        if self._journal is not None:
            raise RuntimeError("journal already committed")
        self._journal = record

    @property
    def journal(self) -> Optional[ResultRecord]:
        """The committed record, or None if the run aborted or has not finished."""
        return self._journal


def _read_bytes(env: ExecutionEnv, name: str) -> bytes:
    value = env.read()
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedWitness(f"{name} record must be bytes, got {type(value).__name__}")
    return bytes(value)


def compute_loss(shape: WitnessShape, balances: bytes) -> bytes:
    """Loss word for ``shape``: full balance, or saturating pre - post."""
    if not shape.computes_delta:
        return balances
    pre, post = balances[:WORD_SIZE], balances[WORD_SIZE:]
    return sub_saturating(pre, post)


def evaluate(
    params: ClaimParameters,
    witness: PrivateWitness,
    hash_fn: HashFn = DEFAULT_HASH,
) -> ResultRecord:
    """Check ``witness`` against ``params`` and build the result record.

    Raises the ``WitnessRejected`` subclass of the first failing check;
    nothing is returned in that case.
    """
    for result in iter_checks(params, witness, hash_fn):
        if not result.ok:
            LOGGER.info("check %s failed: %s", result.name, result.kind.value)
            result.raise_for()

    if params.comparison is ThresholdRule.STRICT:
        LOGGER.warning(
            "claim uses strict '>' threshold comparison; the protocol default is '>='"
        )

    loss = compute_loss(params.shape, witness.balances)
    loss_hi, loss_lo = split_halves(loss)
    met = meets_threshold(loss, params.threshold, params.comparison)

    if params.shape.binds_code:
        return ResultRecord(
            shape=params.shape,
            comparison=params.comparison,
            threshold=params.threshold,
            loss_hi=loss_hi,
            loss_lo=loss_lo,
            meets_threshold=met,
            selector=params.selector,
            asset=params.asset,
            target=params.target,
        )
    return ResultRecord(
        shape=params.shape,
        comparison=params.comparison,
        threshold=params.threshold,
        loss_hi=loss_hi,
        loss_lo=loss_lo,
        meets_threshold=met,
    )


def run_guest(env: ExecutionEnv, hash_fn: HashFn = DEFAULT_HASH) -> ResultRecord:
    """Entry point of the constrained computation."""
    if env.started or env.journal is not None:
        raise RuntimeError("execution env has already been consumed")

    params = env.read()
    if not isinstance(params, ClaimParameters):
        raise MalformedWitness(f"first record must be ClaimParameters, got {type(params).__name__}")

    if params.shape.binds_code:
        witness = PrivateWitness(
            balances=_read_bytes(env, "balance"),
            calldata=_read_bytes(env, "calldata"),
            target_code=_read_bytes(env, "target_code"),
            asset_code=_read_bytes(env, "asset_code"),
        )
    else:
        witness = PrivateWitness(balances=_read_bytes(env, "witness_blob"), calldata=b"")

    if env.remaining:
        raise MalformedWitness(f"{env.remaining} unexpected trailing record(s)")

    record = evaluate(params, witness, hash_fn)
    env.commit(record)
    return record
