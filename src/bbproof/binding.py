"""Integrity checks binding a private witness to its public claim.

Each check is a pure equality test that returns a ``CheckResult``
instead of aborting. The evaluator decides what to do with a failure
(it always aborts); the checks themselves never raise.
"""
from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Iterator, Optional

from .claims import SELECTOR_SIZE, ClaimParameters, PrivateWitness, WitnessShape
from .commitment import commit_witness
from .errors import ERRORS_BY_KIND, ErrorKind
from .hashing import DEFAULT_HASH, HashFn


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single check: ok, or a failure tagged with its kind."""
    name: str
    kind: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is None

    def raise_for(self) -> None:
        """Raise the matching ``WitnessRejected`` subclass if this check failed."""
        if self.kind is not None:
            raise ERRORS_BY_KIND[self.kind](f"{self.name}: {self.detail}")


def _passed(name: str) -> CheckResult:
    return CheckResult(name=name)


def _failed(name: str, kind: ErrorKind, detail: str) -> CheckResult:
    return CheckResult(name=name, kind=kind, detail=detail)


def check_balance_blob(shape: WitnessShape, witness: PrivateWitness) -> CheckResult:
    expected = shape.balance_size
    if len(witness.balances) != expected:
        return _failed(
            "balance_blob",
            ErrorKind.MALFORMED_WITNESS,
            f"{shape.value} expects {expected} balance bytes, got {len(witness.balances)}",
        )
    return _passed("balance_blob")


def check_commitment(
    params: ClaimParameters,
    witness: PrivateWitness,
    hash_fn: HashFn = DEFAULT_HASH,
) -> CheckResult:
    recomputed = commit_witness(params.shape, witness, hash_fn)
    if not hmac.compare_digest(recomputed, params.commitment):
        return _failed(
            "commitment",
            ErrorKind.ENCODING_MISMATCH,
            f"declared {params.commitment.hex()[:16]}..., recomputed {recomputed.hex()[:16]}...",
        )
    return _passed("commitment")


def check_calldata_length(calldata: bytes) -> CheckResult:
    if len(calldata) < SELECTOR_SIZE:
        return _failed(
            "calldata_length",
            ErrorKind.MALFORMED_WITNESS,
            f"calldata must be at least {SELECTOR_SIZE} bytes, got {len(calldata)}",
        )
    return _passed("calldata_length")


def check_selector(calldata: bytes, selector: bytes) -> CheckResult:
    leading = bytes(calldata[:SELECTOR_SIZE])
    if leading != selector:
        return _failed(
            "selector",
            ErrorKind.SELECTOR_MISMATCH,
            f"calldata starts with 0x{leading.hex()}, claim declares 0x{selector.hex()}",
        )
    return _passed("selector")


def check_code_digest(
    role: str,
    code: bytes,
    declared: bytes,
    hash_fn: HashFn = DEFAULT_HASH,
) -> CheckResult:
    name = f"{role}_code_digest"
    digest = hash_fn(code)
    if not hmac.compare_digest(digest, declared):
        return _failed(
            name,
            ErrorKind.CODE_DIGEST_MISMATCH,
            f"{role} bytecode hashes to {digest.hex()[:16]}..., claim declares {declared.hex()[:16]}...",
        )
    return _passed(name)


def iter_checks(
    params: ClaimParameters,
    witness: PrivateWitness,
    hash_fn: HashFn = DEFAULT_HASH,
) -> Iterator[CheckResult]:
    """Yield every check for ``params.shape`` in evaluation order.

    Checks are produced lazily so a caller that aborts on the first
    failure never computes the rest.
    """
    yield check_balance_blob(params.shape, witness)
    yield check_commitment(params, witness, hash_fn)
    if not params.shape.binds_code:
        return
    calldata_check = check_calldata_length(witness.calldata)
    yield calldata_check
    if not calldata_check.ok:
        return
    yield check_selector(witness.calldata, params.selector)
    yield check_code_digest("target", witness.target_code, params.target_code_digest, hash_fn)
    yield check_code_digest("asset", witness.asset_code, params.asset_code_digest, hash_fn)
