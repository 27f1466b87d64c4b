"""bbproof - commitment-bound exploit loss claims.

Proves "given fixed calldata and fixed contract bytecode, the target's
token balance dropped by at least the threshold" without revealing the
calldata to anyone who only sees the receipt.

Public API:
    from bbproof import assemble, build_env, LocalProver, verify, program_id

    params, witness = assemble(WitnessShape.PRE_AND_POST_BALANCE, threshold, blob, ...)
    receipt = LocalProver(key).prove(build_env(params, witness))
    record = verify(receipt, program_id(), key.public_key())
"""
from __future__ import annotations

__version__ = "0.1.0"

from bbproof.assembler import assemble, assemble_from_ledger, build_env, pack_balances
from bbproof.attestation import LocalProver, Receipt, program_id, verify
from bbproof.claims import (
    ClaimParameters,
    PrivateWitness,
    ResultRecord,
    ThresholdRule,
    WitnessShape,
)
from bbproof.commitment import commit_witness
from bbproof.errors import (
    AttestationError,
    CodeDigestMismatch,
    EncodingMismatch,
    MalformedWitness,
    RpcError,
    SelectorMismatch,
    WitnessRejected,
)
from bbproof.guest import ExecutionEnv, evaluate, run_guest


__all__ = [
    "__version__",
    # Claims
    "ClaimParameters",
    "PrivateWitness",
    "ResultRecord",
    "ThresholdRule",
    "WitnessShape",
    # Assembler / evaluator
    "assemble",
    "assemble_from_ledger",
    "build_env",
    "pack_balances",
    "commit_witness",
    "ExecutionEnv",
    "evaluate",
    "run_guest",
    # Attestation
    "LocalProver",
    "Receipt",
    "program_id",
    "verify",
    # Errors
    "AttestationError",
    "CodeDigestMismatch",
    "EncodingMismatch",
    "MalformedWitness",
    "RpcError",
    "SelectorMismatch",
    "WitnessRejected",
]
