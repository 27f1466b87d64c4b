"""Stable exit codes for bbproof commands.

    0  - Verified successfully
    10 - Attestation (receipt) verification failed
    12 - Commitment mismatch
    13 - Selector mismatch
    14 - Code digest mismatch
    20 - Malformed witness or input
    30 - Ledger RPC failure
"""
from __future__ import annotations

from ..errors import AttestationError, ErrorKind, RpcError, WitnessRejected

EXIT_VERIFIED = 0
EXIT_ATTESTATION_FAILED = 10
EXIT_ENCODING_MISMATCH = 12
EXIT_SELECTOR_MISMATCH = 13
EXIT_CODE_DIGEST_MISMATCH = 14
EXIT_MALFORMED = 20
EXIT_RPC_FAILED = 30

_BY_KIND = {
    ErrorKind.ENCODING_MISMATCH: EXIT_ENCODING_MISMATCH,
    ErrorKind.SELECTOR_MISMATCH: EXIT_SELECTOR_MISMATCH,
    ErrorKind.CODE_DIGEST_MISMATCH: EXIT_CODE_DIGEST_MISMATCH,
    ErrorKind.MALFORMED_WITNESS: EXIT_MALFORMED,
}

_DESCRIPTIONS = {
    EXIT_VERIFIED: "verified",
    EXIT_ATTESTATION_FAILED: "attestation verification failed",
    EXIT_ENCODING_MISMATCH: "commitment mismatch",
    EXIT_SELECTOR_MISMATCH: "selector mismatch",
    EXIT_CODE_DIGEST_MISMATCH: "code digest mismatch",
    EXIT_MALFORMED: "malformed witness or input",
    EXIT_RPC_FAILED: "ledger RPC failure",
}


def error_to_exit_code(exc: BaseException) -> int:
    if isinstance(exc, WitnessRejected):
        return _BY_KIND[exc.kind]
    if isinstance(exc, AttestationError):
        return EXIT_ATTESTATION_FAILED
    if isinstance(exc, RpcError):
        return EXIT_RPC_FAILED
    return EXIT_MALFORMED


def exit_code_description(code: int) -> str:
    return _DESCRIPTIONS.get(code, "unknown")
