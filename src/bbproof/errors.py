"""Error taxonomy for claim evaluation and its boundaries.

Every witness rejection is fatal: the evaluation aborts and no result
record is emitted. Boundary errors (ledger, attestation) are fatal for
the affected claim only.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    ENCODING_MISMATCH = "encoding_mismatch"
    MALFORMED_WITNESS = "malformed_witness"
    SELECTOR_MISMATCH = "selector_mismatch"
    CODE_DIGEST_MISMATCH = "code_digest_mismatch"


class WitnessRejected(RuntimeError):
    """Base class for every fatal witness check failure."""

    kind: ErrorKind

    def __init__(self, detail: str):
        super().__init__(f"{self.kind.value}: {detail}")
        self.detail = detail


class EncodingMismatch(WitnessRejected):
    """Recomputed commitment differs from the declared one."""

    kind = ErrorKind.ENCODING_MISMATCH


class MalformedWitness(WitnessRejected):
    """Calldata too short, or a witness blob has the wrong fixed length."""

    kind = ErrorKind.MALFORMED_WITNESS


class SelectorMismatch(WitnessRejected):
    kind = ErrorKind.SELECTOR_MISMATCH


class CodeDigestMismatch(WitnessRejected):
    kind = ErrorKind.CODE_DIGEST_MISMATCH


ERRORS_BY_KIND: dict[ErrorKind, type[WitnessRejected]] = {
    cls.kind: cls
    for cls in (EncodingMismatch, MalformedWitness, SelectorMismatch, CodeDigestMismatch)
}


class RpcError(RuntimeError):
    """Ledger lookup failed (transport, HTTP, JSON-RPC error or bad result)."""


class AttestationError(RuntimeError):
    """A receipt failed verification and its journal must not be trusted."""

    def __init__(self, reason: str, message: str | None = None):
        super().__init__(message or reason)
        self.reason = reason
