"""Commitment encoding over witness blobs.

Tagged form (SINGLE_BALANCE, PRE_AND_POST_BALANCE):

    Hash( b"BBP" || LEN(b1) || b1 || LEN(b2) || b2 || ... )

where LEN is the 4-byte big-endian byte length of the blob that follows
and the blobs are, in order: balance blob, calldata, target code, asset
code.

Minimal form (MINIMAL): ``Hash(witness_blob)`` with no tag and no
length prefixes.

Both the assembler and the evaluator call into this module; a byte of
divergence here breaks the binding between them.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from .claims import PrivateWitness, WitnessShape
from .hashing import DEFAULT_HASH, HashFn

COMMITMENT_TAG = b"BBP"
LENGTH_PREFIX_SIZE = 4
MAX_BLOB_SIZE = (1 << 32) - 1


def encode_length(blob: bytes) -> bytes:
    """4-byte big-endian length prefix for ``blob``."""
    if len(blob) > MAX_BLOB_SIZE:
        raise ValueError(f"blob of {len(blob)} bytes does not fit a 32-bit length prefix")
    return len(blob).to_bytes(LENGTH_PREFIX_SIZE, "big")


def encode_preimage(blobs: Iterable[bytes]) -> bytes:
    """Build the tagged, length-prefixed preimage for ``blobs`` in order."""
    parts = [COMMITMENT_TAG]
    for blob in blobs:
        parts.append(encode_length(blob))
        parts.append(bytes(blob))
    return b"".join(parts)


def commit_blobs(blobs: Sequence[bytes], hash_fn: HashFn = DEFAULT_HASH) -> bytes:
    return hash_fn(encode_preimage(blobs))


def commit_minimal(witness_blob: bytes, hash_fn: HashFn = DEFAULT_HASH) -> bytes:
    return hash_fn(bytes(witness_blob))


def witness_blobs(shape: WitnessShape, witness: PrivateWitness) -> list[bytes]:
    """The blobs that take part in ``shape``'s commitment, in declared order."""
    if shape is WitnessShape.MINIMAL:
        return [witness.balances]
    return [witness.balances, witness.calldata, witness.target_code, witness.asset_code]


def commit_witness(
    shape: WitnessShape,
    witness: PrivateWitness,
    hash_fn: HashFn = DEFAULT_HASH,
) -> bytes:
    """Commitment for ``witness`` under ``shape``."""
    blobs = witness_blobs(shape, witness)
    if shape is WitnessShape.MINIMAL:
        return commit_minimal(blobs[0], hash_fn)
    return commit_blobs(blobs, hash_fn)
