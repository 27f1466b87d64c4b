"""Stateless hash functions used by the commitment and digest routines.

The evaluator never reaches for a global hashing context. Every routine
that digests bytes takes a ``hash_fn`` argument (defaulting to SHA-256)
so both sides of the trust boundary hash with the same explicit function.
"""
from __future__ import annotations

import hashlib
from typing import Callable

HashFn = Callable[[bytes], bytes]


def sha256(data: bytes) -> bytes:
    """SHA-256 digest of ``data`` (32 raw bytes)."""
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


DEFAULT_HASH: HashFn = sha256
