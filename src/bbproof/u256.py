"""Big-endian fixed-width arithmetic over 32-byte unsigned integers.

Values are handled as byte strings, not Python ints, so the evaluator's
arithmetic is exactly the byte-level algorithm both sides agree on:

    loss = max(pre - post, 0)     # 256-bit, saturating
    met  = hi != 0 or lo >= thr   # hi/lo are the 16-byte halves

Python ints are only used at the edges (threshold, display).
"""
from __future__ import annotations

from .claims import ThresholdRule

WORD_SIZE = 32
HALF_SIZE = 16
U128_MAX = (1 << 128) - 1
ZERO_WORD = bytes(WORD_SIZE)


def _require_word(value: bytes, name: str) -> None:
    if len(value) != WORD_SIZE:
        raise ValueError(f"{name} must be {WORD_SIZE} bytes, got {len(value)}")


def sub_saturating(a: bytes, b: bytes) -> bytes:
    """Compute ``a - b`` over 32-byte big-endian words, clamping at zero.

    Bytes are subtracted from index 31 (least significant) down to index
    0, carrying a borrow of 0 or 1. A borrow left over after index 0
    means ``b > a``; the result is then all-zero rather than wrapped.
    """
    _require_word(a, "minuend")
    _require_word(b, "subtrahend")

    out = bytearray(WORD_SIZE)
    borrow = 0
    for i in range(WORD_SIZE - 1, -1, -1):
        diff = a[i] - b[i] - borrow
        if diff < 0:
            diff += 256
            borrow = 1
        else:
            borrow = 0
        out[i] = diff
    if borrow:
        return ZERO_WORD
    return bytes(out)


def split_halves(word: bytes) -> tuple[bytes, bytes]:
    """Split a 32-byte word into its (high, low) 16-byte halves."""
    _require_word(word, "word")
    return word[:HALF_SIZE], word[HALF_SIZE:]


def meets_threshold(
    loss: bytes,
    threshold: int,
    rule: ThresholdRule = ThresholdRule.INCLUSIVE,
) -> bool:
    """Compare a 256-bit loss against a 128-bit threshold.

    Any non-zero byte in the high half means the loss is at least 2^128
    and therefore exceeds every 128-bit threshold, whatever the rule.
    """
    if not 0 <= threshold <= U128_MAX:
        raise ValueError("threshold must fit in 128 unsigned bits")
    high, low = split_halves(loss)
    if any(high):
        return True
    low_value = int.from_bytes(low, "big")
    if rule is ThresholdRule.STRICT:
        return low_value > threshold
    return low_value >= threshold


def to_word(value: int) -> bytes:
    """Encode a non-negative int below 2^256 as a 32-byte big-endian word."""
    if value < 0 or value >> (8 * WORD_SIZE):
        raise ValueError("value does not fit in 256 unsigned bits")
    return value.to_bytes(WORD_SIZE, "big")


def from_word(word: bytes) -> int:
    _require_word(word, "word")
    return int.from_bytes(word, "big")
