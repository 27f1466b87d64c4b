"""Tests for big-endian fixed-width arithmetic."""
from __future__ import annotations

import random

import pytest

from bbproof.claims import ThresholdRule
from bbproof.u256 import (
    U128_MAX,
    ZERO_WORD,
    from_word,
    meets_threshold,
    split_halves,
    sub_saturating,
    to_word,
)

U256_MAX = (1 << 256) - 1


class TestSubSaturating:
    """Tests for sub_saturating."""

    def test_simple_difference(self):
        assert sub_saturating(to_word(5000), to_word(3000)) == to_word(2000)

    def test_balance_increase_saturates_to_zero(self):
        assert sub_saturating(to_word(3000), to_word(5000)) == ZERO_WORD

    def test_equal_values_give_zero(self):
        assert sub_saturating(to_word(42), to_word(42)) == ZERO_WORD

    def test_borrow_propagates_across_bytes(self):
        assert sub_saturating(to_word(0x100), to_word(1)) == to_word(0xFF)
        assert sub_saturating(to_word(1 << 200), to_word(1)) == to_word((1 << 200) - 1)

    def test_full_width(self):
        assert sub_saturating(to_word(U256_MAX), ZERO_WORD) == to_word(U256_MAX)
        assert sub_saturating(ZERO_WORD, to_word(U256_MAX)) == ZERO_WORD
        assert sub_saturating(ZERO_WORD, to_word(1)) == ZERO_WORD

    def test_matches_integer_arithmetic(self):
        rng = random.Random(1337)
        for _ in range(500):
            a = rng.getrandbits(rng.choice([8, 64, 128, 129, 255, 256]))
            b = rng.getrandbits(rng.choice([8, 64, 128, 129, 255, 256]))
            expected = a - b if a >= b else 0
            assert from_word(sub_saturating(to_word(a), to_word(b))) == expected

    def test_rejects_wrong_width(self):
        with pytest.raises(ValueError):
            sub_saturating(b"\x01" * 31, ZERO_WORD)
        with pytest.raises(ValueError):
            sub_saturating(ZERO_WORD, b"\x01" * 33)


class TestMeetsThreshold:
    """Tests for the 256-bit vs 128-bit threshold comparison."""

    def test_inclusive_at_equality(self):
        assert meets_threshold(to_word(1000), 1000) is True
        assert meets_threshold(to_word(999), 1000) is False

    def test_strict_at_equality(self):
        assert meets_threshold(to_word(1000), 1000, ThresholdRule.STRICT) is False
        assert meets_threshold(to_word(1001), 1000, ThresholdRule.STRICT) is True

    def test_high_half_always_meets(self):
        loss = to_word(1 << 128)
        assert meets_threshold(loss, U128_MAX) is True
        assert meets_threshold(loss, U128_MAX, ThresholdRule.STRICT) is True

    def test_zero_threshold(self):
        assert meets_threshold(ZERO_WORD, 0) is True
        assert meets_threshold(ZERO_WORD, 0, ThresholdRule.STRICT) is False

    @pytest.mark.parametrize("rule", list(ThresholdRule))
    def test_monotonic_in_loss(self, rule):
        rng = random.Random(7)
        threshold = rng.getrandbits(100)
        losses = sorted(rng.getrandbits(rng.choice([64, 99, 100, 101, 128, 200])) for _ in range(300))
        verdicts = [meets_threshold(to_word(v), threshold, rule) for v in losses]
        first_true = verdicts.index(True) if True in verdicts else len(verdicts)
        assert all(verdicts[first_true:])

    def test_threshold_out_of_range(self):
        with pytest.raises(ValueError):
            meets_threshold(ZERO_WORD, 1 << 128)
        with pytest.raises(ValueError):
            meets_threshold(ZERO_WORD, -1)


def test_split_halves():
    word = bytes(range(32))
    high, low = split_halves(word)
    assert high == bytes(range(16))
    assert low == bytes(range(16, 32))


def test_to_word_bounds():
    assert to_word(0) == ZERO_WORD
    with pytest.raises(ValueError):
        to_word(1 << 256)
    with pytest.raises(ValueError):
        to_word(-1)
