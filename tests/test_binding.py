"""Tests for witness binding checks."""
from __future__ import annotations

import hashlib

import pytest

from bbproof.binding import (
    check_calldata_length,
    check_code_digest,
    check_selector,
    iter_checks,
)
from bbproof.claims import ClaimParameters, PrivateWitness, WitnessShape
from bbproof.commitment import commit_witness
from bbproof.errors import (
    CodeDigestMismatch,
    ErrorKind,
    MalformedWitness,
    SelectorMismatch,
)

from claim_data import ASSET, ASSET_CODE, TARGET, TARGET_CODE


def test_selector_match():
    assert check_selector(bytes.fromhex("deadbeef00"), bytes.fromhex("deadbeef")).ok


def test_selector_mismatch_is_tagged():
    result = check_selector(bytes.fromhex("deadbeef"), bytes.fromhex("deadbe00"))
    assert not result.ok
    assert result.kind is ErrorKind.SELECTOR_MISMATCH
    with pytest.raises(SelectorMismatch):
        result.raise_for()


def test_calldata_length():
    assert check_calldata_length(b"\x00" * 4).ok
    result = check_calldata_length(b"\x00" * 3)
    assert result.kind is ErrorKind.MALFORMED_WITNESS
    with pytest.raises(MalformedWitness):
        result.raise_for()


def test_code_digest():
    declared = hashlib.sha256(TARGET_CODE).digest()
    assert check_code_digest("target", TARGET_CODE, declared).ok
    result = check_code_digest("target", TARGET_CODE + b"\x00", declared)
    assert result.name == "target_code_digest"
    with pytest.raises(CodeDigestMismatch):
        result.raise_for()


def test_passing_check_does_not_raise():
    check_calldata_length(b"\x00" * 8).raise_for()


def test_all_checks_pass_for_assembled_claim(make_claim):
    params, witness = make_claim()
    results = list(iter_checks(params, witness))
    assert [r.name for r in results] == [
        "balance_blob",
        "commitment",
        "calldata_length",
        "selector",
        "target_code_digest",
        "asset_code_digest",
    ]
    assert all(r.ok for r in results)


def test_minimal_shape_skips_binding_checks(make_claim):
    params, witness = make_claim(shape=WitnessShape.MINIMAL)
    assert [r.name for r in iter_checks(params, witness)] == ["balance_blob", "commitment"]


def test_short_calldata_stops_before_selector():
    witness = PrivateWitness(
        balances=bytes(64),
        calldata=b"\xde\xad",
        target_code=TARGET_CODE,
        asset_code=ASSET_CODE,
    )
    params = ClaimParameters(
        shape=WitnessShape.PRE_AND_POST_BALANCE,
        threshold=1,
        commitment=commit_witness(WitnessShape.PRE_AND_POST_BALANCE, witness),
        asset=ASSET,
        target=TARGET,
        selector=b"\xde\xad\x00\x00",
        target_code_digest=hashlib.sha256(TARGET_CODE).digest(),
        asset_code_digest=hashlib.sha256(ASSET_CODE).digest(),
    )
    results = list(iter_checks(params, witness))
    assert results[-1].name == "calldata_length"
    assert results[-1].kind is ErrorKind.MALFORMED_WITNESS


def test_wrong_balance_blob_length(make_claim):
    params, witness = make_claim()
    short = PrivateWitness(
        balances=witness.balances[:32],
        calldata=witness.calldata,
        target_code=witness.target_code,
        asset_code=witness.asset_code,
    )
    first = next(iter_checks(params, short))
    assert first.kind is ErrorKind.MALFORMED_WITNESS
