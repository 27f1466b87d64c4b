"""Tests for the constrained evaluator and its execution env."""
from __future__ import annotations

import dataclasses
import hashlib
import json
import logging

import pytest

from bbproof.assembler import build_env
from bbproof.claims import (
    PrivateWitness,
    ResultRecord,
    ThresholdRule,
    WitnessShape,
    read_journal,
    write_journal,
)
from bbproof.errors import (
    CodeDigestMismatch,
    EncodingMismatch,
    MalformedWitness,
    SelectorMismatch,
)
from bbproof.guest import ExecutionEnv, evaluate, run_guest
from bbproof.u256 import U128_MAX

from claim_data import ASSET, TARGET


class TestScenarios:
    """End-to-end evaluator behaviour for the documented scenarios."""

    def test_scenario_a_loss_meets_threshold(self, make_claim):
        params, witness = make_claim(pre=5000, post=3000, threshold=1000)
        record = evaluate(params, witness)
        assert record.loss_value == 2000
        assert record.meets_threshold is True
        assert record.loss_hi == bytes(16)

    def test_scenario_b_balance_increase_is_no_loss(self, make_claim):
        for threshold in (1, 1000, U128_MAX):
            params, witness = make_claim(pre=3000, post=5000, threshold=threshold)
            record = evaluate(params, witness)
            assert record.loss_value == 0
            assert record.meets_threshold is False

    def test_scenario_c_selector_mismatch(self, make_claim):
        params, witness = make_claim()
        assert witness.calldata[:4] == bytes.fromhex("deadbeef")
        forged = dataclasses.replace(params, selector=bytes.fromhex("deadbe00"))
        with pytest.raises(SelectorMismatch):
            evaluate(forged, witness)

    def test_scenario_d_code_digest_mismatch(self, make_claim):
        params, witness = make_claim(pre=10**9, post=0, threshold=1)
        forged = dataclasses.replace(params, target_code_digest=hashlib.sha256(b"other").digest())
        with pytest.raises(CodeDigestMismatch):
            evaluate(forged, witness)

    def test_asset_code_digest_mismatch(self, make_claim):
        params, witness = make_claim()
        forged = dataclasses.replace(params, asset_code_digest=bytes(32))
        with pytest.raises(CodeDigestMismatch):
            evaluate(forged, witness)

    def test_scenario_e_high_half_meets_any_threshold(self, make_claim):
        params, witness = make_claim(pre=1 << 200, post=0, threshold=U128_MAX)
        record = evaluate(params, witness)
        assert record.loss_hi != bytes(16)
        assert record.meets_threshold is True


class TestRejections:
    def test_substituted_calldata_fails_commitment(self, make_claim):
        params, witness = make_claim()
        swapped = dataclasses.replace(witness, calldata=witness.calldata[:4] + b"\xff" * 8)
        with pytest.raises(EncodingMismatch):
            evaluate(params, swapped)

    def test_substituted_balances_fail_commitment(self, make_claim):
        params, witness = make_claim(pre=5000, post=3000)
        inflated = dataclasses.replace(
            witness, balances=(10**6).to_bytes(32, "big") + (0).to_bytes(32, "big")
        )
        with pytest.raises(EncodingMismatch):
            evaluate(params, inflated)

    def test_wrong_blob_length_is_malformed(self, make_claim):
        params, witness = make_claim()
        with pytest.raises(MalformedWitness):
            evaluate(params, dataclasses.replace(witness, balances=witness.balances + b"\x00"))


class TestShapes:
    def test_single_balance_is_potential_loss(self, make_claim):
        params, witness = make_claim(shape=WitnessShape.SINGLE_BALANCE, pre=7777, threshold=7777)
        record = evaluate(params, witness)
        assert record.loss_value == 7777
        assert record.meets_threshold is True
        assert record.shape is WitnessShape.SINGLE_BALANCE

    def test_bound_shapes_echo_public_values(self, make_claim):
        params, witness = make_claim()
        record = evaluate(params, witness)
        assert record.selector == bytes.fromhex("deadbeef")
        assert record.asset == ASSET
        assert record.target == TARGET
        assert record.threshold == params.threshold

    def test_minimal_shape_has_no_echo(self, make_claim):
        params, witness = make_claim(shape=WitnessShape.MINIMAL)
        record = evaluate(params, witness)
        assert record.loss_value == 2000
        assert record.selector is None
        assert "selector" not in record.to_dict()

    def test_strict_rule_at_equality(self, make_claim, caplog):
        params, witness = make_claim(pre=3000, post=2000, threshold=1000, comparison=ThresholdRule.STRICT)
        with caplog.at_level(logging.WARNING, logger="bbproof.guest"):
            record = evaluate(params, witness)
        assert record.meets_threshold is False
        assert record.comparison is ThresholdRule.STRICT
        assert "strict" in caplog.text

    def test_inclusive_rule_at_equality(self, make_claim):
        params, witness = make_claim(pre=3000, post=2000, threshold=1000)
        assert evaluate(params, witness).meets_threshold is True


class TestExecutionEnv:
    def test_run_guest_commits_journal_once(self, make_claim):
        params, witness = make_claim()
        env = build_env(params, witness)
        record = run_guest(env)
        assert env.journal == record
        with pytest.raises(RuntimeError):
            env.commit(record)

    def test_aborted_run_has_no_journal(self, make_claim):
        params, witness = make_claim()
        env = build_env(dataclasses.replace(params, selector=b"\x00" * 4), witness)
        with pytest.raises(SelectorMismatch):
            run_guest(env)
        assert env.journal is None

    def test_env_is_single_use(self, make_claim):
        params, witness = make_claim()
        env = build_env(params, witness)
        run_guest(env)
        with pytest.raises(RuntimeError):
            run_guest(env)

    def test_first_record_must_be_parameters(self):
        env = ExecutionEnv().write(b"not params")
        with pytest.raises(MalformedWitness):
            run_guest(env)

    def test_missing_records(self, make_claim):
        params, witness = make_claim()
        env = ExecutionEnv().write(params).write(witness.balances)
        with pytest.raises(MalformedWitness):
            run_guest(env)

    def test_trailing_records(self, make_claim):
        params, witness = make_claim()
        env = build_env(params, witness).write(b"extra")
        with pytest.raises(MalformedWitness):
            run_guest(env)
        assert env.journal is None

    def test_non_bytes_witness_record(self, make_claim):
        params, _ = make_claim()
        env = ExecutionEnv().write(params).write(5000).write(b"").write(b"").write(b"")
        with pytest.raises(MalformedWitness):
            run_guest(env)

    def test_minimal_env_layout(self, make_claim):
        params, witness = make_claim(shape=WitnessShape.MINIMAL)
        env = build_env(params, witness)
        assert env.remaining == 2
        assert run_guest(env).loss_value == 2000


class TestResultRecord:
    def test_dict_round_trip(self, make_claim):
        params, witness = make_claim()
        record = evaluate(params, witness)
        assert ResultRecord.from_dict(record.to_dict()) == record

    def test_canonical_bytes_are_sorted_compact_json(self, make_claim):
        params, witness = make_claim()
        data = evaluate(params, witness).canonical_bytes()
        assert b" " not in data
        assert data.startswith(b'{"asset":')

    def test_large_threshold_serialized_as_string(self, make_claim):
        params, witness = make_claim(threshold=U128_MAX)
        assert evaluate(params, witness).to_dict()["threshold"] == str(U128_MAX)

    def test_inconsistent_loss_rejected(self, make_claim):
        params, witness = make_claim()
        data = evaluate(params, witness).to_dict()
        data["loss"] = "0x" + "00" * 32
        with pytest.raises(ValueError):
            ResultRecord.from_dict(data)

    def test_meets_threshold_must_be_boolean(self, make_claim, tmp_path):
        params, witness = make_claim(pre=3000, post=5000)
        data = evaluate(params, witness).to_dict()
        data["meets_threshold"] = "false"
        path = tmp_path / "journal.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ValueError, match="meets_threshold"):
            read_journal(path)

    @pytest.mark.parametrize("payload", [[], "journal", 7])
    def test_journal_must_be_object(self, payload):
        with pytest.raises(ValueError, match="JSON object"):
            ResultRecord.from_dict(payload)

    def test_hex_fields_must_be_strings(self, make_claim):
        params, witness = make_claim()
        data = evaluate(params, witness).to_dict()
        data["loss_hi"] = 0
        with pytest.raises(ValueError, match="loss_hi"):
            ResultRecord.from_dict(data)

    def test_journal_file_round_trip(self, make_claim, tmp_path):
        params, witness = make_claim()
        record = evaluate(params, witness)
        assert read_journal(write_journal(record, tmp_path / "j" / "journal.json")) == record

    def test_witness_repr_hides_material(self, make_claim):
        _, witness = make_claim()
        text = repr(witness)
        assert witness.calldata.hex() not in text
        assert "bytes>" in text
        assert isinstance(witness, PrivateWitness)
