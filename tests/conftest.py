"""Pytest fixtures for bbproof tests."""
from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from bbproof.assembler import assemble, pack_balances
from bbproof.claims import ThresholdRule, WitnessShape

from claim_data import ASSET, ASSET_CODE, CALLDATA, TARGET, TARGET_CODE, InMemoryLedger


@pytest.fixture
def make_claim():
    """Factory for consistent (params, witness) pairs."""

    def _make(
        pre: int = 5000,
        post: int = 3000,
        threshold: int = 1000,
        shape: WitnessShape = WitnessShape.PRE_AND_POST_BALANCE,
        comparison: ThresholdRule = ThresholdRule.INCLUSIVE,
        calldata: bytes = CALLDATA,
        target_code: bytes = TARGET_CODE,
        asset_code: bytes = ASSET_CODE,
    ):
        balances = pack_balances(shape, pre, post if shape.computes_delta else None)
        return assemble(
            shape,
            threshold,
            balances,
            calldata=calldata,
            target_code=target_code,
            asset_code=asset_code,
            asset=ASSET,
            target=TARGET,
            comparison=comparison,
        )

    return _make


@pytest.fixture
def prover_key():
    return Ed25519PrivateKey.generate()


@pytest.fixture
def ledger():
    """Ledger holding 5000 at block 100 and 3000 at block 101."""
    return InMemoryLedger(
        balances={
            (ASSET, TARGET, 100): (5000).to_bytes(32, "big"),
            (ASSET, TARGET, 101): (3000).to_bytes(32, "big"),
        },
        codes={
            (TARGET, 100): TARGET_CODE,
            (ASSET, 100): ASSET_CODE,
        },
    )
