"""
Claim Data Model

A claim says: "given this calldata and this contract bytecode, the
target's balance of the asset dropped by more than the threshold".

ClaimParameters are public and known to the verifier.
PrivateWitness is known only to the prover and never leaves the evaluator.
ResultRecord is the journal: the only artifact that survives evaluation.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

JOURNAL_SCHEMA = "bbproof_journal_v1"

ADDRESS_SIZE = 20
SELECTOR_SIZE = 4
DIGEST_SIZE = 32
BALANCE_SIZE = 32


class WitnessShape(Enum):
    """
    Which witness blobs take part in the commitment, and how loss is derived.

    SINGLE_BALANCE treats the whole balance as potential loss; it never
    subtracts. The other two compute a saturating pre - post delta.
    """
    SINGLE_BALANCE = "single_balance"   # balance(32), tagged encoding, code binding
    PRE_AND_POST_BALANCE = "pre_and_post"  # pre||post(64), tagged encoding, code binding
    MINIMAL = "minimal"                 # pre||post(64), Hash(blob), no binding

    @property
    def balance_size(self) -> int:
        if self is WitnessShape.SINGLE_BALANCE:
            return BALANCE_SIZE
        return 2 * BALANCE_SIZE

    @property
    def binds_code(self) -> bool:
        """Whether selector and bytecode digests are part of the claim."""
        return self is not WitnessShape.MINIMAL

    @property
    def computes_delta(self) -> bool:
        return self is not WitnessShape.SINGLE_BALANCE


class ThresholdRule(Enum):
    """
    How the low 128 bits of the loss are compared to the threshold.

    INCLUSIVE is the protocol rule. STRICT reproduces the earliest
    evaluator and must be selected explicitly; it is echoed in the
    journal so verifiers can see which rule produced the verdict.
    """
    INCLUSIVE = "ge"
    STRICT = "gt"


def _require_size(value: Optional[bytes], size: int, name: str) -> None:
    if value is not None and len(value) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(value)}")


def _hex(value: Optional[bytes]) -> Optional[str]:
    return "0x" + value.hex() if value is not None else None


def _unhex(value: Optional[str], size: int, name: str) -> Optional[bytes]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a hex string")
    text = value[2:] if value.startswith("0x") else value
    try:
        raw = bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"{name} is not valid hex") from e
    _require_size(raw, size, name)
    return raw


@dataclass(frozen=True)
class ClaimParameters:
    """
    Public inputs of a claim.

    For shapes that bind code, the selector, both addresses and both
    bytecode digests are mandatory; MINIMAL claims carry none of them.
    """
    shape: WitnessShape
    threshold: int
    commitment: bytes
    asset: Optional[bytes] = None
    target: Optional[bytes] = None
    selector: Optional[bytes] = None
    target_code_digest: Optional[bytes] = None
    asset_code_digest: Optional[bytes] = None
    comparison: ThresholdRule = ThresholdRule.INCLUSIVE

    def __post_init__(self) -> None:
        if not 0 <= self.threshold < (1 << 128):
            raise ValueError("threshold must fit in 128 unsigned bits")
        if self.commitment is None:
            raise ValueError("commitment is required")
        _require_size(self.commitment, DIGEST_SIZE, "commitment")
        _require_size(self.asset, ADDRESS_SIZE, "asset")
        _require_size(self.target, ADDRESS_SIZE, "target")
        _require_size(self.selector, SELECTOR_SIZE, "selector")
        _require_size(self.target_code_digest, DIGEST_SIZE, "target_code_digest")
        _require_size(self.asset_code_digest, DIGEST_SIZE, "asset_code_digest")
        if self.shape.binds_code:
            missing = [
                name for name in (
                    "asset", "target", "selector", "target_code_digest", "asset_code_digest",
                )
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"{self.shape.value} claims require: {', '.join(missing)}")

    def to_dict(self) -> dict:
        return {
            "shape": self.shape.value,
            "comparison": self.comparison.value,
            "threshold": str(self.threshold),
            "commitment": _hex(self.commitment),
            "asset": _hex(self.asset),
            "target": _hex(self.target),
            "selector": _hex(self.selector),
            "target_code_digest": _hex(self.target_code_digest),
            "asset_code_digest": _hex(self.asset_code_digest),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ClaimParameters":
        return cls(
            shape=WitnessShape(d["shape"]),
            comparison=ThresholdRule(d.get("comparison", ThresholdRule.INCLUSIVE.value)),
            threshold=int(d["threshold"]),
            commitment=_unhex(d["commitment"], DIGEST_SIZE, "commitment"),
            asset=_unhex(d.get("asset"), ADDRESS_SIZE, "asset"),
            target=_unhex(d.get("target"), ADDRESS_SIZE, "target"),
            selector=_unhex(d.get("selector"), SELECTOR_SIZE, "selector"),
            target_code_digest=_unhex(d.get("target_code_digest"), DIGEST_SIZE, "target_code_digest"),
            asset_code_digest=_unhex(d.get("asset_code_digest"), DIGEST_SIZE, "asset_code_digest"),
        )


@dataclass(frozen=True, repr=False)
class PrivateWitness:
    """
    Prover-only witness material.

    ``balances`` is the raw balance blob: one 32-byte big-endian value
    for SINGLE_BALANCE, or pre||post (64 bytes) otherwise. The repr
    shows sizes only so witness bytes never end up in logs.
    """
    balances: bytes
    calldata: bytes
    target_code: bytes = b""
    asset_code: bytes = b""

    def __repr__(self) -> str:
        return (
            f"PrivateWitness(balances=<{len(self.balances)} bytes>, "
            f"calldata=<{len(self.calldata)} bytes>, "
            f"target_code=<{len(self.target_code)} bytes>, "
            f"asset_code=<{len(self.asset_code)} bytes>)"
        )


@dataclass(frozen=True)
class ResultRecord:
    """
    The journal emitted by the evaluator.

    Every field is a pure function of the claim parameters and the
    private witness. Bound shapes echo selector, asset and target.
    """
    shape: WitnessShape
    comparison: ThresholdRule
    threshold: int
    loss_hi: bytes
    loss_lo: bytes
    meets_threshold: bool
    selector: Optional[bytes] = None
    asset: Optional[bytes] = None
    target: Optional[bytes] = None

    def __post_init__(self) -> None:
        _require_size(self.loss_hi, 16, "loss_hi")
        _require_size(self.loss_lo, 16, "loss_lo")
        _require_size(self.selector, SELECTOR_SIZE, "selector")
        _require_size(self.asset, ADDRESS_SIZE, "asset")
        _require_size(self.target, ADDRESS_SIZE, "target")

    @property
    def loss(self) -> bytes:
        return self.loss_hi + self.loss_lo

    @property
    def loss_value(self) -> int:
        return int.from_bytes(self.loss, "big")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "schema": JOURNAL_SCHEMA,
            "shape": self.shape.value,
            "comparison": self.comparison.value,
            "threshold": str(self.threshold),
            "loss_hi": self.loss_hi.hex(),
            "loss_lo": self.loss_lo.hex(),
            "loss": "0x" + self.loss.hex(),
            "meets_threshold": self.meets_threshold,
        }
        if self.shape.binds_code:
            data["selector"] = _hex(self.selector)
            data["asset"] = _hex(self.asset)
            data["target"] = _hex(self.target)
        return data

    @classmethod
    def from_dict(cls, d: dict) -> "ResultRecord":
        if not isinstance(d, dict):
            raise ValueError("journal must be a JSON object")
        if d.get("schema") != JOURNAL_SCHEMA:
            raise ValueError(f"unsupported journal schema: {d.get('schema')!r}")
        if not isinstance(d["meets_threshold"], bool):
            raise ValueError("meets_threshold must be a JSON boolean")
        record = cls(
            shape=WitnessShape(d["shape"]),
            comparison=ThresholdRule(d["comparison"]),
            threshold=int(d["threshold"]),
            loss_hi=_unhex(d["loss_hi"], 16, "loss_hi"),
            loss_lo=_unhex(d["loss_lo"], 16, "loss_lo"),
            meets_threshold=d["meets_threshold"],
            selector=_unhex(d.get("selector"), SELECTOR_SIZE, "selector"),
            asset=_unhex(d.get("asset"), ADDRESS_SIZE, "asset"),
            target=_unhex(d.get("target"), ADDRESS_SIZE, "target"),
        )
        if "loss" in d and d["loss"] != "0x" + record.loss.hex():
            raise ValueError("loss does not match loss_hi || loss_lo")
        return record

    def canonical_bytes(self) -> bytes:
        """Canonical JSON encoding (sorted keys, no whitespace); the attested bytes."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_canonical_bytes(cls, data: bytes) -> "ResultRecord":
        return cls.from_dict(json.loads(data.decode("utf-8")))


def write_journal(record: ResultRecord, path: Path) -> Path:
    """Write the journal as pretty JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record.to_dict(), indent=2) + "\n")
    return path


def read_journal(path: Path) -> ResultRecord:
    with open(path) as f:
        return ResultRecord.from_dict(json.load(f))
