"""Receipts: signed attestations that a journal came from this evaluator.

A receipt binds three things together with an Ed25519 signature:

    program_id      SHA-256 over the evaluator's own source modules
    journal         canonical JSON of the ResultRecord
    journal_sha256  SHA-256 of the journal bytes

Verifiers must call ``verify(receipt, expected_program_id, trusted_key)``
and only act on the record it returns. The program id is public, so a
receipt is only as good as the key that signed it: ``verify`` refuses
to vouch for the embedded key unless told to. Keys are PKCS8 PEM
(private) and SubjectPublicKeyInfo PEM (public).
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .claims import ResultRecord
from .errors import AttestationError
from .guest import ExecutionEnv, run_guest
from .hashing import DEFAULT_HASH, HashFn, sha256_hex

LOGGER = logging.getLogger(__name__)

RECEIPT_SCHEMA = "bbproof_receipt_v1"
ALGORITHM = "Ed25519"
RECEIPT_FIELDS = ("program_id", "journal", "journal_sha256", "signature", "public_key", "algorithm")

# Modules whose code defines the attested computation, in hashing order.
PROGRAM_MODULES = (
    "hashing.py",
    "errors.py",
    "claims.py",
    "u256.py",
    "commitment.py",
    "binding.py",
    "guest.py",
)


def program_id() -> str:
    """Identity of the evaluator: SHA-256 over its module sources."""
    h = hashlib.sha256()
    package_dir = Path(__file__).parent
    for name in PROGRAM_MODULES:
        source = (package_dir / name).read_bytes()
        h.update(name.encode("utf-8"))
        h.update(len(source).to_bytes(8, "big"))
        h.update(source)
    return h.hexdigest()


def _signed_message(program: str, journal_sha256: str) -> bytes:
    return f"{program}:{journal_sha256}".encode("utf-8")


def _public_pem(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@dataclass(frozen=True)
class Receipt:
    program_id: str
    journal: str
    journal_sha256: str
    signature: str
    public_key: str
    algorithm: str = ALGORITHM

    def to_dict(self) -> dict:
        return {
            "schema": RECEIPT_SCHEMA,
            "program_id": self.program_id,
            "journal": self.journal,
            "journal_sha256": self.journal_sha256,
            "signature": self.signature,
            "public_key": self.public_key,
            "algorithm": self.algorithm,
        }

    def check_fields(self) -> None:
        """Raise ``AttestationError`` unless every field is a UTF-8 encodable string."""
        for name in RECEIPT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise AttestationError("malformed", f"receipt field {name!r} must be a string")
            try:
                value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise AttestationError("malformed", f"receipt field {name!r} is not valid text") from e

    @classmethod
    def from_dict(cls, d: dict) -> "Receipt":
        if d.get("schema") != RECEIPT_SCHEMA:
            raise AttestationError("schema", f"unsupported receipt schema: {d.get('schema')!r}")
        try:
            receipt = cls(
                program_id=d["program_id"],
                journal=d["journal"],
                journal_sha256=d["journal_sha256"],
                signature=d["signature"],
                public_key=d["public_key"],
                algorithm=d.get("algorithm", ALGORITHM),
            )
        except KeyError as e:
            raise AttestationError("malformed", f"receipt is missing {e.args[0]!r}") from e
        receipt.check_fields()
        return receipt

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n")
        return path

    @classmethod
    def load(cls, path: Path) -> "Receipt":
        try:
            data = json.loads(Path(path).read_text())
        except ValueError as e:
            raise AttestationError("malformed", f"receipt is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise AttestationError("malformed", "receipt is not a JSON object")
        return cls.from_dict(data)


class LocalProver:
    """Runs the evaluator and signs its journal with a local Ed25519 key."""

    def __init__(self, private_key: Ed25519PrivateKey, hash_fn: HashFn = DEFAULT_HASH):
        self.private_key = private_key
        self.hash_fn = hash_fn

    def prove(self, env: ExecutionEnv) -> Receipt:
        """Evaluate ``env`` and attest the journal.

        A failed check propagates its ``WitnessRejected`` and no receipt
        is produced.
        """
        record = run_guest(env, self.hash_fn)
        journal = record.canonical_bytes()
        journal_sha256 = sha256_hex(journal)
        program = program_id()
        signature = self.private_key.sign(_signed_message(program, journal_sha256))
        LOGGER.info("attested journal %s... for program %s...", journal_sha256[:16], program[:16])
        return Receipt(
            program_id=program,
            journal=journal.decode("utf-8"),
            journal_sha256=journal_sha256,
            signature=base64.b64encode(signature).decode(),
            public_key=base64.b64encode(_public_pem(self.private_key.public_key())).decode(),
        )


def _digest_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8", "surrogatepass"), b.encode("utf-8", "surrogatepass"))


def verify(
    receipt: Receipt,
    expected_program_id: str,
    trusted_public_key: Optional[Ed25519PublicKey] = None,
    allow_untrusted: bool = False,
) -> ResultRecord:
    """Check ``receipt`` and return its journal as a trusted ResultRecord.

    The receipt must be signed by ``trusted_public_key``. Passing
    ``allow_untrusted=True`` without a key accepts whatever key the
    receipt carries; that proves integrity only, not who signed.
    """
    if trusted_public_key is None and not allow_untrusted:
        raise AttestationError("untrusted_key", "no trusted public key to check the receipt against")
    receipt.check_fields()
    if receipt.algorithm != ALGORITHM:
        raise AttestationError("algorithm", f"unsupported algorithm {receipt.algorithm!r}")
    if not _digest_equal(receipt.program_id, expected_program_id):
        raise AttestationError(
            "program_id",
            f"receipt is for program {receipt.program_id[:16]}..., "
            f"expected {expected_program_id[:16]}...",
        )

    journal = receipt.journal.encode("utf-8")
    if not _digest_equal(sha256_hex(journal), receipt.journal_sha256):
        raise AttestationError("journal_hash", "journal does not match journal_sha256")

    try:
        embedded = serialization.load_pem_public_key(base64.b64decode(receipt.public_key))
        signature = base64.b64decode(receipt.signature)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise AttestationError("malformed", f"cannot decode key or signature: {e}") from e
    if not isinstance(embedded, Ed25519PublicKey):
        raise AttestationError("algorithm", "receipt public key is not Ed25519")
    if trusted_public_key is not None and _public_pem(embedded) != _public_pem(trusted_public_key):
        raise AttestationError("untrusted_key", "receipt was signed by an untrusted key")

    try:
        embedded.verify(signature, _signed_message(receipt.program_id, receipt.journal_sha256))
    except InvalidSignature as e:
        raise AttestationError("signature", "signature verification failed") from e

    try:
        record = ResultRecord.from_canonical_bytes(journal)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise AttestationError("journal", f"journal does not decode: {e!r}") from e
    if record.canonical_bytes() != journal:
        raise AttestationError("journal", "journal is not in canonical form")
    return record


def generate_key(key_path: Path) -> Ed25519PrivateKey:
    """Create a key pair at ``key_path`` (private) and ``key_path.pub``."""
    key_path = Path(key_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    private_key = Ed25519PrivateKey.generate()
    key_path.write_bytes(private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))
    key_path.chmod(0o600)
    key_path.with_suffix(".pub").write_bytes(_public_pem(private_key.public_key()))
    return private_key


def load_private_key(key_path: Path) -> Ed25519PrivateKey:
    key = serialization.load_pem_private_key(Path(key_path).read_bytes(), password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(f"{key_path} is not an Ed25519 private key")
    return key


def load_public_key(key_path: Path) -> Ed25519PublicKey:
    key = serialization.load_pem_public_key(Path(key_path).read_bytes())
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError(f"{key_path} is not an Ed25519 public key")
    return key
