"""JSON-RPC ledger client: ERC-20 balances and contract bytecode at a block.

Stdlib transport (urllib). Every failure is an ``RpcError``; there are
no retries because a failed lookup is fatal for the claim.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .claims import ADDRESS_SIZE
from .errors import RpcError

LOGGER = logging.getLogger(__name__)

BALANCE_OF_SELECTOR = "70a08231"  # balanceOf(address)


class Ledger(Protocol):
    def balance_of(self, asset: bytes, target: bytes, block: int) -> bytes: ...

    def code_at(self, address: bytes, block: int) -> bytes: ...


def parse_address(value: str) -> bytes:
    """Parse a 0x-prefixed, 40-hex-char address into 20 bytes."""
    if not value.startswith("0x") or len(value) != 2 + 2 * ADDRESS_SIZE:
        raise ValueError(f"address must be 0x + 40 hex chars: {value!r}")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as e:
        raise ValueError(f"address is not valid hex: {value!r}") from e


def format_address(address: bytes) -> str:
    return "0x" + address.hex()


def _decode_hex(data: str, what: str) -> bytes:
    text = data[2:] if data.startswith("0x") else data
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise RpcError(f"{what} is not valid hex") from e


def read_blob(path: Path) -> bytes:
    """Read calldata or bytecode: a ``0x...`` hex text file, or raw bytes otherwise."""
    raw = Path(path).read_bytes()
    try:
        text = raw.decode("utf-8").strip()
    except UnicodeDecodeError:
        return raw
    if text.startswith("0x") and len(text) >= 10 and all(c.isascii() and c.isprintable() and not c.isspace() for c in text):
        return bytes.fromhex(text[2:])
    return raw


class JsonRpcLedger:
    def __init__(self, rpc_url: str, timeout: float = 30.0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._next_id = 1

    def call(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its ``result``."""
        payload = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        self._next_id += 1
        body = json.dumps(payload).encode("utf-8")
        req = Request(
            self.rpc_url,
            data=body,
            headers={"content-type": "application/json", "user-agent": "bbproof"},
            method="POST",
        )
        LOGGER.debug("rpc %s -> %s", method, self.rpc_url)
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            raise RpcError(f"HTTP {e.code}: {e.reason}") from e
        except URLError as e:
            raise RpcError(f"URL error: {e.reason}") from e
        except OSError as e:
            raise RpcError(f"RPC transport error: {e}") from e

        try:
            response = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RpcError(f"invalid JSON-RPC response: {raw[:200]!r}") from e
        if not isinstance(response, dict):
            raise RpcError("JSON-RPC response is not an object")
        if response.get("error"):
            err = response["error"]
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise RpcError(f"{method} failed: {message}")
        if "result" not in response or not isinstance(response["result"], str):
            raise RpcError(f"{method} returned no result")
        return response["result"]

    def balance_of(self, asset: bytes, target: bytes, block: int) -> bytes:
        """ERC-20 ``balanceOf(target)`` on ``asset`` at ``block`` (32 bytes, big-endian)."""
        data = "0x" + BALANCE_OF_SELECTOR + target.rjust(32, b"\x00").hex()
        LOGGER.info("fetching balance at block %d", block)
        result = self.call("eth_call", [{"to": format_address(asset), "data": data}, hex(block)])
        balance = _decode_hex(result, "eth_call result")
        if len(balance) != 32:
            raise RpcError(f"eth_call returned {len(balance)} bytes, expected 32")
        return balance

    def code_at(self, address: bytes, block: int) -> bytes:
        """Runtime bytecode of ``address`` at ``block``; empty for accounts without code."""
        LOGGER.info("fetching code for %s at block %d", format_address(address), block)
        result = self.call("eth_getCode", [format_address(address), hex(block)])
        return _decode_hex(result, "eth_getCode result")
