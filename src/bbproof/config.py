"""
bbproof configuration

Loads config from, later layers winning:
  1. Defaults
  2. Global config (CLI --config, else $BBPROOF_HOME/config.json or ~/.bbproof/config.json)
  3. Workspace override (<workspace>/.bbproof/config.json)
  4. Environment variables (BBPROOF_RPC_URL, BBPROOF_RPC_TIMEOUT,
     BBPROOF_KEY_PATH, BBPROOF_TRUSTED_KEY, BBPROOF_COMPARISON)

Under pytest the implicit global layer is skipped so tests never read
the real user config.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional

from .claims import ThresholdRule, WitnessShape

LOGGER = logging.getLogger(__name__)


def bbproof_home() -> Path:
    home = os.environ.get("BBPROOF_HOME")
    return Path(home) if home else Path.home() / ".bbproof"


DEFAULT_CONFIG = {
    "rpc_url": None,
    "rpc_timeout_seconds": 30,
    "key_path": None,  # resolved to <home>/keys/prover.pem
    "trusted_public_key": None,  # PEM public key receipts must be signed by
    "comparison": ThresholdRule.INCLUSIVE.value,
    "shape": WitnessShape.PRE_AND_POST_BALANCE.value,
}


def load_config(config_path: Optional[Path] = None, workspace: Optional[Path] = None) -> dict:
    """Load config layers and validate the result."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    is_pytest = bool(os.environ.get("PYTEST_CURRENT_TEST"))
    global_path: Optional[Path] = Path(config_path) if config_path else bbproof_home() / "config.json"
    if is_pytest and config_path is None:
        global_path = None
    if global_path is not None and global_path.exists():
        config.update(_read_json(global_path))
        LOGGER.debug("loaded config from %s", global_path)

    if workspace:
        ws_path = Path(workspace) / ".bbproof" / "config.json"
        if ws_path.exists():
            config.update(_read_json(ws_path))
            LOGGER.debug("loaded workspace config from %s", ws_path)

    _apply_env_overrides(config)

    if not config.get("key_path"):
        config["key_path"] = str(bbproof_home() / "keys" / "prover.pem")
    _validate(config)
    return config


def _read_json(path: Path) -> dict:
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        LOGGER.warning("could not read config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("ignoring config %s: not a JSON object", path)
        return {}
    return data


def _apply_env_overrides(config: dict) -> None:
    rpc_url = os.environ.get("BBPROOF_RPC_URL")
    if rpc_url:
        config["rpc_url"] = rpc_url

    timeout = os.environ.get("BBPROOF_RPC_TIMEOUT")
    if timeout:
        try:
            config["rpc_timeout_seconds"] = float(timeout)
        except ValueError:
            LOGGER.warning("ignoring BBPROOF_RPC_TIMEOUT=%r: not a number", timeout)

    key_path = os.environ.get("BBPROOF_KEY_PATH")
    if key_path:
        config["key_path"] = key_path

    trusted_key = os.environ.get("BBPROOF_TRUSTED_KEY")
    if trusted_key:
        config["trusted_public_key"] = trusted_key

    comparison = os.environ.get("BBPROOF_COMPARISON")
    if comparison:
        config["comparison"] = comparison


def _validate(config: dict) -> None:
    try:
        ThresholdRule(config["comparison"])
    except ValueError as e:
        raise ValueError(f"comparison must be 'ge' or 'gt', got {config['comparison']!r}") from e
    try:
        WitnessShape(config["shape"])
    except ValueError as e:
        choices = ", ".join(s.value for s in WitnessShape)
        raise ValueError(f"shape must be one of {choices}, got {config['shape']!r}") from e
    if float(config["rpc_timeout_seconds"]) <= 0:
        raise ValueError("rpc_timeout_seconds must be positive")
