"""ABI fragments for the spending token and the subscribe contract."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cashplus_autosub.errors import ConfigError

MAX_UINT256 = 2**256 - 1

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

# Only the entry point we call. A full contract ABI can be supplied via
# contract_abi_path.
SUBSCRIBE_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "subscribe",
        "stateMutability": "payable",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
]


def load_contract_abi(path: str | Path | None) -> list[dict[str, Any]]:
    """Load the subscribe contract ABI from a JSON file, or fall back to SUBSCRIBE_ABI.

    Accepts either a bare ABI list or a build artifact with an "abi" key.
    """
    if not path:
        return SUBSCRIBE_ABI

    p = Path(path).expanduser()
    if not p.exists():
        raise ConfigError(f"Contract ABI file not found: {p}")

    try:
        with open(p) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Contract ABI file {p} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ConfigError(f"Contract ABI file {p} does not contain an ABI list")

    if not any(e.get("type") == "function" and e.get("name") == "subscribe" for e in data):
        raise ConfigError(f"Contract ABI file {p} has no subscribe() function")
    return data
