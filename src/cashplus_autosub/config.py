"""Configuration loading: TOML file + .env file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from dotenv import find_dotenv, load_dotenv
from web3 import Web3

from cashplus_autosub.engine.amounts import parse_units
from cashplus_autosub.errors import ConfigError
from cashplus_autosub.models.config import ApproveMode, AutosubConfig

ENV_PREFIX = "CASHPLUS_"


def load_config(
    config_path: str | Path | None = None,
    env_file: str | Path | None = None,
    *,
    use_dotenv: bool = True,
    env_prefix: str = ENV_PREFIX,
) -> AutosubConfig:
    """Load configuration from TOML file, .env file, and env vars.

    Priority (highest wins):
        1. Environment variables, CASHPLUS_-prefixed before bare names
           (CASHPLUS_RPC_URL, then RPC_URL, etc.)
        2. .env file (never overrides variables already set)
        3. TOML config file
        4. Defaults from AutosubConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if not p.exists():
            raise ConfigError(f"Config file not found: {p}")
        with open(p, "rb") as f:
            try:
                raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {p}: {exc}") from exc

    if use_dotenv:
        dotenv_path = Path(env_file).expanduser() if env_file else find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)

    cfg = AutosubConfig()

    # ── Endpoint section ───────────────────────────────────
    endpoint = raw.get("endpoint", {})
    if v := endpoint.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := endpoint.get("request_timeout"):
        cfg.request_timeout = _int("endpoint.request_timeout", v)
    if v := endpoint.get("connect_attempts"):
        cfg.connect_attempts = _int("endpoint.connect_attempts", v)
    if v := endpoint.get("connect_base_delay"):
        cfg.connect_base_delay = _float("endpoint.connect_base_delay", v)

    # ── Signing section ────────────────────────────────────
    signing = raw.get("signing", {})
    if v := signing.get("private_key"):
        cfg.private_key = str(v)

    # ── Contracts section ──────────────────────────────────
    contracts = raw.get("contracts", {})
    if v := contracts.get("contract_address"):
        cfg.contract_address = str(v)
    if v := contracts.get("token_address"):
        cfg.token_address = str(v)
    if v := contracts.get("token_symbol"):
        cfg.token_symbol = str(v)
    if v := contracts.get("contract_abi_path"):
        cfg.contract_abi_path = str(v)

    # ── Submission section ─────────────────────────────────
    submission = raw.get("submission", {})
    if (v := submission.get("subscribe_value")) is not None:
        cfg.subscribe_value = str(v)
    if v := submission.get("gas_limit"):
        cfg.gas_limit = _int("submission.gas_limit", v)
    if v := submission.get("receipt_timeout"):
        cfg.receipt_timeout = _int("submission.receipt_timeout", v)
    if v := submission.get("approve_mode"):
        cfg.approve_mode = _approve_mode(v)

    # ── Environment variable overrides (highest priority) ──
    def env(*names: str) -> str | None:
        for name in names:
            for key in (f"{env_prefix}{name}", name):
                if value := os.environ.get(key):
                    return value
        return None

    if v := env("RPC_URL"):
        cfg.rpc_url = v
    if v := env("PRIVATE_KEY"):
        cfg.private_key = v
    if v := env("CONTRACT_ADDRESS"):
        cfg.contract_address = v
    if v := env("USDT_ADDRESS", "TOKEN_ADDRESS"):
        cfg.token_address = v
    if v := env("SUBSCRIBE_VALUE"):
        cfg.subscribe_value = v
    if v := env("GAS_LIMIT"):
        cfg.gas_limit = _int("GAS_LIMIT", v)
    if v := env("RECEIPT_TIMEOUT"):
        cfg.receipt_timeout = _int("RECEIPT_TIMEOUT", v)
    if v := env("APPROVE_MODE"):
        cfg.approve_mode = _approve_mode(v)

    if cfg.contract_abi_path:
        cfg.contract_abi_path = str(Path(cfg.contract_abi_path).expanduser())

    return cfg


def validate_config(cfg: AutosubConfig) -> None:
    """Check everything a run needs, before any network activity.

    Raises ConfigError naming every missing or malformed setting.
    """
    missing = [
        name
        for name, value in (
            ("RPC_URL", cfg.rpc_url),
            ("PRIVATE_KEY", cfg.private_key),
            ("CONTRACT_ADDRESS", cfg.contract_address),
            ("USDT_ADDRESS", cfg.token_address),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}. Check .env file.")

    for name, value in (
        ("CONTRACT_ADDRESS", cfg.contract_address),
        ("USDT_ADDRESS", cfg.token_address),
    ):
        if not Web3.is_address(value):
            raise ConfigError(f"{name} is not a valid address: {value}")

    try:
        value_wei = parse_units(cfg.subscribe_value, 18)
    except ValueError as exc:
        raise ConfigError(f"Invalid SUBSCRIBE_VALUE: {exc}") from None
    if value_wei < 0:
        raise ConfigError(f"SUBSCRIBE_VALUE must not be negative, got {cfg.subscribe_value}")

    if cfg.gas_limit <= 0:
        raise ConfigError(f"GAS_LIMIT must be positive, got {cfg.gas_limit}")
    if cfg.connect_attempts <= 0:
        raise ConfigError(f"connect_attempts must be positive, got {cfg.connect_attempts}")


def _int(name: str, value: object) -> int:
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _float(name: str, value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def _approve_mode(value: object) -> ApproveMode:
    try:
        return ApproveMode(str(value).lower())
    except ValueError:
        choices = ", ".join(m.value for m in ApproveMode)
        raise ConfigError(f"approve_mode must be one of: {choices}; got {value!r}") from None
