"""Configuration models: environment-level settings and per-run operator input."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from cashplus_autosub.errors import InputValidationError


class ApproveMode(str, Enum):
    """How much allowance the guard grants when a top-up is needed."""

    UNLIMITED = "unlimited"  # approve MAX_UINT256 once
    EXACT = "exact"  # approve only the configured max amount


@dataclass
class AutosubConfig:
    """Complete runtime configuration (config file + .env + environment)."""

    # Endpoint
    rpc_url: str = ""
    request_timeout: int = 30  # seconds per RPC request
    connect_attempts: int = 8
    connect_base_delay: float = 2.0  # seconds, doubled after each failed attempt

    # Signing
    private_key: str = ""  # loaded from PRIVATE_KEY

    # Contracts
    contract_address: str = ""  # CashPlus subscribe contract
    token_address: str = ""  # ERC-20 spending token (USDT)
    token_symbol: str = "USDT"
    contract_abi_path: str = ""  # optional JSON ABI; built-in subscribe ABI otherwise

    # Submission
    subscribe_value: str = "0"  # native currency attached to each subscribe, in ether
    gas_limit: int = 400_000
    receipt_timeout: int = 300  # seconds
    approve_mode: ApproveMode = ApproveMode.UNLIMITED


@dataclass(frozen=True)
class RunParams:
    """The five operator inputs for one run. Immutable once parsed."""

    min_amount: Decimal
    max_amount: Decimal
    loop_count: int
    delay_min: float
    delay_max: float

    @classmethod
    def parse(
        cls,
        min_amount: str,
        max_amount: str,
        loop_count: str,
        delay_min: str,
        delay_max: str,
    ) -> RunParams:
        """Parse and validate raw operator strings.

        Raises InputValidationError on any non-numeric value or range violation.
        """
        params = cls(
            min_amount=_parse_decimal("min amount", min_amount),
            max_amount=_parse_decimal("max amount", max_amount),
            loop_count=_parse_int("loop count", loop_count),
            delay_min=_parse_float("min delay", delay_min),
            delay_max=_parse_float("max delay", delay_max),
        )
        params.validate()
        return params

    def validate(self) -> None:
        if self.min_amount <= 0 or self.max_amount <= 0:
            raise InputValidationError("Amounts must be greater than zero.")
        if self.max_amount < self.min_amount:
            raise InputValidationError(
                f"Max amount {self.max_amount} is below min amount {self.min_amount}."
            )
        if self.loop_count <= 0:
            raise InputValidationError("Loop count must be a positive integer.")
        if self.delay_min < 0 or self.delay_max < 0:
            raise InputValidationError("Delays must not be negative.")
        if self.delay_max < self.delay_min:
            raise InputValidationError(
                f"Max delay {self.delay_max}s is below min delay {self.delay_min}s."
            )


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise InputValidationError(f"Invalid {name}: {raw!r} is not a number.") from None
    if not value.is_finite():
        raise InputValidationError(f"Invalid {name}: {raw!r} is not a finite number.")
    return value


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InputValidationError(f"Invalid {name}: {raw!r} is not an integer.") from None


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InputValidationError(f"Invalid {name}: {raw!r} is not a number.") from None
    if not math.isfinite(value):
        raise InputValidationError(f"Invalid {name}: {raw!r} is not a finite number.")
    return value
