"""Runtime record types: session, token descriptor, receipts and per-iteration results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cashplus_autosub.interfaces.ledger import LedgerClient


class Outcome(str, Enum):
    """Final state of one loop iteration."""

    CONFIRMED_SUCCESS = "confirmed_success"
    CONFIRMED_FAILURE = "confirmed_failure"  # mined but reverted (status 0)
    SUBMISSION_ERROR = "submission_error"  # send or receipt wait raised


@dataclass
class Session:
    """An established endpoint connection. One per process."""

    client: LedgerClient
    address: str  # operator (signer) address
    chain_id: int
    attempts: int = 1  # connect attempts it took


@dataclass
class TokenDescriptor:
    """The spending token as observed at startup."""

    address: str
    symbol: str
    decimals: int
    allowance: int = 0  # smallest units, refreshed at most once per run


@dataclass(frozen=True)
class Receipt:
    """Confirmation data for a mined transaction."""

    tx_hash: str
    block_number: int | None
    gas_used: int | None
    status: int  # 1 success, 0 reverted

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class Amount:
    """A generated amount: display string and its smallest-unit integer."""

    display: str
    units: int


@dataclass
class AllowanceResult:
    """What the allowance guard observed and did."""

    needed: int
    allowance_before: int
    approved: bool
    approved_amount: int | None = None
    tx_hash: str | None = None
    block_number: int | None = None


@dataclass
class IterationResult:
    """Outcome of a single subscribe() iteration."""

    index: int
    amount: str
    amount_units: int
    outcome: Outcome
    tx_hash: str | None = None
    block_number: int | None = None
    gas_used: int | None = None
    status: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome == Outcome.CONFIRMED_SUCCESS


@dataclass
class RunSummary:
    """In-memory tally of a run. Discarded when the process exits."""

    loop_count: int
    decimals: int = 0  # token precision, for rendering total_units
    results: list[IterationResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.outcome == Outcome.CONFIRMED_SUCCESS)

    @property
    def reverted(self) -> int:
        return sum(1 for r in self.results if r.outcome == Outcome.CONFIRMED_FAILURE)

    @property
    def errored(self) -> int:
        return sum(1 for r in self.results if r.outcome == Outcome.SUBMISSION_ERROR)

    @property
    def total_units(self) -> int:
        """Token units spent by successfully confirmed subscribes."""
        return sum(r.amount_units for r in self.results if r.success)
