"""Submission orchestrator - the sequential subscribe() loop."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from enum import Enum

from cashplus_autosub.engine.amounts import next_amount
from cashplus_autosub.interfaces.ledger import LedgerClient
from cashplus_autosub.models.config import RunParams
from cashplus_autosub.models.records import (
    IterationResult,
    Outcome,
    RunSummary,
    TokenDescriptor,
)

log = logging.getLogger(__name__)


class RunState(str, Enum):
    """Where the orchestrator is within the current iteration."""

    IDLE = "idle"
    GENERATING = "generating"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    REPORTING = "reporting"
    DELAYING = "delaying"
    DONE = "done"


class SubmissionOrchestrator:
    """Runs loop_count subscribe() iterations, one transaction in flight at a time.

    A failed iteration is recorded and the loop moves on; nothing raised by
    the ledger client during send or confirmation escapes run().
    """

    def __init__(
        self,
        client: LedgerClient,
        contract_address: str,
        token: TokenDescriptor,
        *,
        value_wei: int = 0,
        gas_limit: int = 400_000,
        receipt_timeout: float = 300,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._contract = contract_address
        self._token = token
        self._value_wei = value_wei
        self._gas_limit = gas_limit
        self._receipt_timeout = receipt_timeout
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.state = RunState.IDLE

    async def run(self, params: RunParams) -> RunSummary:
        summary = RunSummary(loop_count=params.loop_count, decimals=self._token.decimals)

        for index in range(1, params.loop_count + 1):
            result = await self.run_iteration(index, params)
            summary.results.append(result)

            if index < params.loop_count:
                self.state = RunState.DELAYING
                delay = self.next_delay(params)
                log.info("Waiting %.2fs before next loop...", delay)
                await self._sleep(delay)

        self.state = RunState.DONE
        log.info(
            "All %d loops finished: %d confirmed, %d reverted, %d errors",
            summary.attempted, summary.succeeded, summary.reverted, summary.errored,
        )
        return summary

    async def run_iteration(self, index: int, params: RunParams) -> IterationResult:
        """Generate, submit, confirm and report one subscribe()."""
        self.state = RunState.GENERATING
        amount = next_amount(
            params.min_amount, params.max_amount, self._token.decimals, self._rng,
        )
        log.info(
            "[%d/%d] nominal: %s %s | parsed: %d",
            index, params.loop_count, amount.display, self._token.symbol, amount.units,
        )

        tx_hash: str | None = None
        try:
            self.state = RunState.SUBMITTING
            tx_hash = await self._client.subscribe(
                self._contract,
                self._token.address,
                amount.units,
                self._value_wei,
                self._gas_limit,
            )
            log.info("-> tx sent: %s", tx_hash)

            self.state = RunState.CONFIRMING
            receipt = await self._client.wait_for_receipt(tx_hash, self._receipt_timeout)
        except Exception as exc:
            self.state = RunState.REPORTING
            error = str(exc) or exc.__class__.__name__
            log.error("-> subscribe error: %s", error)
            return IterationResult(
                index=index,
                amount=amount.display,
                amount_units=amount.units,
                outcome=Outcome.SUBMISSION_ERROR,
                tx_hash=tx_hash,
                error=error,
            )

        self.state = RunState.REPORTING
        if receipt.succeeded:
            outcome = Outcome.CONFIRMED_SUCCESS
            log.info(
                "-> confirmed | block: %s | gasUsed: %s | status: %d",
                receipt.block_number, receipt.gas_used, receipt.status,
            )
        else:
            outcome = Outcome.CONFIRMED_FAILURE
            log.warning(
                "-> reverted | block: %s | gasUsed: %s | status: %d",
                receipt.block_number, receipt.gas_used, receipt.status,
            )

        return IterationResult(
            index=index,
            amount=amount.display,
            amount_units=amount.units,
            outcome=outcome,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            status=receipt.status,
        )

    def next_delay(self, params: RunParams) -> float:
        """Uniform delay in [delay_min, delay_max] seconds."""
        return self._rng.uniform(params.delay_min, params.delay_max)
