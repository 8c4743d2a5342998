"""Run wiring - connect, reconcile allowance, then drive the subscribe loop."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from cashplus_autosub.engine.allowance import AllowanceGuard
from cashplus_autosub.engine.amounts import parse_units
from cashplus_autosub.engine.orchestrator import SubmissionOrchestrator
from cashplus_autosub.evm.client import Web3LedgerClient
from cashplus_autosub.evm.connector import ClientFactory, connect
from cashplus_autosub.models.config import AutosubConfig, RunParams
from cashplus_autosub.models.records import RunSummary, Session, TokenDescriptor

log = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


@dataclass
class AccountSnapshot:
    """Read-only view of the operator's on-chain position."""

    address: str
    chain_id: int
    native_balance: int  # wei
    token_decimals: int
    token_balance: int  # smallest units
    allowance: int  # smallest units


class AutosubRunner:
    """One run of the tool: a single session, a single allowance check, one loop.

    client_factory, sleep and rng are injectable so the whole run can be
    driven against an in-memory ledger.
    """

    def __init__(
        self,
        cfg: AutosubConfig,
        *,
        client_factory: ClientFactory = Web3LedgerClient.from_config,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._cfg = cfg
        self._client_factory = client_factory
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.session: Session | None = None
        self.token: TokenDescriptor | None = None
        self.guard: AllowanceGuard | None = None
        self.orchestrator: SubmissionOrchestrator | None = None

    async def start(self, params: RunParams) -> RunSummary:
        """Execute the full run. Fatal errors propagate to the caller."""
        cfg = self._cfg
        value_wei = parse_units(cfg.subscribe_value, NATIVE_DECIMALS)

        self.session = await connect(
            cfg, client_factory=self._client_factory, sleep=self._sleep,
        )
        client = self.session.client
        try:
            log.info("Wallet: %s", self.session.address)
            log.info("CashPlus: %s", cfg.contract_address)
            log.info("%s: %s", cfg.token_symbol, cfg.token_address)

            decimals = await client.token_decimals(cfg.token_address)
            log.info("%s decimals: %d", cfg.token_symbol, decimals)
            self.token = TokenDescriptor(
                address=cfg.token_address,
                symbol=cfg.token_symbol,
                decimals=decimals,
            )

            self.guard = AllowanceGuard(
                client,
                self.token,
                owner=self.session.address,
                spender=cfg.contract_address,
                approve_mode=cfg.approve_mode,
                receipt_timeout=cfg.receipt_timeout,
            )
            await self.guard.ensure_allowance(params.max_amount)

            log.info("SUBSCRIBE_VALUE (wei): %d", value_wei)
            self.orchestrator = SubmissionOrchestrator(
                client,
                cfg.contract_address,
                self.token,
                value_wei=value_wei,
                gas_limit=cfg.gas_limit,
                receipt_timeout=cfg.receipt_timeout,
                rng=self._rng,
                sleep=self._sleep,
            )
            return await self.orchestrator.run(params)
        finally:
            await client.close()

    async def snapshot(self) -> AccountSnapshot:
        """Connect and read balances and allowance. Submits nothing."""
        cfg = self._cfg
        self.session = await connect(
            cfg, client_factory=self._client_factory, sleep=self._sleep,
        )
        client = self.session.client
        address = self.session.address
        try:
            return AccountSnapshot(
                address=address,
                chain_id=self.session.chain_id,
                native_balance=await client.native_balance(address),
                token_decimals=await client.token_decimals(cfg.token_address),
                token_balance=await client.token_balance(cfg.token_address, address),
                allowance=await client.token_allowance(
                    cfg.token_address, address, cfg.contract_address,
                ),
            )
        finally:
            await client.close()


async def run_autosub(cfg: AutosubConfig, params: RunParams) -> RunSummary:
    """Entry point for a full subscribe run."""
    return await AutosubRunner(cfg).start(params)


async def fetch_snapshot(cfg: AutosubConfig) -> AccountSnapshot:
    """Entry point for the read-only info command."""
    return await AutosubRunner(cfg).snapshot()
