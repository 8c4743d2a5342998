"""Allowance guard - makes sure the subscribe contract may draw the token."""

from __future__ import annotations

import logging
from decimal import ROUND_UP, Decimal

from cashplus_autosub.engine.amounts import format_units, to_units
from cashplus_autosub.errors import AuthorizationError
from cashplus_autosub.evm.abi import MAX_UINT256
from cashplus_autosub.interfaces.ledger import LedgerClient
from cashplus_autosub.models.config import ApproveMode
from cashplus_autosub.models.records import AllowanceResult, TokenDescriptor

log = logging.getLogger(__name__)


class AllowanceGuard:
    """Checks the allowance once per run and tops it up when short.

    In UNLIMITED mode the top-up approves MAX_UINT256, so the allowance is
    never re-checked during the loop. Any top-up failure is fatal.
    """

    def __init__(
        self,
        client: LedgerClient,
        token: TokenDescriptor,
        owner: str,
        spender: str,
        *,
        approve_mode: ApproveMode = ApproveMode.UNLIMITED,
        receipt_timeout: float = 300,
    ) -> None:
        self._client = client
        self._token = token
        self._owner = owner
        self._spender = spender
        self._approve_mode = approve_mode
        self._receipt_timeout = receipt_timeout
        self._result: AllowanceResult | None = None

    async def ensure_allowance(self, max_amount: Decimal) -> AllowanceResult:
        """Top up the allowance if it is below max_amount at token precision."""
        if self._result is not None:
            log.debug("Allowance already reconciled this run")
            return self._result

        decimals = self._token.decimals
        # Round up so an over-precise max amount is still fully covered
        needed = to_units(max_amount, decimals, rounding=ROUND_UP)

        allowance = await self._client.token_allowance(
            self._token.address, self._owner, self._spender,
        )
        self._token.allowance = allowance
        log.info(
            "Allowance to %s: %s (%s %s)",
            self._spender, allowance, format_units(allowance, decimals), self._token.symbol,
        )

        if allowance >= needed:
            log.info("Allowance already sufficient (need %s)", needed)
            self._result = AllowanceResult(
                needed=needed, allowance_before=allowance, approved=False,
            )
            return self._result

        amount = MAX_UINT256 if self._approve_mode == ApproveMode.UNLIMITED else needed
        label = "MaxUint256" if amount == MAX_UINT256 else str(amount)
        log.info("Approving %s to %s (this may take a moment)...", label, self._spender)

        try:
            tx_hash = await self._client.approve(self._token.address, self._spender, amount)
            log.info("Approve tx: %s", tx_hash)
            receipt = await self._client.wait_for_receipt(tx_hash, self._receipt_timeout)
        except Exception as exc:
            raise AuthorizationError(f"Approve failed: {exc}") from exc

        if not receipt.succeeded:
            raise AuthorizationError(
                f"Approve tx {tx_hash} reverted (block {receipt.block_number})"
            )

        log.info("Approve confirmed. block: %s", receipt.block_number)
        self._token.allowance = amount
        self._result = AllowanceResult(
            needed=needed,
            allowance_before=allowance,
            approved=True,
            approved_amount=amount,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
        )
        return self._result
