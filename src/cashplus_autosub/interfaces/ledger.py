"""LedgerClient protocol - the EVM capabilities the submission engine consumes."""

from __future__ import annotations

from typing import Protocol

from cashplus_autosub.models.records import Receipt


class LedgerClient(Protocol):
    """Read queries plus sign-and-send primitives against one RPC endpoint.

    All on-chain quantities are plain ints (wei / token smallest units).
    """

    @property
    def address(self) -> str:
        """Checksummed address of the signing account."""
        ...

    async def chain_id(self) -> int:
        """Network identity query. Used as the connectivity check."""
        ...

    async def native_balance(self, owner: str) -> int:
        ...

    async def token_decimals(self, token: str) -> int:
        ...

    async def token_balance(self, token: str, owner: str) -> int:
        ...

    async def token_allowance(self, token: str, owner: str, spender: str) -> int:
        ...

    async def approve(self, token: str, spender: str, amount: int) -> str:
        """Sign and send ERC-20 approve(spender, amount). Returns the tx hash."""
        ...

    async def subscribe(
        self, contract: str, token: str, amount: int, value: int, gas_limit: int,
    ) -> str:
        """Sign and send subscribe(token, amount) with `value` wei attached."""
        ...

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Receipt:
        """Block until the transaction is mined."""
        ...

    async def close(self) -> None:
        ...
