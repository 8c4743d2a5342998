"""web3.py binding of the LedgerClient protocol."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract

from cashplus_autosub.evm.abi import ERC20_ABI, SUBSCRIBE_ABI, load_contract_abi
from cashplus_autosub.models.config import AutosubConfig
from cashplus_autosub.models.records import Receipt

log = logging.getLogger(__name__)


class Web3LedgerClient:
    """Signs locally with an eth-account key and sends raw transactions.

    Nonces are read from the pending pool before every send. The engine
    never has two transactions in flight, so no local nonce tracking is kept.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        *,
        request_timeout: int = 30,
        subscribe_abi: list[dict[str, Any]] | None = None,
    ) -> None:
        self._account: LocalAccount = Account.from_key(private_key)
        self._w3 = AsyncWeb3(
            AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout)},
                # connect() owns the retry policy
                exception_retry_configuration=None,
            )
        )
        self._subscribe_abi = subscribe_abi or SUBSCRIBE_ABI
        self._rpc_url = rpc_url

    @classmethod
    def from_config(cls, cfg: AutosubConfig) -> Web3LedgerClient:
        return cls(
            cfg.rpc_url,
            cfg.private_key,
            request_timeout=cfg.request_timeout,
            subscribe_abi=load_contract_abi(cfg.contract_abi_path),
        )

    @property
    def address(self) -> str:
        return self._account.address

    # ── Reads ──────────────────────────────────────────────

    async def chain_id(self) -> int:
        return int(await self._w3.eth.chain_id)

    async def native_balance(self, owner: str) -> int:
        return int(await self._w3.eth.get_balance(AsyncWeb3.to_checksum_address(owner)))

    async def token_decimals(self, token: str) -> int:
        return int(await self._token(token).functions.decimals().call())

    async def token_balance(self, token: str, owner: str) -> int:
        owner = AsyncWeb3.to_checksum_address(owner)
        return int(await self._token(token).functions.balanceOf(owner).call())

    async def token_allowance(self, token: str, owner: str, spender: str) -> int:
        owner = AsyncWeb3.to_checksum_address(owner)
        spender = AsyncWeb3.to_checksum_address(spender)
        return int(await self._token(token).functions.allowance(owner, spender).call())

    # ── Writes ─────────────────────────────────────────────

    async def approve(self, token: str, spender: str, amount: int) -> str:
        fn = self._token(token).functions.approve(AsyncWeb3.to_checksum_address(spender), amount)
        tx = await fn.build_transaction({
            "from": self.address,
            "nonce": await self._next_nonce(),
        })
        return await self._sign_and_send(tx)

    async def subscribe(
        self, contract: str, token: str, amount: int, value: int, gas_limit: int,
    ) -> str:
        target = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract), abi=self._subscribe_abi,
        )
        fn = target.functions.subscribe(AsyncWeb3.to_checksum_address(token), amount)
        # Explicit gas skips estimation, so a reverting call is still mined
        # and reported through its receipt status.
        tx = await fn.build_transaction({
            "from": self.address,
            "value": value,
            "gas": gas_limit,
            "nonce": await self._next_nonce(),
        })
        return await self._sign_and_send(tx)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Receipt:
        rc = await self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        block_number = rc.get("blockNumber")
        gas_used = rc.get("gasUsed")
        return Receipt(
            tx_hash=tx_hash,
            block_number=int(block_number) if block_number is not None else None,
            gas_used=int(gas_used) if gas_used is not None else None,
            status=int(rc.get("status", 0)),
        )

    async def close(self) -> None:
        """Close the provider's cached aiohttp sessions."""
        try:
            await self._w3.provider.disconnect()
        except Exception as exc:
            log.debug("Provider disconnect failed: %s", exc)

    # ── Internals ──────────────────────────────────────────

    def _token(self, token: str) -> AsyncContract:
        return self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(token), abi=ERC20_ABI)

    async def _next_nonce(self) -> int:
        return await self._w3.eth.get_transaction_count(self.address, "pending")

    async def _sign_and_send(self, tx: dict[str, Any]) -> str:
        signed = self._account.sign_transaction(tx)
        tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        return AsyncWeb3.to_hex(tx_hash)
