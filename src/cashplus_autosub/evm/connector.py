"""Endpoint connector - connects to the RPC endpoint with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from cashplus_autosub.errors import ConfigError, EndpointUnavailableError
from cashplus_autosub.evm.client import Web3LedgerClient
from cashplus_autosub.interfaces.ledger import LedgerClient
from cashplus_autosub.models.config import AutosubConfig
from cashplus_autosub.models.records import Session

log = logging.getLogger(__name__)

ClientFactory = Callable[[AutosubConfig], LedgerClient]
Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after failed attempt `attempt` (1-based): base * 2^(attempt-1)."""
    return base_delay * 2 ** (attempt - 1)


async def connect(
    cfg: AutosubConfig,
    *,
    client_factory: ClientFactory = Web3LedgerClient.from_config,
    sleep: Sleep = asyncio.sleep,
) -> Session:
    """Build the ledger client and verify the endpoint answers a chain-id query.

    Retries up to cfg.connect_attempts times with uncapped exponential
    backoff. Raises EndpointUnavailableError once the budget is spent.
    """
    try:
        client = client_factory(cfg)
    except ValueError:
        # eth-account error text may echo key material
        raise ConfigError("Invalid private key.") from None

    attempts = cfg.connect_attempts
    last_error = ""
    for attempt in range(1, attempts + 1):
        try:
            chain_id = await client.chain_id()
        except Exception as exc:
            last_error = str(exc) or exc.__class__.__name__
            log.warning("RPC attempt %d/%d failed: %s", attempt, attempts, last_error)
            if attempt == attempts:
                break
            delay = backoff_delay(attempt, cfg.connect_base_delay)
            log.info("Retrying in %gs...", delay)
            await sleep(delay)
            continue

        log.info("Connected to RPC. chainId: %d (attempt %d)", chain_id, attempt)
        return Session(
            client=client,
            address=client.address,
            chain_id=chain_id,
            attempts=attempt,
        )

    log.error("Exceeded max RPC connect attempts. Check RPC_URL / network.")
    await client.close()
    raise EndpointUnavailableError(cfg.rpc_url, attempts, last_error)
