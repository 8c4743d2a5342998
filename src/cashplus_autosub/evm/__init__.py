"""EVM integration components."""

from cashplus_autosub.evm.client import Web3LedgerClient
from cashplus_autosub.evm.connector import backoff_delay, connect

__all__ = ["Web3LedgerClient", "backoff_delay", "connect"]
