"""Protocol interfaces for cashplus_autosub components."""

from cashplus_autosub.interfaces.ledger import LedgerClient

__all__ = ["LedgerClient"]
