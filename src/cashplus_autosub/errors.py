"""Exception hierarchy.

Everything raised from here is fatal for a run: the CLI reports it and
exits with status 1. Failures inside a single loop iteration are never
raised; the orchestrator turns them into IterationResult values instead.
"""

from __future__ import annotations


class AutosubError(Exception):
    """Base class for all fatal cashplus_autosub errors."""


class ConfigError(AutosubError):
    """Required configuration is missing or malformed."""


class InputValidationError(AutosubError):
    """Operator input is not numeric or violates a range rule."""


class EndpointUnavailableError(AutosubError):
    """The RPC endpoint could not be reached within the retry budget."""

    def __init__(self, rpc_url: str, attempts: int, last_error: str) -> None:
        super().__init__(
            f"Exceeded max RPC connect attempts ({attempts}) for {rpc_url}: {last_error}"
        )
        self.rpc_url = rpc_url
        self.attempts = attempts
        self.last_error = last_error


class AuthorizationError(AutosubError):
    """The one-time allowance top-up was rejected or did not confirm."""
