"""Data models for cashplus_autosub."""

from cashplus_autosub.models.config import ApproveMode, AutosubConfig, RunParams
from cashplus_autosub.models.records import (
    AllowanceResult,
    Amount,
    IterationResult,
    Outcome,
    Receipt,
    RunSummary,
    Session,
    TokenDescriptor,
)

__all__ = [
    "ApproveMode", "AutosubConfig", "RunParams",
    "AllowanceResult", "Amount", "IterationResult", "Outcome", "Receipt",
    "RunSummary", "Session", "TokenDescriptor",
]
