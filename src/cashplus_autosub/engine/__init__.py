"""Submission engine: amounts, allowance guard and the subscribe loop."""

from cashplus_autosub.engine.allowance import AllowanceGuard
from cashplus_autosub.engine.amounts import format_units, next_amount, parse_units
from cashplus_autosub.engine.orchestrator import RunState, SubmissionOrchestrator

__all__ = [
    "AllowanceGuard",
    "format_units", "next_amount", "parse_units",
    "RunState", "SubmissionOrchestrator",
]
