"""cashplus_autosub - automated, randomized subscribe() submissions to the CashPlus contract."""

__version__ = "0.1.0"
