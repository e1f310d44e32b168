"""Lock-In: a personal work timer with a per-day ledger and reports."""

__version__ = "0.1.0"
