"""CardFund Billing - virtual card fee billing and balance ledger."""

__version__ = "0.1.0"
