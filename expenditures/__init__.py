"""Expenditure and funding-pot ledger for pooled organizational funds."""

__version__ = "0.1.0"
