"""Ledger services: funding pots, expenditures, claims and one-tx payments."""
