"""Ledger-wide constants."""

# Fixed-point unit for payout scalars (1.0)
WAD = 10**18

# Domain created by bootstrap; owns the colony's main funding pot
ROOT_DOMAIN_ID = 1

# Token address denoting the native asset
ETHER_TOKEN = "0x0000000000000000000000000000000000000000"

# Colony's own token; only its payouts earn reputation
COLONY_TOKEN = "CLNY"
