"""Shared protocol constants and defaults."""

from datetime import timedelta

# Trades left pending this long are eligible for expiry
TRADE_TTL = timedelta(hours=24)

# Hashed-time-lock timeout, in blocks
DEFAULT_LOCK_TIMEOUT = 144
MAX_LOCK_TIMEOUT = 1008

TRADE_ID_BYTES = 16

DEFAULT_REAPER_INTERVAL_SECONDS = 60
