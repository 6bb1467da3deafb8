"""Global configuration for the virtual trading engine."""

from __future__ import annotations

from typing import Dict

DEFAULT_BALANCE = 1000.0  # starting virtual balance (USDT)
MIN_BALANCE = 1000.0  # lowest balance a user may set manually
RISK_PERCENTAGE = 2.0  # % of balance committed per trade

MAX_HISTORY_ITEMS = 20  # events kept by the in-memory trade recorder
MAX_SEEN_SIGNALS = 1024  # idempotency window for redelivered signals

DEFAULT_STRATEGY = "conservative"

# Windows offered by the time-based statistics view
TIME_RANGES: Dict[str, int] = {
    "7D": 7,
    "1M": 30,
    "3M": 90,
    "6M": 180,
    "1Y": 365,
}
DEFAULT_TIME_RANGE = "1M"
