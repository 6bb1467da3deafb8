"""Configuration for the virtual trade engine."""

from __future__ import annotations

from dataclasses import dataclass

from signal_trader.config import (
    DEFAULT_BALANCE,
    DEFAULT_STRATEGY,
    MAX_HISTORY_ITEMS,
    MAX_SEEN_SIGNALS,
    MIN_BALANCE,
    RISK_PERCENTAGE,
)


@dataclass
class TradeEngineConfig:
    """Parameters for one account's paper-trading engine."""

    initial_balance: float = DEFAULT_BALANCE
    min_balance: float = MIN_BALANCE  # floor for manual balance updates

    # Per-trade capital at risk, % of current balance
    risk_percentage: float = RISK_PERCENTAGE

    # Admission policy: "conservative" (>= 85) or "aggressive" (>= 70)
    strategy: str = DEFAULT_STRATEGY

    # Bookkeeping
    max_history_items: int = MAX_HISTORY_ITEMS
    max_seen_signals: int = MAX_SEEN_SIGNALS
