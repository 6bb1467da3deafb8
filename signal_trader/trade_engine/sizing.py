"""Position sizing for new trades."""

from __future__ import annotations

from signal_trader.trade_engine.errors import InsufficientFunds, InvalidPrice
from signal_trader.trade_engine.types import PositionSize


def size_position(balance: float, risk_percentage: float, entry: float) -> PositionSize:
    """Commit ``risk_percentage`` of ``balance`` at ``entry``.

    This percentage is the fixed per-trade capital knob; it is unrelated to the
    confidence-tiered ``position_ratio`` on a RiskPolicy.
    """
    if not 0 < risk_percentage <= 100:
        raise ValueError(f"risk_percentage must be in (0, 100], got {risk_percentage}")
    if balance <= 0:
        raise InsufficientFunds(f"balance {balance:.2f} cannot fund a trade")
    if entry <= 0:
        raise InvalidPrice(f"entry price {entry} must be positive")

    notional = balance * risk_percentage / 100
    return PositionSize(notional=notional, units=notional / entry)
