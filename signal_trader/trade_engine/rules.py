"""Exit rules evaluated when open positions are marked to market."""

from __future__ import annotations

from typing import Optional

from signal_trader.trade_engine.types import Direction, Position

STOP_LOSS = "stop_loss"
TAKE_PROFIT = "take_profit"


def evaluate_exit(position: Position, price: float) -> Optional[str]:
    """Return the exit reason hit at ``price``, or None to keep holding."""
    if position.direction == Direction.LONG:
        hit_stop = price <= position.stop_loss
        hit_take = price >= position.take_profit
    else:
        hit_stop = price >= position.stop_loss
        hit_take = price <= position.take_profit

    # Stop-loss wins when a gap crosses both levels at once
    if hit_stop:
        return STOP_LOSS
    if hit_take:
        return TAKE_PROFIT
    return None
